"""Contract helpers for allocviz."""

from .error import (
    BadInputError,
    EmptySeriesError,
    EnvelopeError,
    ErrorEnvelope,
    Exit,
    FetchError,
    HttpStatusError,
    MalformedPayloadError,
    NetworkError,
    die,
    guard_cli,
)

__all__ = [
    "Exit",
    "ErrorEnvelope",
    "EnvelopeError",
    "BadInputError",
    "FetchError",
    "NetworkError",
    "HttpStatusError",
    "MalformedPayloadError",
    "EmptySeriesError",
    "guard_cli",
    "die",
]
