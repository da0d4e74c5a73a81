"""Error envelope helpers and exit codes for allocviz."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from functools import wraps
from typing import Any, NoReturn, TypeVar

logger = logging.getLogger(__name__)
T = TypeVar("T")


class Exit(IntEnum):
    """Process exit codes; fetch failures and empty series get their own."""

    OK = 0
    BAD_INPUT = 2
    FETCH = 3
    NO_DATA = 4
    IO = 5
    INTERNAL = 6


@dataclass(slots=True)
class ErrorEnvelope:
    """JSON body written to stderr when a command fails."""

    error: str
    detail: str
    hint: str | None = None

    def to_json(self) -> str:
        body = {"error": self.error, "detail": self.detail}
        if self.hint:
            body["hint"] = self.hint
        return json.dumps(body, ensure_ascii=False)


def die(code: Exit, kind: str, detail: str, hint: str | None = None) -> NoReturn:
    """Write the error envelope to stderr and exit with ``code``."""

    env = ErrorEnvelope(error=kind, detail=detail, hint=hint)
    sys.stderr.write(env.to_json() + "\n")
    try:
        sys.stderr.flush()
    finally:
        sys.exit(int(code))


class EnvelopeError(Exception):
    """Error with a user-facing message and an optional remediation hint."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class BadInputError(EnvelopeError):
    """Raised for malformed user input (config values, flags, date ranges)."""


class FetchError(EnvelopeError):
    """Base class for every failure of a single metrics fetch attempt."""


class NetworkError(FetchError):
    """The request could not complete (connection refused, DNS, timeout)."""


class HttpStatusError(FetchError):
    """The endpoint answered with a non-success status."""

    def __init__(self, status: int, url: str, *, hint: str | None = None) -> None:
        super().__init__(f"HTTP error! status: {status} ({url})", hint=hint)
        self.status = status
        self.url = url


class MalformedPayloadError(FetchError):
    """The body is not JSON or does not have the expected row shape."""


class EmptySeriesError(FetchError):
    """The fetch succeeded but produced no usable samples."""

    def __init__(self, message: str = "No data available", *, hint: str | None = None) -> None:
        super().__init__(message, hint=hint)


_EXCEPTION_ORDER: tuple[tuple[type[EnvelopeError], Exit, str], ...] = (
    (BadInputError, Exit.BAD_INPUT, "BadInput"),
    (EmptySeriesError, Exit.NO_DATA, "EmptySeries"),
    (NetworkError, Exit.FETCH, "Network"),
    (HttpStatusError, Exit.FETCH, "HttpStatus"),
    (MalformedPayloadError, Exit.FETCH, "MalformedPayload"),
    (FetchError, Exit.FETCH, "Fetch"),
)


def guard_cli(fn: Callable[..., T]) -> Callable[..., T]:
    """Turn exceptions escaping a command into an envelope plus exit code."""

    @wraps(fn)
    def _wrapped(*args: Any, **kwargs: Any) -> T:
        try:
            return fn(*args, **kwargs)
        except EnvelopeError as exc:
            for exc_type, exit_code, label in _EXCEPTION_ORDER:
                if isinstance(exc, exc_type):
                    die(exit_code, label, str(exc), hint=getattr(exc, "hint", None))
            die(Exit.INTERNAL, "UnhandledEnvelope", str(exc), hint=getattr(exc, "hint", None))
        except (FileNotFoundError, PermissionError) as exc:
            die(Exit.IO, type(exc).__name__, str(exc))
        except Exception as exc:
            logger.exception("Unhandled CLI exception")
            die(Exit.INTERNAL, "Unhandled", f"{type(exc).__name__}: {exc}")

    return _wrapped


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
