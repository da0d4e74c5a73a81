"""HTTP client for the allocation metrics endpoint."""

from __future__ import annotations

import gzip
import json
import logging
from collections.abc import Callable
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode, urlparse
from urllib.request import Request, urlopen

from ..contracts.error import BadInputError, HttpStatusError, MalformedPayloadError, NetworkError
from ..models import Chip, DateRange, Granularity, to_js_iso

logger = logging.getLogger(__name__)

_CLIENT_USER_AGENT = "allocviz/1.0"
_PREVIEW_CHARS = 100

Opener = Callable[..., Any]


class MetricsSourceClient:
    """Issue one bounded-range fetch per call; no retries, no caching."""

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        *,
        timeout: float = 10.0,
        max_response_bytes: int = 5 * 1024 * 1024,
        opener: Opener | None = None,
    ) -> None:
        parsed = urlparse(base_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise BadInputError(f"Unsupported metrics base URL {base_url!r}")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_response_bytes = max_response_bytes
        self._opener = opener or urlopen

    def build_url(self, kind: Chip, date_range: DateRange, granularity: Granularity) -> str:
        query = urlencode(
            {"start": to_js_iso(date_range.start), "end": to_js_iso(date_range.end)},
            safe=":",
        )
        return f"{self.base_url}/{kind.value}{granularity.path_suffix}?{query}"

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json", "User-Agent": _CLIENT_USER_AGENT}

    def fetch(
        self,
        kind: Chip,
        date_range: DateRange,
        granularity: Granularity = Granularity.RAW,
    ) -> list[dict[str, Any]]:
        """Return the raw rows for ``kind`` over ``date_range``.

        Raises ``NetworkError`` when the request cannot complete,
        ``HttpStatusError`` for non-2xx answers and ``MalformedPayloadError``
        when the body is not a JSON array of objects.
        """

        url = self.build_url(kind, date_range, granularity)
        logger.debug("Fetching %s", url)
        request = Request(url, headers=self._headers())  # noqa: S310
        try:
            with self._opener(request, timeout=self.timeout) as response:
                status = getattr(response, "status", 200)
                if status is not None and not 200 <= int(status) < 300:
                    raise HttpStatusError(int(status), url)
                payload = response.read(self.max_response_bytes + 1)
                headers = getattr(response, "headers", None)
                encoding = headers.get("Content-Encoding", "") if headers is not None else ""
        except HTTPError as exc:
            raise HttpStatusError(exc.code, url) from exc
        except (URLError, TimeoutError, ConnectionError) as exc:
            reason = getattr(exc, "reason", exc)
            raise NetworkError(f"Request to {url} failed: {reason}") from exc
        except OSError as exc:
            raise NetworkError(f"Request to {url} failed: {exc}") from exc

        if len(payload) > self.max_response_bytes:
            raise MalformedPayloadError(
                f"Response from {url} exceeds {self.max_response_bytes} bytes"
            )
        if isinstance(encoding, str) and encoding.lower() == "gzip":
            try:
                payload = gzip.decompress(payload)
            except OSError as exc:
                raise MalformedPayloadError(f"Invalid gzip body from {url}: {exc}") from exc
        rows = parse_rows(payload)
        logger.info("Fetched %d rows for %s", len(rows), kind.value)
        return rows


def parse_rows(payload: bytes | str) -> list[dict[str, Any]]:
    """Decode a JSON array of objects, raising ``MalformedPayloadError`` otherwise."""

    text = payload.decode("utf-8", errors="replace") if isinstance(payload, bytes) else payload
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedPayloadError(
            f"Invalid JSON response: {text[:_PREVIEW_CHARS]}..."
        ) from exc
    if not isinstance(data, list):
        raise MalformedPayloadError(
            f"Expected a JSON array of rows; got {type(data).__name__}"
        )
    for index, row in enumerate(data):
        if not isinstance(row, dict):
            raise MalformedPayloadError(f"Row {index} is not an object: {row!r}"[:200])
    return data


__all__ = ["MetricsSourceClient", "parse_rows"]
