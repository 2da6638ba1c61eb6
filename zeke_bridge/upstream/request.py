"""Outbound request construction.

An OutboundCall is immutable. The retrying client rebuilds the concrete
headers from it on every attempt, so nothing set during one attempt can leak
into the next.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

import httpx

from ..exceptions import RequestBuildError

DEFAULT_ACCEPT = "application/json, text/event-stream"

# RFC 9110 token characters
_METHOD_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")

HeaderInput = Mapping[str, str] | Iterable[tuple[str, str]]


def _merge_headers(
    base: tuple[tuple[str, str], ...], updates: HeaderInput | None
) -> tuple[tuple[str, str], ...]:
    """Merge headers case-insensitively, last write wins, first-seen order kept."""
    merged: dict[str, tuple[str, str]] = {name.lower(): (name, value) for name, value in base}
    if updates:
        items = updates.items() if isinstance(updates, Mapping) else updates
        for name, value in items:
            merged[name.lower()] = (name, value)
    return tuple(merged.values())


@dataclass(frozen=True)
class OutboundCall:
    """A request to the upstream, ready to be sent any number of times."""

    method: str
    url: str
    headers: tuple[tuple[str, str], ...] = ()
    body: bytes | None = None

    def header(self, name: str) -> str | None:
        key = name.lower()
        for header_name, value in self.headers:
            if header_name.lower() == key:
                return value
        return None

    def with_headers(self, headers: HeaderInput) -> OutboundCall:
        """Return a copy with ``headers`` applied on top of the existing ones."""
        return OutboundCall(
            method=self.method,
            url=self.url,
            headers=_merge_headers(self.headers, headers),
            body=self.body,
        )

    def attempt_headers(self) -> httpx.Headers:
        """Fresh headers for a single attempt, with Accept filled in if absent."""
        headers = httpx.Headers(list(self.headers))
        if not headers.get("accept"):
            headers["Accept"] = DEFAULT_ACCEPT
        return headers


def build_request(
    method: str,
    url: str,
    body: bytes | str | None = None,
    headers: HeaderInput | None = None,
) -> OutboundCall:
    """Build an OutboundCall.

    Args:
        method: HTTP method, e.g. "POST". Normalized to upper case.
        url: Absolute http(s) URL.
        body: Payload. A str is encoded as UTF-8. None sends no body and no
            Content-Type is added; callers set it themselves.
        headers: Initial headers.

    Raises:
        RequestBuildError: If the method or URL is malformed.
    """
    if not method or not _METHOD_RE.fullmatch(method):
        raise RequestBuildError("invalid HTTP method", details={"method": method})

    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as e:
        raise RequestBuildError("invalid URL", details={"url": url, "error": e}) from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise RequestBuildError("invalid URL", details={"url": url})

    if isinstance(body, str):
        body = body.encode("utf-8")
    elif body is not None:
        body = bytes(body)

    return OutboundCall(
        method=method.upper(),
        url=url,
        headers=_merge_headers((), headers),
        body=body,
    )
