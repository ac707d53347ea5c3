"""
Minimal HTTP Request and Response holders.

These carry just what Digest authentication needs (method, request-target,
headers, body, status code) so callers without an HTTP library of their own,
and the test-suite, have something to hand to DigestAuthentication. No wire
parsing is done here. The method is kept exactly as given, since it is
hashed into A2 and HTTP methods are case-sensitive.
"""

from __future__ import annotations

from .._types import HeaderTypes
from .._utils import (
    AUTHORIZATION,
    PROXY_AUTHENTICATE,
    PROXY_AUTHORIZATION,
    WWW_AUTHENTICATE,
)
from ._challenge import DigestChallenge
from ._header import Headers


def _to_bytes(content: str | bytes | None) -> bytes:
    if isinstance(content, str):
        return content.encode("utf-8")
    if isinstance(content, bytes):
        return content
    return b""


# ============================================================================
# Request Implementation
# ============================================================================


class Request:
    """HTTP request: method, request-target, headers and body."""

    __slots__ = ("method", "uri", "_headers", "_content")

    def __init__(
        self,
        method: str,
        uri: str,
        *,
        headers: HeaderTypes | None = None,
        content: str | bytes | None = None,
    ) -> None:
        self.method = method
        self.uri = uri
        self._headers = (
            Headers(headers) if not isinstance(headers, Headers) else headers
        )
        self._content = _to_bytes(content)

    @property
    def headers(self) -> Headers:
        return self._headers

    @property
    def content(self) -> bytes:
        return self._content

    @content.setter
    def content(self, value: str | bytes) -> None:
        self._content = _to_bytes(value)

    def add_authorization(self, header_value: str, *, proxy: bool = False) -> None:
        """
        Set the Authorization (or Proxy-Authorization) header.

        Args:
            header_value: Value built by DigestChallengeResponse.get_header_value()
            proxy: Use Proxy-Authorization (answer to a 407)
        """
        header_name = PROXY_AUTHORIZATION if proxy else AUTHORIZATION
        self._headers[header_name] = header_value

    def __repr__(self) -> str:
        return f"<Request({self.method!r}, {self.uri!r})>"


# ============================================================================
# Response Implementation
# ============================================================================


class Response:
    """HTTP response: status code, headers, body and the request it answers."""

    __slots__ = ("status_code", "_headers", "_content", "_request")

    def __init__(
        self,
        status_code: int,
        *,
        headers: HeaderTypes | None = None,
        content: str | bytes | None = None,
        request: Request | None = None,
    ) -> None:
        self.status_code = status_code
        self._headers = (
            Headers(headers) if not isinstance(headers, Headers) else headers
        )
        self._content = _to_bytes(content)
        self._request = request

    @property
    def headers(self) -> Headers:
        return self._headers

    @property
    def content(self) -> bytes:
        return self._content

    @property
    def request(self) -> Request | None:
        return self._request

    @request.setter
    def request(self, value: Request | None) -> None:
        self._request = value

    @property
    def requires_auth(self) -> bool:
        """True if response requires authentication (401 or 407)."""
        return self.status_code in (401, 407)

    @property
    def auth_challenges(self) -> list[DigestChallenge]:
        """Supported Digest challenges from every WWW-Authenticate header."""
        return DigestChallenge.parse_headers(
            self._headers.get_list(WWW_AUTHENTICATE), WWW_AUTHENTICATE
        )

    @property
    def proxy_challenges(self) -> list[DigestChallenge]:
        """Supported Digest challenges from every Proxy-Authenticate header."""
        return DigestChallenge.parse_headers(
            self._headers.get_list(PROXY_AUTHENTICATE), PROXY_AUTHENTICATE
        )

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}]>"


__all__ = ["Request", "Response"]
