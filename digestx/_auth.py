"""
Glue between HTTP messages and the Digest challenge/response models.

Typical flow:

    >>> response = send(request)                      # 401 Unauthorized
    >>> auth = DigestAuthentication.from_response(response)
    >>> auth.set_username("user").set_password("passwd")
    >>> if auth.can_respond():
    ...     auth.authorize(request)                   # sets Authorization
    ...     response = send(request)

Nothing here performs I/O, caches across instances or retries requests;
that is left to the caller.
"""

from __future__ import annotations

import threading
import typing
from collections.abc import Iterable
from urllib.parse import urlsplit

from ._models._challenge import DigestChallenge
from ._models._response import DigestChallengeResponse
from ._types import DigestConfig, UnsupportedChallengeError
from ._utils import (
    AUTHORIZATION,
    PROXY_AUTHENTICATE,
    PROXY_AUTHORIZATION,
    WWW_AUTHENTICATE,
    logger,
)


def _header_values(headers: typing.Any, name: str) -> list[str]:
    """
    Read every value of a header from any common headers object.

    Supports digestx/httpx Headers (get_list), email.message and
    http.client messages (get_all) and plain mappings.
    """
    if hasattr(headers, "get_list"):
        return list(headers.get_list(name))
    if hasattr(headers, "get_all"):
        return list(headers.get_all(name) or [])
    wanted = name.lower()
    return [value for key, value in headers.items() if key.lower() == wanted]


def find_challenges(source: typing.Any, *, proxy: bool = False) -> list[DigestChallenge]:
    """
    Collect the supported Digest challenges of a response.

    Args:
        source: A response object exposing ``.headers``, or a headers object
        proxy: Read Proxy-Authenticate instead of WWW-Authenticate

    Returns:
        Supported challenges, in the server's order of preference. Malformed
        headers and challenges we cannot answer are skipped.
    """
    headers = getattr(source, "headers", source)
    name = PROXY_AUTHENTICATE if proxy else WWW_AUTHENTICATE

    return DigestChallenge.parse_headers(_header_values(headers, name), name)


def challenge_response_for(
    source: typing.Any,
    *,
    proxy: bool = False,
    config: DigestConfig | None = None,
) -> DigestChallengeResponse:
    """
    Create a DigestChallengeResponse for the first supported challenge.

    Raises:
        UnsupportedChallengeError: If the response carries no supported challenge
    """
    challenges = find_challenges(source, proxy=proxy)
    if not challenges:
        name = PROXY_AUTHENTICATE if proxy else WWW_AUTHENTICATE
        raise UnsupportedChallengeError(f"No supported digest challenge in {name}")
    return DigestChallengeResponse.response_to(challenges[0], config)


def _request_target(request: typing.Any) -> str:
    """Request-target of a request object: ``.uri`` or path and query of ``.url``."""
    uri = getattr(request, "uri", None)
    if uri is not None:
        return str(uri)

    url = getattr(request, "url", None)
    if url is None:
        raise ValueError(f"Cannot determine request-target of {request!r}")
    parts = urlsplit(str(url))
    target = parts.path or "/"
    if parts.query:
        target = f"{target}?{parts.query}"
    return target


class DigestAuthentication:
    """
    Answers the Digest challenges of one protection space.

    Holds the challenges taken from a 401/407 response and the user's
    credentials, and produces Authorization (or Proxy-Authorization) values
    for any number of requests. From the second request on, the nonce count
    is incremented, so the server nonce is reused without another round trip.

    Thread-safe: one lock serializes all calls on an instance.
    """

    def __init__(
        self,
        challenges: Iterable[DigestChallenge],
        *,
        proxy: bool = False,
        config: DigestConfig | None = None,
        randomize_client_nonce: bool = False,
    ) -> None:
        """
        Args:
            challenges: Supported challenges, most preferred first
            proxy: Challenges came from Proxy-Authenticate (407)
            config: Passed on to DigestChallengeResponse
            randomize_client_nonce: Use a fresh cnonce for every request
        """
        self._lock = threading.RLock()
        self._challenges = list(challenges)
        self._proxy = proxy
        self._config = config
        self._randomize_client_nonce = randomize_client_nonce
        self._username: str | None = None
        self._password: str | None = None
        self._response: DigestChallengeResponse | None = None
        self._used = False

    @classmethod
    def from_challenges(
        cls,
        challenges: Iterable[DigestChallenge],
        *,
        proxy: bool = False,
        config: DigestConfig | None = None,
    ) -> DigestAuthentication:
        return cls(challenges, proxy=proxy, config=config)

    @classmethod
    def from_headers(
        cls, headers: typing.Any, *, config: DigestConfig | None = None
    ) -> DigestAuthentication:
        """Use WWW-Authenticate challenges, falling back to Proxy-Authenticate."""
        challenges = find_challenges(headers)
        if challenges:
            return cls(challenges, config=config)
        return cls(find_challenges(headers, proxy=True), proxy=True, config=config)

    @classmethod
    def from_response(
        cls, response: typing.Any, *, config: DigestConfig | None = None
    ) -> DigestAuthentication:
        """
        Take challenges from a 401 or 407 response.

        A 407 is answered from Proxy-Authenticate; anything else from
        WWW-Authenticate, with Proxy-Authenticate as fallback.
        """
        if getattr(response, "status_code", None) == 407:
            challenges = find_challenges(response, proxy=True)
            if challenges:
                return cls(challenges, proxy=True, config=config)
        return cls.from_headers(response.headers, config=config)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_username(self, username: str) -> DigestAuthentication:
        with self._lock:
            self._username = username
            if self._response is not None:
                self._response.set_username(username)
            return self

    def set_password(self, password: str) -> DigestAuthentication:
        with self._lock:
            self._password = password
            if self._response is not None:
                self._response.set_password(password)
            return self

    def can_respond(self) -> bool:
        """True if at least one supported Digest challenge is available."""
        with self._lock:
            return bool(self._challenges)

    @property
    def header_name(self) -> str:
        """Header the value must be sent in."""
        return PROXY_AUTHORIZATION if self._proxy else AUTHORIZATION

    @property
    def challenge(self) -> DigestChallenge | None:
        """The challenge being answered (the server's most preferred supported one)."""
        with self._lock:
            return self._challenges[0] if self._challenges else None

    @property
    def challenge_response(self) -> DigestChallengeResponse:
        """
        The underlying DigestChallengeResponse, created on first access.

        Raises:
            UnsupportedChallengeError: If there is no supported challenge
        """
        with self._lock:
            if self._response is None:
                if not self._challenges:
                    raise UnsupportedChallengeError("No supported digest challenge")
                self._response = (
                    DigestChallengeResponse.response_to(self._challenges[0], self._config)
                    .set_username(self._username)
                    .set_password(self._password)
                )
            return self._response

    # ------------------------------------------------------------------
    # Header generation
    # ------------------------------------------------------------------

    def get_authorization_for_request(
        self,
        method: str,
        uri: str,
        entity_body: bytes | None = None,
    ) -> str:
        """
        Build the header value for one request.

        Args:
            method: Request method (GET, POST, ...)
            uri: Request-target, exactly as in the request line
            entity_body: Request body, used only when auth-int is in effect

        Raises:
            UnsupportedChallengeError: If there is no supported challenge
            InsufficientInformationError: If credentials are missing
        """
        with self._lock:
            response = self.challenge_response
            if self._used:
                response.increment_nonce_count()
                if self._randomize_client_nonce:
                    response.randomize_client_nonce()

            response.set_request_method(method).set_digest_uri(uri)
            if response.is_entity_body_digest_required():
                response.set_entity_body(entity_body or b"")

            header_value = response.get_header_value()
            self._used = True
            return header_value

    def authorize(self, request: typing.Any) -> str:
        """
        Build the header value for a request object and attach it.

        The request needs ``method``, ``headers`` and either ``uri`` or
        ``url``; its ``content`` is used as entity body if present.

        Returns:
            The header value that was set
        """
        content = getattr(request, "content", None)
        entity_body = content if isinstance(content, bytes) else None

        header_value = self.get_authorization_for_request(
            request.method, _request_target(request), entity_body
        )
        request.headers[self.header_name] = header_value
        logger.debug(f"Attached {self.header_name} to {request.method} request")
        return header_value

    def update_from_response(self, response: typing.Any) -> bool:
        """
        Adopt new challenges, e.g. after a 401 with stale=true.

        Credentials are kept. The nonce count restarts at 1 and a fresh client
        nonce becomes the first-request client nonce for the new nonce.

        Returns:
            True if a supported challenge was found
        """
        proxy = getattr(response, "status_code", None) == 407
        challenges = find_challenges(response, proxy=proxy)
        if not challenges and not proxy:
            challenges = find_challenges(response, proxy=True)
            proxy = bool(challenges)
        if not challenges:
            logger.debug("No supported digest challenge in response")
            return False

        with self._lock:
            self._challenges = challenges
            self._proxy = proxy
            self._used = False
            if self._response is not None:
                self._response.apply_challenge(challenges[0])
                self._response.randomize_client_nonce()
                self._response.set_first_request_client_nonce(
                    self._response.client_nonce
                )
            logger.debug(f"Adopted new challenge (stale={challenges[0].stale})")
            return True


def authorize_request(
    request: typing.Any,
    response: typing.Any,
    username: str,
    password: str,
    *,
    config: DigestConfig | None = None,
) -> str:
    """
    Answer the challenge of ``response`` on ``request`` in one call.

    Returns:
        The header value that was attached

    Raises:
        UnsupportedChallengeError: If the response carries no supported challenge
    """
    auth = (
        DigestAuthentication.from_response(response, config=config)
        .set_username(username)
        .set_password(password)
    )
    return auth.authorize(request)


__all__ = [
    "DigestAuthentication",
    "authorize_request",
    "challenge_response_for",
    "find_challenges",
]
