"""
Digest challenge response (RFC 2617 Section 3.2.2, RFC 7616 Section 3.4).

DigestChallengeResponse accumulates credentials, request data and the
directives of a challenge, and renders the value of an ``Authorization``
header. It is a fluent builder:

    >>> response = (
    ...     DigestChallengeResponse.response_to(challenge)
    ...     .set_username("user")
    ...     .set_password("passwd")
    ...     .set_digest_uri("/example")
    ...     .set_request_method("GET")
    ... )
    >>> request.headers["Authorization"] = response.get_header_value()

Reuse:
    A response can be reused for later requests to the same protection
    space, which saves a 401 round trip. Before each reuse, call
    increment_nonce_count() (and optionally randomize_client_nonce()), then
    update the digest-uri and request method. If the server answers with a
    stale challenge, apply_challenge() adopts the new nonce.

Thread safety:
    Every method takes the instance lock, so several threads may share one
    response and increment its nonce count concurrently.
"""

from __future__ import annotations

import hashlib
import secrets
import threading
import typing

from .._abnf import quote, unquote
from .._types import (
    Algorithm,
    AlgorithmLike,
    DigestConfig,
    InsufficientInformationError,
    QopSet,
    QualityOfProtection,
    UnsupportedChallengeError,
)
from .._utils import AUTHORIZATION, SCHEME, logger

if typing.TYPE_CHECKING:
    from ._challenge import DigestChallenge

MAX_NONCE_COUNT = 0xFFFFFFFF

# Resolution order for the qop to use when the server offers several
_QOP_PRIORITY = (
    QualityOfProtection.AUTH,
    QualityOfProtection.AUTH_INT,
    QualityOfProtection.UNSPECIFIED_LEGACY,
)


def _hash_name(algorithm: Algorithm | None) -> str:
    # No algorithm directive means MD5 (RFC 2617 Section 3.2.1)
    return algorithm.hash_name if algorithm is not None else "md5"


class DigestChallengeResponse:
    """
    Builder for the value of an Authorization header answering a Digest challenge.

    Attributes are exposed as read-only properties; every set_* method
    returns the instance so calls can be chained.
    """

    HTTP_HEADER_AUTHORIZATION = AUTHORIZATION

    def __init__(self, config: DigestConfig | None = None) -> None:
        """
        Create an empty response.

        A random client nonce is generated and also used as the
        first-request client nonce; the entity body digest is the digest
        of an empty body.

        Args:
            config: Nonce size and text encoding (defaults to DigestConfig())
        """
        self._lock = threading.RLock()
        self._config = config or DigestConfig()

        self._algorithm: Algorithm | None = None
        self._username: str | None = None
        self._password: str | None = None
        self._client_nonce: str | None = None
        self._first_request_client_nonce: str | None = None
        self._quoted_nonce: str | None = None
        self._nonce_count = 1
        self._quoted_opaque: str | None = None
        self._supported_qop_types: frozenset[QualityOfProtection] = frozenset()
        self._digest_uri: str | None = None
        self._quoted_realm: str | None = None
        self._request_method: str | None = None
        self._entity_body_digest = b""
        self._a1: str | None = None

        self.randomize_client_nonce()
        self.set_first_request_client_nonce(self._client_nonce)
        self.set_entity_body(b"")

    # ------------------------------------------------------------------
    # Support checks and construction from a challenge
    # ------------------------------------------------------------------

    @staticmethod
    def is_algorithm_supported(algorithm: AlgorithmLike) -> bool:
        """True for None (MD5), MD5, MD5-sess, SHA-256 and SHA-256-sess."""
        if algorithm is None or isinstance(algorithm, Algorithm):
            return True
        try:
            Algorithm.parse(algorithm)
        except UnsupportedChallengeError:
            return False
        return True

    @staticmethod
    def is_challenge_supported(challenge: DigestChallenge) -> bool:
        """True if the challenge's algorithm is supported and it offers a qop we support."""
        return DigestChallengeResponse.is_algorithm_supported(
            challenge.algorithm
        ) and bool(challenge.supported_qop_types)

    @classmethod
    def response_to(
        cls,
        challenge: DigestChallenge,
        config: DigestConfig | None = None,
    ) -> DigestChallengeResponse:
        """
        Create a response seeded from a challenge.

        Raises:
            UnsupportedChallengeError: If is_challenge_supported() is False
        """
        if not cls.is_challenge_supported(challenge):
            raise UnsupportedChallengeError(f"Unsupported challenge: {challenge}")
        return cls(config).apply_challenge(challenge)

    def apply_challenge(self, challenge: DigestChallenge) -> DigestChallengeResponse:
        """
        Copy realm, nonce, opaque, algorithm and qop types from a challenge.

        Credentials, client nonces and request data are kept, so this is
        also how a stale nonce is replaced.
        """
        with self._lock:
            self.set_quoted_nonce(challenge.quoted_nonce)
            self.set_quoted_opaque(challenge.quoted_opaque)
            self.set_quoted_realm(challenge.quoted_realm)
            self.set_algorithm(challenge.algorithm)
            self.set_supported_qop_types(challenge.supported_qop_types)
            logger.debug(
                f"Seeded digest response (realm={challenge.quoted_realm}, "
                f"algorithm={challenge.algorithm}, stale={challenge.stale})"
            )
            return self

    # ------------------------------------------------------------------
    # Algorithm
    # ------------------------------------------------------------------

    def set_algorithm(self, algorithm: AlgorithmLike) -> DigestChallengeResponse:
        """
        Set the algorithm; None means "not specified" (MD5, not echoed).

        Resets the entity body digest to the digest of an empty body, since
        a digest computed with another hash cannot be reused.

        Raises:
            UnsupportedAlgorithmError: If the algorithm is not supported
        """
        parsed = None if algorithm is None else Algorithm.parse(algorithm)
        with self._lock:
            self._algorithm = parsed
            self.set_entity_body(b"")
            self._invalidate_a1()
            return self

    @property
    def algorithm(self) -> Algorithm | None:
        with self._lock:
            return self._algorithm

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def set_username(self, username: str | None) -> DigestChallengeResponse:
        with self._lock:
            self._username = username
            self._invalidate_a1()
            return self

    @property
    def username(self) -> str | None:
        with self._lock:
            return self._username

    def set_password(self, password: str | None) -> DigestChallengeResponse:
        with self._lock:
            self._password = password
            self._invalidate_a1()
            return self

    @property
    def password(self) -> str | None:
        with self._lock:
            return self._password

    # ------------------------------------------------------------------
    # Client nonces
    # ------------------------------------------------------------------

    def set_client_nonce(self, client_nonce: str | None) -> DigestChallengeResponse:
        """Set the client nonce (cnonce) sent with the next header."""
        with self._lock:
            self._client_nonce = client_nonce
            self._invalidate_session_a1()
            return self

    def randomize_client_nonce(self) -> DigestChallengeResponse:
        """Replace the client nonce with a fresh random value."""
        return self.set_client_nonce(secrets.token_hex(self._config.client_nonce_bytes))

    @property
    def client_nonce(self) -> str | None:
        with self._lock:
            return self._client_nonce

    def set_first_request_client_nonce(
        self, first_request_client_nonce: str | None
    ) -> DigestChallengeResponse:
        """
        Set the client nonce of the first request answering the current nonce.

        Only used by the "-sess" algorithms, where A1 is computed once per
        nonce from this value.
        """
        with self._lock:
            self._first_request_client_nonce = first_request_client_nonce
            self._invalidate_session_a1()
            return self

    @property
    def first_request_client_nonce(self) -> str | None:
        with self._lock:
            return self._first_request_client_nonce

    # ------------------------------------------------------------------
    # Nonce and nonce count
    # ------------------------------------------------------------------

    def set_quoted_nonce(self, quoted_nonce: str | None) -> DigestChallengeResponse:
        """Set the nonce in quoted form. Resets the nonce count to 1."""
        with self._lock:
            self._quoted_nonce = quoted_nonce
            self.reset_nonce_count()
            self._invalidate_session_a1()
            return self

    def set_nonce(self, nonce: str | None) -> DigestChallengeResponse:
        """Set the nonce (unquoted). Resets the nonce count to 1."""
        return self.set_quoted_nonce(None if nonce is None else quote(nonce))

    @property
    def quoted_nonce(self) -> str | None:
        with self._lock:
            return self._quoted_nonce

    @property
    def nonce(self) -> str | None:
        with self._lock:
            if self._quoted_nonce is None:
                return None
            return unquote(self._quoted_nonce)

    def set_nonce_count(self, nonce_count: int) -> DigestChallengeResponse:
        """
        Set the nonce count (nc).

        Raises:
            ValueError: If not in 1..0xFFFFFFFF
        """
        if not 1 <= nonce_count <= MAX_NONCE_COUNT:
            raise ValueError(f"Nonce count out of range: {nonce_count}")
        with self._lock:
            self._nonce_count = nonce_count
            return self

    def increment_nonce_count(self) -> DigestChallengeResponse:
        with self._lock:
            return self.set_nonce_count(self._nonce_count + 1)

    def reset_nonce_count(self) -> DigestChallengeResponse:
        return self.set_nonce_count(1)

    @property
    def nonce_count(self) -> int:
        with self._lock:
            return self._nonce_count

    # ------------------------------------------------------------------
    # Opaque and realm
    # ------------------------------------------------------------------

    def set_quoted_opaque(self, quoted_opaque: str | None) -> DigestChallengeResponse:
        with self._lock:
            self._quoted_opaque = quoted_opaque
            return self

    def set_opaque(self, opaque: str | None) -> DigestChallengeResponse:
        return self.set_quoted_opaque(None if opaque is None else quote(opaque))

    @property
    def quoted_opaque(self) -> str | None:
        with self._lock:
            return self._quoted_opaque

    @property
    def opaque(self) -> str | None:
        with self._lock:
            if self._quoted_opaque is None:
                return None
            return unquote(self._quoted_opaque)

    def set_quoted_realm(self, quoted_realm: str | None) -> DigestChallengeResponse:
        with self._lock:
            self._quoted_realm = quoted_realm
            self._invalidate_a1()
            return self

    def set_realm(self, realm: str | None) -> DigestChallengeResponse:
        return self.set_quoted_realm(None if realm is None else quote(realm))

    @property
    def quoted_realm(self) -> str | None:
        with self._lock:
            return self._quoted_realm

    @property
    def realm(self) -> str | None:
        with self._lock:
            if self._quoted_realm is None:
                return None
            return unquote(self._quoted_realm)

    # ------------------------------------------------------------------
    # Quality of protection
    # ------------------------------------------------------------------

    def set_supported_qop_types(self, supported_qop_types: QopSet) -> DigestChallengeResponse:
        """
        Set the qop types the server accepts.

        Raises:
            ValueError: If the set is empty
        """
        if not supported_qop_types:
            raise ValueError("The set of supported qop types cannot be empty")
        with self._lock:
            self._supported_qop_types = frozenset(supported_qop_types)
            return self

    @property
    def supported_qop_types(self) -> frozenset[QualityOfProtection]:
        with self._lock:
            return self._supported_qop_types

    def get_qop(self) -> QualityOfProtection | None:
        """Pick the qop to use: auth, then auth-int, then legacy; None if nothing is set."""
        with self._lock:
            for qop in _QOP_PRIORITY:
                if qop in self._supported_qop_types:
                    return qop
            return None

    @property
    def qop(self) -> QualityOfProtection | None:
        return self.get_qop()

    # ------------------------------------------------------------------
    # Request data
    # ------------------------------------------------------------------

    def set_digest_uri(self, digest_uri: str | None) -> DigestChallengeResponse:
        """Set the digest-uri; must equal the request-target of the request line."""
        with self._lock:
            self._digest_uri = digest_uri
            return self

    @property
    def digest_uri(self) -> str | None:
        with self._lock:
            return self._digest_uri

    def set_request_method(self, request_method: str | None) -> DigestChallengeResponse:
        with self._lock:
            self._request_method = request_method
            return self

    @property
    def request_method(self) -> str | None:
        with self._lock:
            return self._request_method

    def set_entity_body(self, entity_body: bytes) -> DigestChallengeResponse:
        """
        Set the request body. Only its digest is kept.

        Uses the hash of the current algorithm, so set the algorithm first.
        """
        with self._lock:
            self._entity_body_digest = hashlib.new(
                _hash_name(self._algorithm), entity_body
            ).digest()
            return self

    def set_entity_body_digest(self, entity_body_digest: bytes) -> DigestChallengeResponse:
        """Set a precomputed digest of the request body."""
        with self._lock:
            self._entity_body_digest = bytes(entity_body_digest)
            return self

    @property
    def entity_body_digest(self) -> bytes:
        with self._lock:
            return self._entity_body_digest

    def is_entity_body_digest_required(self) -> bool:
        """True if the qop in use is auth-int, which covers the request body."""
        return self.get_qop() is QualityOfProtection.AUTH_INT

    # ------------------------------------------------------------------
    # Header generation
    # ------------------------------------------------------------------

    def _require(self, value: object, field: str, message: str) -> None:
        if value is None:
            raise InsufficientInformationError(message, field)

    def get_header_value(self) -> str:
        """
        Build the Authorization header value.

        Returns:
            Header value, e.g. 'Digest username="user",realm="x",...'

        Raises:
            InsufficientInformationError: If a mandatory value is missing
        """
        with self._lock:
            self._require(self._username, "username", "Mandatory username not set")
            self._require(self._password, "password", "Mandatory password not set")
            self._require(self._quoted_realm, "realm", "Mandatory realm not set")
            self._require(self._quoted_nonce, "nonce", "Mandatory nonce not set")
            self._require(self._digest_uri, "digest_uri", "Mandatory digest-uri not set")
            self._require(
                self._request_method, "request_method", "Mandatory request method not set"
            )

            qop = self.get_qop()
            self._require(qop, "qop", "Mandatory supported qop types not set")
            legacy = qop is QualityOfProtection.UNSPECIFIED_LEGACY

            if not legacy:
                self._require(
                    self._client_nonce,
                    "client_nonce",
                    "Client nonce must be set when qop is set",
                )
            if self._algorithm is not None and self._algorithm.is_session:
                self._require(
                    self._first_request_client_nonce,
                    "first_request_client_nonce",
                    f"First request client nonce must be set when algorithm is {self._algorithm}",
                )

            response = self._calculate_response(qop)

            parts = [
                f"username={quote(self._username)}",
                f"realm={self._quoted_realm}",
                f"nonce={self._quoted_nonce}",
                f"uri={quote(self._digest_uri)}",
                f'response="{response}"',
            ]
            if not legacy:
                parts.append(f"cnonce={quote(self._client_nonce)}")
            if self._quoted_opaque is not None:
                parts.append(f"opaque={self._quoted_opaque}")
            if self._algorithm is not None:
                parts.append(f"algorithm={self._algorithm}")
            if not legacy:
                parts.append(f"qop={qop.qop_value}")
                parts.append(f"nc={self._nonce_count:08x}")

            logger.debug(
                f"Built digest response for {self._request_method} {self._digest_uri} "
                f"(algorithm={self._algorithm}, qop={qop.qop_value}, "
                f"nc={self._nonce_count:08x})"
            )
            return f"{SCHEME} " + ",".join(parts)

    def _h(self, data: str) -> str:
        return hashlib.new(
            _hash_name(self._algorithm), data.encode(self._config.encoding)
        ).hexdigest()

    def _get_a1(self) -> str:
        if self._a1 is None:
            self._a1 = self._calculate_a1()
        return self._a1

    def _calculate_a1(self) -> str:
        credentials = f"{self._username}:{unquote(self._quoted_realm)}:{self._password}"
        if self._algorithm is not None and self._algorithm.is_session:
            nonce = unquote(self._quoted_nonce)
            return f"{self._h(credentials)}:{nonce}:{self._first_request_client_nonce}"
        return credentials

    def _calculate_a2(self, qop: QualityOfProtection) -> str:
        if qop is QualityOfProtection.AUTH_INT:
            return f"{self._request_method}:{self._digest_uri}:{self._entity_body_digest.hex()}"
        return f"{self._request_method}:{self._digest_uri}"

    def _calculate_response(self, qop: QualityOfProtection) -> str:
        """KD(H(A1), data) per RFC 2617 Section 3.2.2.1."""
        secret = self._h(self._get_a1())
        ha2 = self._h(self._calculate_a2(qop))
        nonce = unquote(self._quoted_nonce)

        if qop is QualityOfProtection.UNSPECIFIED_LEGACY:
            # RFC 2069 compatibility
            data = f"{nonce}:{ha2}"
        else:
            data = (
                f"{nonce}:{self._nonce_count:08x}:{self._client_nonce}:"
                f"{qop.qop_value}:{ha2}"
            )

        return self._h(f"{secret}:{data}")

    def _invalidate_a1(self) -> None:
        self._a1 = None

    def _invalidate_session_a1(self) -> None:
        # Non-session A1 does not depend on nonces
        if self._algorithm is not None and self._algorithm.is_session:
            self._a1 = None

    def __repr__(self) -> str:
        with self._lock:
            qop_types = sorted(
                str(q.qop_value) for q in self._supported_qop_types
            )
            return (
                f"DigestChallengeResponse(algorithm={self._algorithm}, "
                f"realm={self._quoted_realm}, supported_qop_types={qop_types}, "
                f"nonce={self._quoted_nonce}, nonce_count={self._nonce_count}, "
                f"client_nonce={self._client_nonce}, "
                f"first_request_client_nonce={self._first_request_client_nonce}, "
                f"opaque={self._quoted_opaque}, username={self._username}, "
                f"password=*, request_method={self._request_method}, "
                f"digest_uri={self._digest_uri}, "
                f"entity_body_digest={self._entity_body_digest.hex()})"
            )


__all__ = ["DigestChallengeResponse", "MAX_NONCE_COUNT"]
