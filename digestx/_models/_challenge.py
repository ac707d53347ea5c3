"""
Digest challenge model (RFC 2617 Section 3.2.1, RFC 7616 Section 3.3).

A DigestChallenge is the validated, immutable form of one
``WWW-Authenticate: Digest ...`` challenge. Directive values that the
response must echo (realm, nonce, opaque) are kept in their original quoted
form so they can be sent back byte for byte.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .._abnf import AuthChallenge, is_quoted_string, parse_challenges, quote, unquote
from .._types import (
    Algorithm,
    MalformedHeaderError,
    QualityOfProtection,
    UnsupportedChallengeError,
)
from .._utils import SCHEME, WWW_AUTHENTICATE, logger


def _as_quoted(raw: str | None) -> str | None:
    """Keep quoted-strings verbatim, quote bare tokens."""
    if raw is None or is_quoted_string(raw):
        return raw
    return quote(raw)


def _parse_qop(raw: str | None) -> frozenset[QualityOfProtection]:
    """
    Map a qop directive to the set of modes we support.

    An absent directive means RFC 2069 compatibility mode. Unknown tokens
    are ignored; a directive with only unknown tokens yields an empty set.
    """
    if raw is None:
        return frozenset({QualityOfProtection.UNSPECIFIED_LEGACY})

    supported = set()
    for token in unquote(raw).split(","):
        qop = QualityOfProtection.from_token(token)
        if qop is not None:
            supported.add(qop)
    return frozenset(supported)


@dataclass(frozen=True)
class DigestChallenge:
    """
    Parsed Digest authentication challenge.

    Attributes:
        quoted_realm: Protection space, as sent (quoted)
        quoted_nonce: Server nonce, as sent (quoted)
        quoted_opaque: Opaque value to echo back, as sent (quoted)
        algorithm: Hash algorithm, None when the directive was absent (MD5)
        supported_qop_types: qop modes offered by the server that we support
        stale: True if only the nonce expired (credentials were fine)
        quoted_domain: Space-separated URIs defining the protection space
    """

    quoted_realm: str
    quoted_nonce: str
    quoted_opaque: str | None = None
    algorithm: Algorithm | None = None
    supported_qop_types: frozenset[QualityOfProtection] = field(
        default_factory=lambda: frozenset({QualityOfProtection.UNSPECIFIED_LEGACY})
    )
    stale: bool = False
    quoted_domain: str | None = None

    def __post_init__(self) -> None:
        if not self.quoted_realm or not self.quoted_nonce:
            raise MalformedHeaderError("Digest challenge requires realm and nonce")
        if not self.supported_qop_types:
            raise UnsupportedChallengeError(
                "Digest challenge offers no supported qop type"
            )
        # Normalize any set passed in by a caller
        object.__setattr__(
            self, "supported_qop_types", frozenset(self.supported_qop_types)
        )

    @property
    def scheme(self) -> str:
        """Return 'Digest' scheme."""
        return SCHEME

    @property
    def realm(self) -> str:
        return unquote(self.quoted_realm)

    @property
    def nonce(self) -> str:
        return unquote(self.quoted_nonce)

    @property
    def opaque(self) -> str | None:
        if self.quoted_opaque is None:
            return None
        return unquote(self.quoted_opaque)

    @property
    def domain(self) -> str | None:
        if self.quoted_domain is None:
            return None
        return unquote(self.quoted_domain)

    @classmethod
    def from_auth_challenge(cls, challenge: AuthChallenge) -> DigestChallenge:
        """
        Validate a tokenized challenge.

        Raises:
            UnsupportedChallengeError: Wrong scheme, unknown algorithm or no usable qop
            MalformedHeaderError: Missing realm/nonce or repeated directive
        """
        if challenge.scheme.lower() != SCHEME.lower():
            raise UnsupportedChallengeError(
                f"Expected Digest challenge, got: {challenge.scheme}"
            )
        if challenge.token68 is not None:
            raise MalformedHeaderError("Digest challenge cannot carry a token68 value")

        params: dict[str, str] = {}
        for key, value in challenge.params:
            if key in params:
                raise MalformedHeaderError(f"Directive {key!r} given more than once")
            params[key] = value

        if "realm" not in params or "nonce" not in params:
            raise MalformedHeaderError("Digest challenge missing required realm or nonce")

        algorithm = None
        if "algorithm" in params:
            algorithm = Algorithm.parse(unquote(params["algorithm"]))

        supported_qop_types = _parse_qop(params.get("qop"))
        if not supported_qop_types:
            raise UnsupportedChallengeError(
                f"No supported qop type in {unquote(params['qop'])!r}"
            )

        return cls(
            quoted_realm=_as_quoted(params["realm"]),
            quoted_nonce=_as_quoted(params["nonce"]),
            quoted_opaque=_as_quoted(params.get("opaque")),
            algorithm=algorithm,
            supported_qop_types=supported_qop_types,
            stale=unquote(params.get("stale", "")).lower() == "true",
            quoted_domain=_as_quoted(params.get("domain")),
        )

    @classmethod
    def parse(cls, header_value: str) -> DigestChallenge:
        """
        Parse a single Digest challenge.

        Args:
            header_value: Header value (e.g., 'Digest realm="example.com", nonce="..."')

        Returns:
            DigestChallenge instance

        Raises:
            MalformedHeaderError: If the header is malformed or holds several challenges
            UnsupportedChallengeError: If the challenge is not one we can answer
        """
        challenges = parse_challenges(header_value)
        if not challenges:
            raise MalformedHeaderError("Empty challenge header")
        if len(challenges) > 1:
            raise MalformedHeaderError(
                f"Expected one challenge, found {len(challenges)}"
            )
        return cls.from_auth_challenge(challenges[0])

    @classmethod
    def parse_all(cls, header_value: str) -> list[DigestChallenge]:
        """
        Parse every supported Digest challenge of a header value.

        Challenges of other schemes and Digest challenges we cannot answer
        are skipped. Per RFC 7235 the server lists challenges in order of
        preference, and that order is kept.

        Raises:
            MalformedHeaderError: If the header value cannot be tokenized
        """
        result = []
        for challenge in parse_challenges(header_value):
            if challenge.scheme.lower() != SCHEME.lower():
                logger.debug(f"Skipping {challenge.scheme} challenge")
                continue
            try:
                result.append(cls.from_auth_challenge(challenge))
            except (MalformedHeaderError, UnsupportedChallengeError) as e:
                logger.debug(f"Skipping Digest challenge: {e}")
        return result

    @classmethod
    def parse_headers(
        cls, values: Iterable[str], header_name: str = WWW_AUTHENTICATE
    ) -> list[DigestChallenge]:
        """
        Collect the supported Digest challenges of several header values.

        Like parse_all(), but a malformed value is skipped instead of
        raising, so one broken header line does not hide the others.

        Args:
            values: Every value of the header, in arrival order
            header_name: Used in log messages only
        """
        result: list[DigestChallenge] = []
        for value in values:
            try:
                result.extend(cls.parse_all(value))
            except MalformedHeaderError as e:
                logger.debug(f"Ignoring malformed {header_name} header: {e}")
        return result


__all__ = ["DigestChallenge"]
