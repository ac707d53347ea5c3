"""
Type definitions and aliases for HTTP Digest authentication.

This module centralizes the closed enumerations (algorithms and quality of
protection), the configuration dataclass and the exception hierarchy used
throughout the library.
"""

from __future__ import annotations

import typing
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Optional

if typing.TYPE_CHECKING:
    from ._models._header import Headers


# =============================================================================
# Header Types
# =============================================================================

HeaderTypes = typing.Union[
    "Headers",
    Mapping[str, str],
]


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class DigestConfig:
    """Configuration for challenge responses."""

    # Random bytes per generated client nonce (rendered as hex)
    client_nonce_bytes: int = 8

    # Charset used to turn A1/A2 strings into bytes before hashing
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        if self.client_nonce_bytes < 1:
            raise ValueError("client_nonce_bytes must be positive")


# =============================================================================
# Exceptions
# =============================================================================


class DigestError(Exception):
    """Base exception for digest authentication errors."""

    pass


class MalformedHeaderError(DigestError, ValueError):
    """Raised when a challenge header cannot be tokenized or lacks a mandatory directive."""

    pass


class UnsupportedChallengeError(DigestError, ValueError):
    """Raised when a challenge uses a scheme, algorithm or qop we cannot answer."""

    pass


class UnsupportedAlgorithmError(UnsupportedChallengeError):
    """Raised when an algorithm token is not one of the supported ones."""

    def __init__(self, algorithm: object) -> None:
        super().__init__(f"Unsupported algorithm: {algorithm}")
        self.algorithm = algorithm


class InsufficientInformationError(DigestError):
    """Raised when a header value is requested before a mandatory value is set."""

    def __init__(self, message: str, field: str) -> None:
        super().__init__(message)
        self.field = field


# =============================================================================
# Digest Enumerations (RFC 2617 / RFC 7616)
# =============================================================================


class Algorithm(Enum):
    """
    Digest algorithms we can respond to.

    The "-sess" suffix only changes how A1 is derived; the hash primitive is
    the same as for the base algorithm.
    """

    MD5 = "MD5"
    MD5_SESS = "MD5-sess"
    SHA_256 = "SHA-256"
    SHA_256_SESS = "SHA-256-sess"

    @classmethod
    def parse(cls, token: Algorithm | str) -> Algorithm:
        """
        Look up an algorithm by its exact wire token.

        Tokens are compared as sent, so "md5" or " MD5 " are not MD5 and
        the value echoed in a response is the one the challenge supplied.

        Raises:
            UnsupportedAlgorithmError: If the token is not supported
        """
        if isinstance(token, cls):
            return token
        for member in cls:
            if member.value == token:
                return member
        raise UnsupportedAlgorithmError(token)

    @property
    def is_session(self) -> bool:
        """True for the "-sess" variants."""
        return self in (Algorithm.MD5_SESS, Algorithm.SHA_256_SESS)

    @property
    def hash_name(self) -> str:
        """Name of the hashlib constructor backing this algorithm."""
        if self in (Algorithm.MD5, Algorithm.MD5_SESS):
            return "md5"
        return "sha256"

    def __str__(self) -> str:
        return self.value


class QualityOfProtection(Enum):
    """
    Quality of protection (qop) modes.

    UNSPECIFIED_LEGACY stands for a challenge without any qop directive
    (RFC 2069 compatibility); it has no wire token.
    """

    AUTH = "auth"
    AUTH_INT = "auth-int"
    UNSPECIFIED_LEGACY = None

    @property
    def qop_value(self) -> Optional[str]:
        """Token used in the qop directive, None for the legacy mode."""
        return self.value

    @classmethod
    def from_token(cls, token: str) -> Optional[QualityOfProtection]:
        """Map a qop token to a member, None for unrecognized tokens."""
        wanted = token.strip().lower()
        for member in (cls.AUTH, cls.AUTH_INT):
            if member.value == wanted:
                return member
        return None


# =============================================================================
# Type Aliases
# =============================================================================

AlgorithmLike = typing.Union[Algorithm, str, None]
QopSet = typing.AbstractSet[QualityOfProtection]


# =============================================================================
# Re-exports for convenience
# =============================================================================

__all__ = [
    # Header types
    "HeaderTypes",
    # Configuration
    "DigestConfig",
    # Exceptions
    "DigestError",
    "MalformedHeaderError",
    "UnsupportedChallengeError",
    "UnsupportedAlgorithmError",
    "InsufficientInformationError",
    # Enums
    "Algorithm",
    "QualityOfProtection",
    # Type aliases
    "AlgorithmLike",
    "QopSet",
]
