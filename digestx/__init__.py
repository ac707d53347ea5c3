"""digestx - HTTP Digest access authentication (RFC 2617 / RFC 7616) for Python."""

from __future__ import annotations

# Header grammar helpers
from ._abnf import (
    AuthChallenge,
    is_quoted_string,
    parse_challenges,
    quote,
    unquote,
)

# Orchestration
from ._auth import (
    DigestAuthentication,
    authorize_request,
    challenge_response_for,
    find_challenges,
)

# Models
from ._models import (
    DigestChallenge,
    DigestChallengeResponse,
    Headers,
    Request,
    Response,
)

# Types, configuration and exceptions
from ._types import (
    Algorithm,
    DigestConfig,
    DigestError,
    HeaderTypes,
    InsufficientInformationError,
    MalformedHeaderError,
    QualityOfProtection,
    UnsupportedAlgorithmError,
    UnsupportedChallengeError,
)

# Constants and logging
from ._utils import (
    AUTHORIZATION,
    PROXY_AUTHENTICATE,
    PROXY_AUTHORIZATION,
    WWW_AUTHENTICATE,
    configure_logging,
)

__version__ = "0.1.0"

__all__ = [
    # Grammar helpers
    "AuthChallenge",
    "quote",
    "unquote",
    "is_quoted_string",
    "parse_challenges",
    # Authentication - Digest
    "DigestChallenge",
    "DigestChallengeResponse",
    # Authentication - Orchestration
    "DigestAuthentication",
    "authorize_request",
    "challenge_response_for",
    "find_challenges",
    # Headers
    "Headers",
    # Messages
    "Request",
    "Response",
    # Types
    "Algorithm",
    "QualityOfProtection",
    "DigestConfig",
    "HeaderTypes",
    # Exceptions
    "DigestError",
    "MalformedHeaderError",
    "UnsupportedChallengeError",
    "UnsupportedAlgorithmError",
    "InsufficientInformationError",
    # Constants
    "AUTHORIZATION",
    "PROXY_AUTHORIZATION",
    "WWW_AUTHENTICATE",
    "PROXY_AUTHENTICATE",
    # Logging
    "configure_logging",
    # Metadata
    "__version__",
]
