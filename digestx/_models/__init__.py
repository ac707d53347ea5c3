"""
Digest Models Package.

This package contains the challenge and challenge-response models, plus the
headers container and minimal HTTP message holders they work with.
"""

from ._challenge import DigestChallenge
from ._header import Headers
from ._message import Request, Response
from ._response import DigestChallengeResponse

__all__ = [
    # Headers
    "Headers",
    # Messages
    "Request",
    "Response",
    # Authentication - Digest
    "DigestChallenge",
    "DigestChallengeResponse",
]
