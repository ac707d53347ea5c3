"""
RFC 2616 / RFC 7235 header grammar helpers.

Only the pieces the Digest scheme needs are implemented:

- quoted-string quoting and unquoting
- challenge lists, possibly holding several schemes in one header value,
  each with its auth-params (``key=token`` / ``key="quoted string"``)
"""

from __future__ import annotations

import re
import typing

from ._types import MalformedHeaderError

_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
# Unquoted auth-param value: a token, leniently also base64 with padding
_BARE_VALUE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z/]+=*")
_QUOTED_STRING = re.compile(r'"(?:[^"\\]|\\.)*"', re.DOTALL)
_TOKEN68 = re.compile(r"[ \t]+([A-Za-z0-9\-._~+/]+=*)[ \t]*(?=,|$)")
_OWS = re.compile(r"[ \t\r\n]*")
_EQUALS = re.compile(r"[ \t]*=[ \t]*")
_ESCAPED = re.compile(r"\\(.)", re.DOTALL)


class AuthChallenge(typing.NamedTuple):
    """One tokenized challenge: scheme plus raw (still quoted) parameters."""

    scheme: str
    params: tuple[tuple[str, str], ...]
    token68: str | None = None


def quote(value: str) -> str:
    """
    Render a string as an RFC 2616 quoted-string.

    Example:
        >>> quote('say "hi"')
        '"say \\\\"hi\\\\""'
    """
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def unquote(value: str) -> str:
    """
    Reverse quote().

    Values without surrounding quotes are returned unchanged, since some
    servers send bare tokens where a quoted-string is expected.
    """
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return _ESCAPED.sub(r"\1", value[1:-1])
    return value


def is_quoted_string(value: str) -> bool:
    """True if value is a complete RFC 7230 quoted-string."""
    return _QUOTED_STRING.fullmatch(value) is not None


def _read_param(text: str, pos: int) -> tuple[str, str, int] | None:
    """Read ``key=value`` at pos. Returns None if no ``=`` follows the key."""
    key = _TOKEN.match(text, pos)
    if key is None:
        return None
    equals = _EQUALS.match(text, key.end())
    if equals is None:
        return None
    value = _QUOTED_STRING.match(text, equals.end()) or _BARE_VALUE.match(
        text, equals.end()
    )
    if value is None:
        raise MalformedHeaderError(
            f"Missing or unterminated value for parameter {key.group()!r}"
        )
    return key.group().lower(), value.group(), value.end()


def parse_challenges(header_value: str) -> list[AuthChallenge]:
    """
    Tokenize a WWW-Authenticate / Proxy-Authenticate header value.

    A single header value may carry several challenges:

        Basic realm="simple", Digest realm="x", nonce="y", Negotiate abc==

    Args:
        header_value: Raw header value

    Returns:
        Challenges in header order

    Raises:
        MalformedHeaderError: If the value does not follow the grammar
    """
    challenges: list[AuthChallenge] = []
    scheme: str | None = None
    params: list[tuple[str, str]] = []
    token68: str | None = None

    text = header_value
    pos = 0
    expect_separator = False

    while True:
        pos = _OWS.match(text, pos).end()
        if pos >= len(text):
            break

        if text[pos] == ",":
            pos += 1
            expect_separator = False
            continue

        if expect_separator:
            raise MalformedHeaderError(f"Expected ',' at position {pos}")

        param = _read_param(text, pos)
        if param is not None:
            if scheme is None:
                raise MalformedHeaderError("auth-param found before any auth-scheme")
            if token68 is not None:
                raise MalformedHeaderError(
                    f"{scheme} challenge mixes token68 and auth-params"
                )
            key, value, pos = param
            params.append((key, value))
            expect_separator = True
            continue

        name = _TOKEN.match(text, pos)
        if name is None:
            raise MalformedHeaderError(
                f"Unexpected character {text[pos]!r} at position {pos}"
            )

        # A bare token starts a new challenge
        if scheme is not None:
            challenges.append(AuthChallenge(scheme, tuple(params), token68))
        scheme = name.group()
        params = []
        token68 = None
        pos = name.end()

        blob = _TOKEN68.match(text, pos)
        if blob is not None:
            token68 = blob.group(1)
            pos = blob.end()
            expect_separator = True

    if scheme is not None:
        challenges.append(AuthChallenge(scheme, tuple(params), token68))

    return challenges


__all__ = [
    "AuthChallenge",
    "is_quoted_string",
    "parse_challenges",
    "quote",
    "unquote",
]
