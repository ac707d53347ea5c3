#!/usr/bin/env python3
"""
Digest Walkthrough - answering a camera's 401 challenge offline

Replays the login exchange of a network camera (GET /cgi-bin/session.cgi)
without touching the network:

  1. A canned 401 Unauthorized response carrying a WWW-Authenticate header
  2. Challenge parsing and selection
  3. Authorization header for the retried request
  4. Reuse of the same nonce for a follow-up POST (nonce count 2)
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from rich import box
from rich.panel import Panel
from rich.table import Table

from digestx import DigestAuthentication, Request, Response, configure_logging
from digestx._utils import console, logger

CHALLENGE = (
    'Digest realm="GY-HM200", qop="auth", algorithm=MD5, '
    'nonce="6c3f8e5b2a9d4c1e", opaque="c4ca4238a0b92382"'
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--username", default="jvc")
    parser.add_argument("--password", default="0000")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    return parser


def _show_challenge(auth: DigestAuthentication) -> None:
    challenge = auth.challenge
    table = Table(title="Challenge", box=box.SIMPLE)
    table.add_column("Directive", style="cyan")
    table.add_column("Value")
    table.add_row("realm", challenge.realm)
    table.add_row("nonce", challenge.nonce)
    table.add_row("opaque", challenge.opaque or "-")
    table.add_row("algorithm", str(challenge.algorithm or "MD5 (default)"))
    table.add_row(
        "qop", ", ".join(sorted(str(q.qop_value) for q in challenge.supported_qop_types))
    )
    console.print(table)


def main() -> int:
    args = _build_parser().parse_args()
    configure_logging(debug=args.debug)

    login = Request("GET", "/cgi-bin/session.cgi")
    unauthorized = Response(401, headers={"WWW-Authenticate": CHALLENGE}, request=login)

    auth = DigestAuthentication.from_response(unauthorized)
    auth.set_username(args.username).set_password(args.password)
    if not auth.can_respond():
        logger.error("No supported digest challenge")
        return 1

    _show_challenge(auth)

    auth.authorize(login)
    console.print(
        Panel(login.headers[auth.header_name], title=f"{login.method} {login.uri}")
    )

    command = Request(
        "POST",
        "/cgi-bin/cmd.cgi",
        content=b'{"Request": {"Command": "GetCamStatus"}}',
    )
    auth.authorize(command)
    console.print(
        Panel(command.headers[auth.header_name], title=f"{command.method} {command.uri}")
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
