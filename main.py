#!/usr/bin/env python3
"""
MakeMyTrip API -- command-line entry point.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080 --reload
  python main.py encode                       # prompts for the password
  python main.py encode 's3cret' --strength 12
  python main.py matches 's3cret' '$2a$10$...'

Environment variables (see core/config.py for the full list):
  BCRYPT_STRENGTH        bcrypt cost factor used by encode and the API (default 10)
  CORS_ALLOWED_ORIGINS   JSON list of browser origins allowed to call the API
  DATABASE_URL           SQLAlchemy URL for the user store
"""

import argparse
import getpass
import sys
from typing import Optional

from auth.passwords import BCryptPasswordEncoder
from core.config import get_settings


def _read_password(value: Optional[str]) -> str:
    """Use the positional value if given, otherwise prompt without echo."""
    if value is not None:
        return value
    return getpass.getpass("Password: ")


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _cmd_encode(args: argparse.Namespace) -> int:
    strength = args.strength or get_settings().bcrypt_strength
    try:
        encoder = BCryptPasswordEncoder(strength=strength)
        print(encoder.encode(_read_password(args.password)))
    except ValueError as e:
        print(f"  [!] {e}", file=sys.stderr)
        return 2
    return 0


def _cmd_matches(args: argparse.Namespace) -> int:
    encoder = BCryptPasswordEncoder(strength=get_settings().bcrypt_strength)
    if encoder.matches(args.password, args.encoded):
        print("match")
        return 0
    print("no match")
    return 1


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="makemytrip",
        description="MakeMyTrip API server and password utilities.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py encode 's3cret'
  python main.py matches 's3cret' '$2a$10$N9qo8uLOickgx2ZMRZoMye...'
        """,
    )
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8080, help="Bind port (default: 8080)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    serve.set_defaults(func=_cmd_serve)

    encode = sub.add_parser("encode", help="Print a bcrypt hash of a password")
    encode.add_argument("password", nargs="?", help="Plaintext password (prompted for if omitted)")
    encode.add_argument(
        "--strength",
        type=int,
        default=None,
        metavar="N",
        help="bcrypt cost factor 4..31 (default: BCRYPT_STRENGTH setting)",
    )
    encode.set_defaults(func=_cmd_encode)

    matches = sub.add_parser("matches", help="Check a password against a bcrypt hash (exit 0 on match)")
    matches.add_argument("password", help="Plaintext password")
    matches.add_argument("encoded", help="Stored bcrypt hash")
    matches.set_defaults(func=_cmd_matches)

    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
