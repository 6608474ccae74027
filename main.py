#!/usr/bin/env python3
"""
Operator CLI for the auth store.

Self-registration always creates role "user"; this is how the first admin
account gets made, and how a leaked refresh token gets killed without going
through the API.

Usage:
  python main.py create-user admin@example.com --role admin
  python main.py create-user bot@example.com --password 's3cret-pass' --inactive
  python main.py revoke <refresh-token>
  python main.py issue-token <user-id> --role admin --ttl 5

Environment variables: same as the API (JWT_SECRET, DATABASE_URL, ...),
read through core.config.get_settings().
"""

from __future__ import annotations

import argparse
import getpass
import sys
import uuid
from datetime import timedelta
from typing import Optional

from pydantic import ValidationError

from api.main import build_auth_service
from api.models import PASSWORD_MAX_LENGTH, password_fits_bcrypt
from auth.errors import AuthError, ConstraintViolation
from auth.models import User
from auth.service import AuthService
from core.config import get_settings


def _read_password(given: Optional[str]) -> str:
    if given:
        return given
    first = getpass.getpass("Password: ")
    second = getpass.getpass("Repeat password: ")
    if first != second:
        raise SystemExit("  [!] Passwords do not match.")
    return first


def cmd_create_user(service: AuthService, args: argparse.Namespace) -> int:
    password = _read_password(args.password)
    if len(password) < 8 or not password_fits_bcrypt(password):
        print(
            f"  [!] Password must be at least 8 characters and at most {PASSWORD_MAX_LENGTH} bytes.",
            file=sys.stderr,
        )
        return 1
    user = User(
        id=str(uuid.uuid4()),
        email=args.email,
        password_hash=service.hasher.hash(password),
        role=args.role,
        is_active=not args.inactive,
    )
    try:
        service.users.create_user(user)
    except ConstraintViolation:
        print(f"  [!] A user with email '{args.email}' already exists.", file=sys.stderr)
        return 1
    print(f"  Created {user.role} {user.email} (id {user.id})")
    return 0


def cmd_revoke(service: AuthService, args: argparse.Namespace) -> int:
    service.revoke_session(args.token)
    print("  Session revoked (or was not active).")
    return 0


def cmd_issue_token(service: AuthService, args: argparse.Namespace) -> int:
    token, expires_at = service.codec.issue(args.user_id, args.role, timedelta(minutes=args.ttl))
    print(token)
    print(f"  expires {expires_at.isoformat()}", file=sys.stderr)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="main.py", description="Auth store administration.")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-user", help="Create a user with any role.")
    create.add_argument("email")
    create.add_argument("--role", default="user")
    create.add_argument("--password", help="Prompted for when omitted.")
    create.add_argument("--inactive", action="store_true", help="Create the account disabled.")
    create.set_defaults(handler=cmd_create_user)

    revoke = sub.add_parser("revoke", help="Revoke a refresh session by token value.")
    revoke.add_argument("token")
    revoke.set_defaults(handler=cmd_revoke)

    issue = sub.add_parser("issue-token", help="Print a signed access token (debugging).")
    issue.add_argument("user_id")
    issue.add_argument("--role", default="user")
    issue.add_argument("--ttl", type=int, default=15, help="Lifetime in minutes (default 15).")
    issue.set_defaults(handler=cmd_issue_token)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        service = build_auth_service(get_settings())
    except ValidationError as exc:
        # Settings refuse to load, e.g. JWT_SECRET missing outside DEBUG.
        for error in exc.errors():
            print(f"  [!] {error['msg']}", file=sys.stderr)
        return 1
    except AuthError as exc:
        print(f"  [!] {exc.message}", file=sys.stderr)
        return 1
    try:
        return args.handler(service, args)
    except AuthError as exc:
        print(f"  [!] {exc.message}", file=sys.stderr)
        return 1
    finally:
        service.users.close()


if __name__ == "__main__":
    sys.exit(main())
