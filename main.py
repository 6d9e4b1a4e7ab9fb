#!/usr/bin/env python3
"""
Pickup Log -- contact registry and signed pickup ledger behind token auth.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 5000
  python main.py serve --reload
  python main.py create-user clerk
  python main.py create-user supervisor --role admin

Environment variables (see core/config.py for the full list):
  SECRET_KEY              Token signing secret, 32+ characters. Required unless DEBUG=true.
  DEBUG                   true auto-generates a SECRET_KEY (tokens die on restart).
  DATABASE_URL            SQLAlchemy URL. Defaults to a SQLite file beside the project.
  DEFAULT_ADMIN_PASSWORD  Password given to the seeded "admin" account.
"""

import argparse
import getpass
import sys

from core.config import get_settings
from core.errors import ConflictError


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "asgi:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
    )
    return 0


def _create_user(args: argparse.Namespace) -> int:
    from auth.passwords import PasswordHasher
    from auth.store import UserStore

    password = getpass.getpass(f"Password for {args.username}: ")
    if not password:
        print("  [!] Password must not be empty.")
        return 1
    if password != getpass.getpass("Repeat password: "):
        print("  [!] Passwords do not match.")
        return 1

    settings = get_settings()
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    store = UserStore(settings.database_url)
    try:
        user = store.create_user(args.username, hasher.hash(password), args.role)
    except ConflictError:
        print(f"  [!] User '{args.username}' already exists.")
        return 1
    finally:
        store.close()

    print(f"  Created user '{user.username}' (role: {user.role}, id: {user.id}).")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="pickuplog",
        description="Authenticated contact registry and pickup ledger.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST setting)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: PORT setting, 5000)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    serve.set_defaults(func=_serve)

    create = sub.add_parser("create-user", help="Add a login account (prompts for the password)")
    create.add_argument("username")
    create.add_argument("--role", default="clerk", help="Role stored in the account's tokens (default: clerk)")
    create.set_defaults(func=_create_user)

    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
