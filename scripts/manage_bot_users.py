"""Manage the users allowed to run bot actions.

Usage:
    python scripts/manage_bot_users.py init
    python scripts/manage_bot_users.py reset
    python scripts/manage_bot_users.py grant <slack-user-name> <action> [<action> ...]
    python scripts/manage_bot_users.py revoke <slack-user-name>
    python scripts/manage_bot_users.py show <slack-user-name>

Environment:
    Ensure DATABASE_URL (and other required settings) are available in
    the current shell before running this script.
"""

from __future__ import annotations

import argparse
from typing import Sequence

from slack_command_bridge.db import Base, get_engine, init_db
from slack_command_bridge.errors import UserNotFoundError
from slack_command_bridge.permissions import PermissionStore


def reset_database() -> None:
    engine = get_engine()
    Base.metadata.drop_all(engine)
    init_db()
    print("Permission store reset.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init", help="create the bot_users table")
    commands.add_parser("reset", help="drop and recreate every table")

    grant = commands.add_parser("grant", help="allow a user to run actions")
    grant.add_argument("user_name")
    grant.add_argument("actions", nargs="+")

    revoke = commands.add_parser("revoke", help="remove a user")
    revoke.add_argument("user_name")

    show = commands.add_parser("show", help="print a user's permitted actions")
    show.add_argument("user_name")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.command == "init":
        init_db()
        print("Permission store initialised.")
        return 0
    if args.command == "reset":
        reset_database()
        return 0

    store = PermissionStore()
    if args.command == "grant":
        principal = store.grant(args.user_name, args.actions)
        print(f"{principal.user_name}: {', '.join(sorted(principal.permitted_action_bases))}")
        return 0
    if args.command == "revoke":
        if store.revoke(args.user_name):
            print(f"{args.user_name} removed.")
            return 0
        print(f"{args.user_name} was not registered.")
        return 1

    try:
        principal = store.lookup(args.user_name)
    except UserNotFoundError as exc:
        print(str(exc))
        return 1
    print(f"{principal.user_name}: {', '.join(sorted(principal.permitted_action_bases)) or '(none)'}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
