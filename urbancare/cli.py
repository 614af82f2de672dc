"""CLI for UrbanCare: initialize the database, provision accounts, run the server."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import sys


async def cmd_init_db(args):
    from urbancare.db.engine import create_all

    await create_all()
    print("Database tables created")


async def cmd_create_user(args):
    """Create a citizen, worker or authority account."""
    from urbancare.db.engine import async_session_factory, create_all
    from urbancare.errors import ValidationError
    from urbancare.services.accounts import create_account

    await create_all()

    password = args.password
    if not password:
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match")
            sys.exit(1)

    async with async_session_factory() as db:
        try:
            user = await create_account(
                db,
                args.email,
                password,
                args.role,
                full_name=args.name,
                department=args.department or None,
                employee_id=args.employee_id or None,
            )
        except ValidationError as e:
            print(e.message)
            sys.exit(1)

    print(f"Created {user.role}: {user.email} (id={user.id})")


def cmd_serve(args):
    import uvicorn

    uvicorn.run("urbancare.main:app", host=args.host, port=args.port, reload=args.reload)


def main():
    parser = argparse.ArgumentParser(description="UrbanCare CLI")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init-db", help="Create database tables")

    cu = subparsers.add_parser("create-user", help="Create an account")
    cu.add_argument("--role", required=True, choices=["citizen", "worker", "authority"])
    cu.add_argument("--email", required=True)
    cu.add_argument("--password", default="", help="Password (prompted if not given)")
    cu.add_argument("--name", default="", help="Full name")
    cu.add_argument("--department", default="", help="Department (required for workers)")
    cu.add_argument("--employee-id", default="", help="Employee id (required for workers)")

    sv = subparsers.add_parser("serve", help="Run the API server")
    sv.add_argument("--host", default="127.0.0.1")
    sv.add_argument("--port", type=int, default=8000)
    sv.add_argument("--reload", action="store_true")

    args = parser.parse_args()

    from urbancare.config import get_settings

    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "init-db":
        asyncio.run(cmd_init_db(args))
    elif args.command == "create-user":
        asyncio.run(cmd_create_user(args))
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
