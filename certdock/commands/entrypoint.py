"""Entrypoint command: run inside the web container before the app server."""

import argparse
import asyncio
import sys

from certdock.deploy.local import make_run_cmd
from certdock.entrypoint import DEFAULT_MANAGE, exec_command, prepare


def handle_entrypoint(args):
    """Handle the entrypoint command."""
    ok = asyncio.run(_prepare(args))
    if not ok:
        sys.exit(1)
    argv = list(args.server_command)
    if argv and argv[0] == "--":
        argv = argv[1:]
    exec_command(argv, dry_run=args.dry_run)


async def _prepare(args):
    run_cmd = make_run_cmd(args.app_dir, dry_run=args.dry_run)
    # dry-run never blocks on the database
    env = {} if args.dry_run else None
    return await prepare(
        run_cmd,
        env=env,
        manage=args.manage,
        makemigrations=args.makemigrations,
        clear_static=args.clear_static,
        db_timeout=args.db_timeout,
    )


def register_entrypoint_command(subparsers):
    """Register the entrypoint subcommand."""
    parser = subparsers.add_parser(
        "entrypoint",
        help="Wait for the database, migrate, collect static files, then exec the server command",
    )
    parser.add_argument("--app-dir", default=".", help="Django project directory (default: .)")
    parser.add_argument("--manage", default=DEFAULT_MANAGE, help=f"manage.py invocation (default: '{DEFAULT_MANAGE}')")
    parser.add_argument("--makemigrations", action="store_true", help="Run makemigrations before migrate")
    parser.add_argument("--clear-static", action="store_true", help="Pass --clear to collectstatic")
    parser.add_argument("--db-timeout", type=float, default=None, help="Give up waiting for the database after N seconds")
    parser.add_argument("--dry-run", action="store_true", help="Print commands without executing")
    parser.add_argument("server_command", nargs=argparse.REMAINDER, help="Command to exec, e.g. -- gunicorn app.wsgi")
    parser.set_defaults(func=handle_entrypoint)
