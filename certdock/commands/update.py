"""Update command: pull latest code and rebuild the HTTPS stack."""

import asyncio
import sys

from certdock.commands.common import add_project_args, load_site_or_exit, workspace_for
from certdock.orchestrate import run_update


def handle_update(args):
    """Handle the update command."""
    asyncio.run(_handle_update(args))


async def _handle_update(args):
    site = load_site_or_exit(args)
    ok = await run_update(workspace_for(args), site, branch=args.branch, pull=not args.no_pull)
    if not ok:
        sys.exit(1)


def register_update_command(subparsers):
    """Register the update subcommand."""
    parser = subparsers.add_parser("update", help="Pull latest code and restart the deployment")
    add_project_args(parser)
    parser.add_argument("--branch", default="main", help="Git branch to pull (default: main)")
    parser.add_argument("--no-pull", action="store_true", help="Rebuild without pulling")
    parser.set_defaults(func=handle_update)
