"""fix-ports command: free the reserved proxy ports."""

import asyncio
import logging
import sys

from certdock.commands.common import add_project_args, load_site_or_exit, workspace_for
from certdock.ports import RESERVED_PORTS, resolve_port_conflicts

logger = logging.getLogger(__name__)


def handle_fix_ports(args):
    """Handle the fix-ports command."""
    asyncio.run(_handle_fix_ports(args))


def _parse_ports(value):
    """Parse a comma-separated port list. Exits 1 on a malformed entry."""
    try:
        ports = [int(p) for p in value.split(",")]
    except ValueError:
        logger.error(f"Invalid --ports value: '{value}' (expected e.g. 80,443)")
        sys.exit(1)
    for port in ports:
        if not 1 <= port <= 65535:
            logger.error(f"Invalid port: {port}")
            sys.exit(1)
    return ports


async def _handle_fix_ports(args):
    site = load_site_or_exit(args)
    ports = _parse_ports(args.ports) if args.ports else list(RESERVED_PORTS)
    logger.info(f"Fixing port conflicts on {', '.join(str(p) for p in ports)}...")
    ok = await resolve_port_conflicts(workspace_for(args), site, ports=ports, sudo=not args.no_sudo)
    if not ok:
        sys.exit(1)
    logger.info("Port conflicts resolved. You can now run 'certdock deploy'.")


def register_ports_command(subparsers):
    """Register the fix-ports subcommand."""
    parser = subparsers.add_parser(
        "fix-ports",
        help="Stop services and containers holding ports 80/443",
    )
    add_project_args(parser)
    parser.add_argument("--ports", default=None, help="Comma-separated ports (default: 80,443)")
    parser.add_argument("--no-sudo", action="store_true", help="Run systemctl/lsof without sudo")
    parser.set_defaults(func=handle_fix_ports)
