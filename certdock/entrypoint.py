"""Web container entrypoint: wait for the database, prepare Django, exec the server."""

import asyncio
import logging
import os
import shlex
import time

logger = logging.getLogger(__name__)

DEFAULT_MANAGE = "uv run python manage.py"
DB_POLL_INTERVAL = 0.1


async def tcp_open(host, port, timeout=1.0):
    """True when a TCP connection to host:port can be established."""
    try:
        _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
    except (OSError, TimeoutError):
        return False
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True


async def wait_for_database(host, port, interval=DB_POLL_INTERVAL, timeout=None):
    """Poll a raw TCP connect until the database accepts connections.

    timeout=None waits indefinitely. Returns False only on timeout.
    """
    logger.info(f"Waiting for database at {host}:{port}...")
    deadline = None if timeout is None else time.monotonic() + timeout
    while not await tcp_open(host, port):
        if deadline is not None and time.monotonic() >= deadline:
            logger.error(f"Database at {host}:{port} not reachable after {timeout}s")
            return False
        await asyncio.sleep(interval)
    logger.info("Database is up")
    return True


def manage_steps(manage=DEFAULT_MANAGE, makemigrations=False, clear_static=False):
    """manage.py commands run before the server starts, in order."""
    steps = []
    if makemigrations:
        steps.append(f"{manage} makemigrations")
    steps.append(f"{manage} migrate --noinput")
    collectstatic = f"{manage} collectstatic --noinput"
    if clear_static:
        collectstatic += " --clear"
    steps.append(collectstatic)
    return steps


async def prepare(run_cmd, env=None, manage=DEFAULT_MANAGE, makemigrations=False, clear_static=False, db_timeout=None):
    """Database wait (when DATABASE=postgres) followed by the manage.py steps.

    Returns True when every step succeeded.
    """
    env = os.environ if env is None else env
    if env.get("DATABASE") == "postgres":
        host = env.get("SQL_HOST", "db")
        port = int(env.get("SQL_PORT", "5432"))
        if not await wait_for_database(host, port, timeout=db_timeout):
            return False

    for command in manage_steps(manage, makemigrations=makemigrations, clear_static=clear_static):
        logger.info(f"Running: {command}")
        rc, _, _ = await run_cmd(command, timeout=3600)
        if rc != 0:
            logger.error(f"'{command}' failed with exit code {rc}")
            return False
    return True


def exec_command(argv, dry_run=False):
    """Replace the current process with argv (the app server). Only returns in dry-run."""
    if not argv:
        return
    if dry_run:
        logger.info(f"[dry-run] exec {shlex.join(argv)}")
        return
    logger.info(f"Starting: {shlex.join(argv)}")
    os.execvp(argv[0], argv)
