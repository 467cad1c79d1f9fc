"""Port conflict resolution for the reserved proxy ports.

Least destructive first: system web servers, then containers publishing the
ports, then the project's own compose stacks. Ports are verified free by
direct inspection (lsof); the container runtime is restarted once if a
conflict survives.
"""

import asyncio
import logging
import shlex
from dataclasses import dataclass

from certdock.deploy.compose import LOCAL_COMPOSE_FILE, TEMP_COMPOSE_FILE, compose_down

logger = logging.getLogger(__name__)

RESERVED_PORTS = (80, 443)
SYSTEM_WEB_SERVERS = ("apache2", "nginx")
RUNTIME_SERVICE = "docker"
RESTART_DELAY = 5


@dataclass
class PortHolder:
    """A process listening on a reserved port, as reported by lsof."""

    port: int
    command: str
    pid: int
    user: str = ""

    def __str__(self):
        user = f", user {self.user}" if self.user else ""
        return f"port {self.port}: {self.command} (pid {self.pid}{user})"


def _sudo(command, sudo):
    return f"sudo {command}" if sudo else command


def lsof_cmd(port, sudo=True):
    return _sudo(f"lsof -nP -iTCP:{int(port)} -sTCP:LISTEN", sudo)


def parse_lsof(output, port):
    """Parse `lsof` listing into PortHolders, one per distinct pid.

    Expected columns: COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME.
    """
    holders = []
    seen = set()
    for line in (output or "").splitlines():
        fields = line.split()
        if len(fields) < 3 or fields[0] == "COMMAND" or not fields[1].isdigit():
            continue
        pid = int(fields[1])
        if pid in seen:
            continue
        seen.add(pid)
        holders.append(PortHolder(port=port, command=fields[0], pid=pid, user=fields[2]))
    return holders


class PortInspectionError(Exception):
    """lsof could not answer for a port (missing binary, sudo refused, ...)."""


def _inspection_errors(stderr):
    # lsof prints "lsof: WARNING: can't stat() ..." for unreadable mounts even on a clean answer
    return [line for line in (stderr or "").splitlines() if line.strip() and not line.startswith("lsof: WARNING")]


async def find_port_holders(run_cmd, ports=RESERVED_PORTS, sudo=True):
    """List processes listening on any of the ports.

    lsof exits 0 with a listing, or 1 with no output when nothing matches.
    Any other answer raises PortInspectionError.
    """
    holders = []
    for port in ports:
        rc, stdout, stderr = await run_cmd(lsof_cmd(port, sudo), stream=False, timeout=60)
        errors = _inspection_errors(stderr)
        if rc not in (0, 1) or (rc == 1 and errors):
            detail = errors[0] if errors else f"lsof exited with code {rc}"
            raise PortInspectionError(f"Could not inspect port {port}: {detail}")
        holders += parse_lsof(stdout, port)
    return holders


async def stop_system_webservers(run_cmd, services=SYSTEM_WEB_SERVERS, sudo=True):
    """Stop and disable active system web servers. Returns the names stopped."""
    stopped = []
    for service in services:
        rc, _, _ = await run_cmd(_sudo(f"systemctl is-active --quiet {shlex.quote(service)}", sudo), stream=False, timeout=60)
        if rc != 0:
            continue
        logger.warning(f"Stopping system {service}...")
        await run_cmd(_sudo(f"systemctl stop {shlex.quote(service)}", sudo), timeout=120)
        await run_cmd(_sudo(f"systemctl disable {shlex.quote(service)}", sudo), timeout=120)
        logger.info(f"{service} stopped and disabled")
        stopped.append(service)
    return stopped


async def stop_port_containers(run_cmd, ports=RESERVED_PORTS):
    """Stop running containers that publish any of the ports. Returns container names stopped."""
    stopped = []
    for port in ports:
        rc, stdout, _ = await run_cmd(
            f"docker ps --format '{{{{.Names}}}}' --filter publish={int(port)}", stream=False, timeout=60
        )
        names = [n for n in stdout.split() if n not in stopped] if rc == 0 else []
        if not names:
            continue
        logger.warning(f"Stopping containers using port {port}: {', '.join(names)}")
        await run_cmd("docker stop " + " ".join(shlex.quote(n) for n in names), timeout=300)
        stopped += names
    return stopped


async def stop_project_stacks(ws, site):
    """Tolerant `down` of the project's own stacks (base, base + override, bootstrap)."""
    stacks = [
        [site.compose.base_file],
        [site.compose.base_file, LOCAL_COMPOSE_FILE],
        [TEMP_COMPOSE_FILE],
    ]
    for files in stacks:
        if all(ws.exists(f) for f in files):
            await ws.run_cmd(compose_down(site, files), timeout=300)


async def restart_runtime(run_cmd, sudo=True, delay=RESTART_DELAY, sleep=asyncio.sleep):
    logger.info("Restarting Docker service...")
    await run_cmd(_sudo(f"systemctl restart {RUNTIME_SERVICE}", sudo), timeout=300)
    await sleep(delay)


async def resolve_port_conflicts(ws, site, ports=RESERVED_PORTS, sudo=True, restart_delay=RESTART_DELAY, sleep=asyncio.sleep):
    """Free the reserved ports. Returns True when all ports are free afterwards.

    Nothing is stopped when the first inspection finds the ports free. A port
    that cannot be inspected counts as a failure.
    """
    try:
        return await _resolve(ws, site, ports, sudo, restart_delay, sleep)
    except PortInspectionError as e:
        logger.error(str(e))
        return False


async def _resolve(ws, site, ports, sudo, restart_delay, sleep):
    port_list = ", ".join(str(p) for p in ports)

    if not await find_port_holders(ws.run_cmd, ports, sudo=sudo):
        logger.info(f"Ports {port_list} are free.")
        return True

    logger.info("1. Checking system web servers...")
    await stop_system_webservers(ws.run_cmd, sudo=sudo)

    logger.info("2. Stopping conflicting containers...")
    await stop_port_containers(ws.run_cmd, ports)
    await stop_project_stacks(ws, site)

    logger.info(f"3. Verifying ports {port_list} are free...")
    holders = await find_port_holders(ws.run_cmd, ports, sudo=sudo)
    if holders:
        for holder in holders:
            logger.warning(f"Still in use: {holder}")
        logger.info("4. Conflicts persist; restarting the container runtime once...")
        await restart_runtime(ws.run_cmd, sudo=sudo, delay=restart_delay, sleep=sleep)
        holders = await find_port_holders(ws.run_cmd, ports, sudo=sudo)

    if holders:
        logger.error("Port conflicts still exist. Manual intervention needed:")
        for holder in holders:
            logger.error(f"  {holder}")
        return False

    logger.info(f"Ports {port_list} are free.")
    return True
