"""Local transport: run commands and read/write files in the project directory."""

import asyncio
import logging
import os
import shutil
from dataclasses import dataclass
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


def make_run_cmd(project_dir, dry_run=False):
    """Create a run_cmd callable for local execution.

    The callable returns (returncode, stdout, stderr) and never raises for a
    failed command; timeouts and spawn errors map to returncode 1.
    """

    async def run_cmd(command, stream=True, timeout=600, log_output=False):
        if dry_run:
            logger.info(f"[dry-run] {command}")
            return 0, "", ""

        logger.debug(f"$ {command}")
        proc = None
        try:
            use_pipe = not stream or log_output
            proc = await asyncio.create_subprocess_shell(
                command,
                cwd=project_dir,
                stdout=asyncio.subprocess.PIPE if use_pipe else None,
                stderr=asyncio.subprocess.PIPE if use_pipe else None,
            )

            if log_output:
                stdout_lines, stderr_lines = [], []

                async def _read_stream(pipe, lines, level):
                    async for raw_line in pipe:
                        line = raw_line.decode(errors="replace").rstrip("\n")
                        logger.log(level, line)
                        lines.append(line)

                await asyncio.wait_for(
                    asyncio.gather(
                        _read_stream(proc.stdout, stdout_lines, logging.INFO),
                        _read_stream(proc.stderr, stderr_lines, logging.INFO),
                        proc.wait(),
                    ),
                    timeout=timeout,
                )
                return proc.returncode, "\n".join(stdout_lines), "\n".join(stderr_lines)

            stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
            stdout = stdout_bytes.decode(errors="replace") if stdout_bytes else ""
            stderr = stderr_bytes.decode(errors="replace") if stderr_bytes else ""
            return proc.returncode, stdout, stderr
        except TimeoutError:
            logger.error(f"Command timed out after {timeout}s: {command}")
            if proc is not None:
                proc.kill()
                await proc.wait()
            return 1, "", ""
        except OSError as e:
            logger.error(f"Error running command: {e}")
            return 1, "", str(e)

    return run_cmd


def make_write_file(project_dir, dry_run=False):
    """Create a write_file callable that overwrites files under project_dir."""

    async def write_file(path, content):
        full_path = os.path.join(project_dir, path)
        if dry_run:
            logger.info(f"[dry-run] write {full_path}")
            return
        os.makedirs(os.path.dirname(full_path) or ".", exist_ok=True)
        with open(full_path, "w") as f:
            f.write(content)

    return write_file


def make_read_file(project_dir):
    """Create a read_file callable. Returns None for a missing file.

    Reads are side-effect free, so they run in dry-run mode too.
    """

    async def read_file(path):
        full_path = os.path.join(project_dir, path)
        if not os.path.isfile(full_path):
            return None
        with open(full_path) as f:
            return f.read()

    return read_file


def make_remove_path(project_dir, dry_run=False):
    """Create a remove_path callable for files and directories (missing is fine)."""

    async def remove_path(path):
        full_path = os.path.join(project_dir, path)
        if dry_run:
            logger.info(f"[dry-run] rm -rf {full_path}")
            return
        if os.path.isdir(full_path) and not os.path.islink(full_path):
            shutil.rmtree(full_path)
        elif os.path.lexists(full_path):
            os.remove(full_path)

    return remove_path


def make_move_file(project_dir, dry_run=False):
    """Create a move_file callable (rename within project_dir, overwriting dst)."""

    async def move_file(src, dst):
        src_path = os.path.join(project_dir, src)
        dst_path = os.path.join(project_dir, dst)
        if dry_run:
            logger.info(f"[dry-run] mv {src_path} {dst_path}")
            return
        os.replace(src_path, dst_path)

    return move_file


def make_make_dirs(project_dir, dry_run=False):
    """Create a make_dirs callable (mkdir -p)."""

    async def make_dirs(*paths):
        for path in paths:
            full_path = os.path.join(project_dir, path)
            if dry_run:
                logger.info(f"[dry-run] mkdir -p {full_path}")
                continue
            os.makedirs(full_path, exist_ok=True)

    return make_dirs


@dataclass
class Workspace:
    """Callables bound to one project directory. Orchestration only touches the host through these."""

    root: str
    run_cmd: Callable[..., Awaitable[tuple[int, str, str]]]
    write_file: Callable[[str, str], Awaitable[None]]
    read_file: Callable[[str], Awaitable[str | None]]
    remove_path: Callable[[str], Awaitable[None]]
    move_file: Callable[[str, str], Awaitable[None]]
    make_dirs: Callable[..., Awaitable[None]]
    dry_run: bool = False

    def exists(self, path) -> bool:
        return os.path.exists(os.path.join(self.root, path))


def make_workspace(project_dir, dry_run=False) -> Workspace:
    """Bind all local transport callables to project_dir."""
    root = os.path.abspath(project_dir)
    return Workspace(
        root=root,
        run_cmd=make_run_cmd(root, dry_run=dry_run),
        write_file=make_write_file(root, dry_run=dry_run),
        read_file=make_read_file(root),
        remove_path=make_remove_path(root, dry_run=dry_run),
        move_file=make_move_file(root, dry_run=dry_run),
        make_dirs=make_make_dirs(root, dry_run=dry_run),
        dry_run=dry_run,
    )
