"""Tests for the local transport: real subprocesses and file operations in tmp_path."""

import logging

from certdock.deploy.local import make_run_cmd, make_workspace


async def test_run_cmd_captures_output(tmp_path):
    run_cmd = make_run_cmd(str(tmp_path))
    rc, stdout, _ = await run_cmd("echo hello", stream=False)
    assert rc == 0
    assert stdout.strip() == "hello"


async def test_run_cmd_runs_in_project_dir(tmp_path):
    (tmp_path / "marker.txt").write_text("x")
    run_cmd = make_run_cmd(str(tmp_path))
    rc, stdout, _ = await run_cmd("ls", stream=False)
    assert rc == 0
    assert "marker.txt" in stdout


async def test_run_cmd_nonzero_exit(tmp_path):
    run_cmd = make_run_cmd(str(tmp_path))
    rc, _, _ = await run_cmd("exit 3", stream=False)
    assert rc == 3


async def test_run_cmd_log_output(tmp_path, caplog):
    run_cmd = make_run_cmd(str(tmp_path))
    with caplog.at_level(logging.INFO, logger="certdock.deploy.local"):
        rc, stdout, stderr = await run_cmd("echo out; echo err >&2", log_output=True)
    assert rc == 0
    assert stdout == "out"
    assert stderr == "err"
    assert "out" in caplog.text


async def test_run_cmd_timeout(tmp_path):
    run_cmd = make_run_cmd(str(tmp_path))
    rc, _, _ = await run_cmd("sleep 5", stream=False, timeout=0.2)
    assert rc == 1


async def test_dry_run_executes_nothing(tmp_path, caplog):
    ws = make_workspace(str(tmp_path), dry_run=True)
    with caplog.at_level(logging.INFO, logger="certdock.deploy.local"):
        rc, _, _ = await ws.run_cmd("touch created.txt")
        await ws.write_file("sub/file.txt", "content")
        await ws.make_dirs("certbot/conf")
    assert rc == 0
    assert list(tmp_path.iterdir()) == []
    assert "[dry-run] touch created.txt" in caplog.text
    assert "[dry-run] write" in caplog.text
    assert "[dry-run] mkdir -p" in caplog.text


async def test_file_operations(tmp_path):
    ws = make_workspace(str(tmp_path))
    await ws.write_file("nginx-local/nginx.conf", "conf")
    assert (tmp_path / "nginx-local" / "nginx.conf").read_text() == "conf"
    assert await ws.read_file("nginx-local/nginx.conf") == "conf"
    assert await ws.read_file("missing.txt") is None
    assert ws.exists("nginx-local")

    await ws.move_file("nginx-local/nginx.conf", "moved.conf")
    assert (tmp_path / "moved.conf").read_text() == "conf"

    await ws.make_dirs("certbot/conf", "certbot/www")
    assert (tmp_path / "certbot" / "www").is_dir()

    await ws.remove_path("certbot")
    await ws.remove_path("moved.conf")
    await ws.remove_path("never-existed")
    assert not ws.exists("certbot")
    assert not ws.exists("moved.conf")


async def test_read_file_works_in_dry_run(tmp_path):
    (tmp_path / ".env.prod").write_text("DEBUG=0\n")
    ws = make_workspace(str(tmp_path), dry_run=True)
    assert await ws.read_file(".env.prod") == "DEBUG=0\n"
