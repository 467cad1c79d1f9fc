"""Shared pytest fixtures for all test modules."""

import dataclasses
import os
import subprocess
import sys

import pytest

from certdock.deploy.local import make_workspace
from certdock.site import DomainRecord, SiteConfig

PROJECT_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))

BASE_COMPOSE = """services:
  web:
    build: ./sbm_backend
    expose:
      - 8000
  nginx:
    build: ./nginx
    ports:
      - "80:80"
      - "443:443"
  certbot:
    image: certbot/certbot
"""

TRACKED_NGINX = """server {
    listen 443 ssl;
    server_name yourdomain.com www.yourdomain.com;
    ssl_certificate /etc/letsencrypt/live/yourdomain.com/fullchain.pem;
}
"""


@pytest.fixture(scope="session")
def project_root():
    """Absolute path to the repository root."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def run_cli(project_root):
    """Return a callable that invokes the certdock CLI as a subprocess."""

    def _run(*args, input_text=""):
        result = subprocess.run(
            [sys.executable, "-m", "certdock.certdock", *args],
            capture_output=True,
            text=True,
            input=input_text,
            cwd=project_root,
            env={k: v for k, v in os.environ.items() if not k.startswith("CERTDOCK_")},
        )
        return result.returncode, result.stdout, result.stderr

    return _run


# ── Unit-test fixtures ──────────────────────────────────────────────


@pytest.fixture
def project_dir(tmp_path):
    """A Django deploy checkout: base compose file, .env.prod and a tracked nginx config."""
    (tmp_path / "docker-compose.prod.yml").write_text(BASE_COMPOSE)
    (tmp_path / ".env.prod").write_text("DEBUG=0\nALLOWED_HOSTS=localhost\nSQL_HOST=db\n")
    (tmp_path / "nginx").mkdir()
    (tmp_path / "nginx" / "nginx.conf").write_text(TRACKED_NGINX)
    return tmp_path


@pytest.fixture
def record():
    return DomainRecord(domain="example.org", email="ops@example.org", public_ip="203.0.113.10")


@pytest.fixture
def site():
    """Default site config with polling and settle times zeroed."""
    return SiteConfig.from_dict({"health": {"attempts": 2, "delay": 0, "settle": 0}})


class FakeRunner:
    """Records commands; answers from a {substring: result} map, first match wins.

    A list result is consumed in order, its last element repeating.
    """

    def __init__(self, responses=None):
        self.commands = []
        self.responses = responses or {}

    async def __call__(self, command, stream=True, timeout=600, log_output=False):
        self.commands.append(command)
        for needle, result in self.responses.items():
            if needle in command:
                if isinstance(result, list):
                    return result.pop(0) if len(result) > 1 else result[0]
                return result
        return 0, "", ""

    def ran(self, needle):
        return [c for c in self.commands if needle in c]

    def index(self, needle):
        for i, command in enumerate(self.commands):
            if needle in command:
                return i
        raise AssertionError(f"'{needle}' never ran; commands: {self.commands}")


@pytest.fixture
def make_runner():
    """Return the FakeRunner factory."""
    return FakeRunner


@pytest.fixture
def make_ws(project_dir):
    """Return a factory: real file operations in project_dir, commands answered by a FakeRunner."""

    def _make(runner, dry_run=False):
        ws = make_workspace(str(project_dir), dry_run=dry_run)
        return dataclasses.replace(ws, run_cmd=runner)

    return _make
