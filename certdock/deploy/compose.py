"""Docker Compose file generation and layered compose command building."""

import json
import shlex

from certdock.deploy.envfile import ENV_LOCAL_FILE, ENV_PROD_FILE
from certdock.deploy.nginx import LETSENCRYPT_DIR, WEBROOT

LOCAL_COMPOSE_FILE = "docker-compose.prod.local.yml"
TEMP_COMPOSE_FILE = "docker-compose.temp.yml"
NGINX_LOCAL_DIR = "nginx-local"
NGINX_TEMP_DIR = "nginx-temp"
CERTBOT_CONF_DIR = "certbot/conf"
CERTBOT_WWW_DIR = "certbot/www"

# Generated artifacts that must stay out of version control
GENERATED_PATHS = [ENV_LOCAL_FILE, LOCAL_COMPOSE_FILE, f"{NGINX_LOCAL_DIR}/", "certbot/"]


def _q(value):
    """Quote a scalar for YAML. JSON strings are valid YAML double-quoted scalars."""
    return json.dumps(str(value))


def _cert_volumes(indent):
    pad = " " * indent
    return f"{pad}- ./{CERTBOT_CONF_DIR}:{LETSENCRYPT_DIR}\n{pad}- ./{CERTBOT_WWW_DIR}:{WEBROOT}\n"


def renewal_agent_entrypoint(certbot):
    """Shell loop run by the certbot service: renew, sleep, repeat. ``$$`` is compose escaping."""
    return f"/bin/sh -c 'trap exit TERM; while :; do certbot renew; sleep {certbot.renew_interval} & wait $$!; done;'"


def proxy_reload_command(certbot):
    """nginx foreground process plus a periodic reload to pick up renewed certificates."""
    return (
        f"/bin/sh -c 'while :; do sleep {certbot.reload_interval} & wait $$!; nginx -s reload; done"
        " & nginx -g \"daemon off;\"'"
    )


def generate_bootstrap_compose(site):
    """Build docker-compose.temp.yml: web, db and an HTTP-only nginx on port 80.

    Self-contained (does not layer on the base file) so it can come up before
    any certificate exists.
    """
    app = site.app
    db = site.database
    return f"""services:
  {app.service}:
    build:
      context: {_q(app.build_context)}
      dockerfile: {_q(app.dockerfile)}
    command: {_q(f"sh -c {shlex.quote(app.command)}")}
    volumes:
      - static_volume:{app.static_root}
      - media_volume:{app.media_root}
    expose:
      - {app.port}
    env_file:
      - ./{ENV_PROD_FILE}
      - ./{ENV_LOCAL_FILE}
    depends_on:
      - db
    restart: unless-stopped

  db:
    image: {_q(db.image)}
    volumes:
      - postgres_data:/var/lib/postgresql/data
    environment:
      - POSTGRES_USER={db.user}
      - POSTGRES_PASSWORD={db.password}
      - POSTGRES_DB={db.name}
    restart: unless-stopped

  nginx:
    build: ./{NGINX_TEMP_DIR}
    ports:
      - "80:80"
    volumes:
      - static_volume:{app.static_root}
      - media_volume:{app.media_root}
      - ./{CERTBOT_WWW_DIR}:{WEBROOT}
    depends_on:
      - {app.service}
    restart: unless-stopped

volumes:
  postgres_data:
  static_volume:
  media_volume:
"""


def generate_compose_override(site):
    """Build docker-compose.prod.local.yml, layered on the base production file.

    Adds the local env file, swaps nginx for the HTTPS build with ports
    80/443 and certificate volumes, and adds the certbot renewal agent.
    """
    app = site.app
    certbot = site.certbot
    return f"""services:
  {app.service}:
    env_file:
      - ./{ENV_PROD_FILE}
      - ./{ENV_LOCAL_FILE}

  nginx:
    build: ./{NGINX_LOCAL_DIR}
    ports:
      - "80:80"
      - "443:443"
    volumes:
      - static_volume:{app.static_root}
      - media_volume:{app.media_root}
{_cert_volumes(6)}    depends_on:
      - {app.service}
    restart: unless-stopped
    command: {_q(proxy_reload_command(certbot))}

  certbot:
    image: {_q(certbot.image)}
    volumes:
{_cert_volumes(6)}    entrypoint: {_q(renewal_agent_entrypoint(certbot))}
    restart: unless-stopped

volumes:
  static_volume:
  media_volume:
"""


# ── Command builders ────────────────────────────────────────────────


def base_files(site):
    return [site.compose.base_file]


def prod_files(site):
    """Base production file layered with the local override."""
    return [site.compose.base_file, LOCAL_COMPOSE_FILE]


def temp_files(site):
    return [TEMP_COMPOSE_FILE]


def compose_cmd(site, files, *args):
    """Build a layered compose invocation, e.g. ``docker compose -f a.yml -f b.yml up -d``."""
    parts = [site.compose.command]
    for compose_file in files:
        parts += ["-f", shlex.quote(compose_file)]
    parts += [str(a) for a in args]
    return " ".join(parts)


def compose_up(site, files, build=True):
    args = ["up", "--build", "-d"] if build else ["up", "-d"]
    return compose_cmd(site, files, *args)


def compose_down(site, files):
    return compose_cmd(site, files, "down")


def compose_ps(site, files):
    return compose_cmd(site, files, "ps")


def compose_logs(site, files, tail=100):
    return compose_cmd(site, files, "logs", f"--tail={tail}")


def compose_reload_proxy(site, files):
    """Reload nginx in place (re-reads config and certificates without dropping connections)."""
    return compose_cmd(site, files, "exec", "nginx", "nginx", "-s", "reload")
