"""Tests for compose file rendering and layered compose commands."""

import yaml

from certdock.deploy.compose import (
    GENERATED_PATHS,
    LOCAL_COMPOSE_FILE,
    TEMP_COMPOSE_FILE,
    compose_cmd,
    compose_down,
    compose_logs,
    compose_reload_proxy,
    compose_up,
    generate_bootstrap_compose,
    generate_compose_override,
    prod_files,
    temp_files,
)
from certdock.site import SiteConfig

# ── Bootstrap compose file ──────────────────────────────────────────


def test_bootstrap_compose_is_valid_yaml():
    doc = yaml.safe_load(generate_bootstrap_compose(SiteConfig()))
    assert set(doc["services"]) == {"web", "db", "nginx"}
    assert set(doc["volumes"]) == {"postgres_data", "static_volume", "media_volume"}


def test_bootstrap_compose_http_only():
    doc = yaml.safe_load(generate_bootstrap_compose(SiteConfig()))
    nginx = doc["services"]["nginx"]
    assert nginx["ports"] == ["80:80"]
    assert nginx["build"] == "./nginx-temp"
    assert "./certbot/www:/var/www/certbot" in nginx["volumes"]


def test_bootstrap_compose_web_service():
    doc = yaml.safe_load(generate_bootstrap_compose(SiteConfig()))
    web = doc["services"]["web"]
    assert web["build"] == {"context": "./sbm_backend", "dockerfile": "Dockerfile.prod"}
    assert web["env_file"] == ["./.env.prod", "./.env.prod.local"]
    assert web["expose"] == [8000]
    assert web["command"].startswith("sh -c ")
    assert "gunicorn" in web["command"]


def test_bootstrap_compose_database():
    site = SiteConfig.from_dict({"database": {"user": "u", "password": "p w", "name": "d"}})
    db = yaml.safe_load(generate_bootstrap_compose(site))["services"]["db"]
    assert db["image"] == "postgres:15.5-alpine"
    assert "POSTGRES_USER=u" in db["environment"]
    assert "POSTGRES_PASSWORD=p w" in db["environment"]
    assert "POSTGRES_DB=d" in db["environment"]


def test_custom_service_name():
    site = SiteConfig.from_dict({"app": {"service": "backend"}})
    doc = yaml.safe_load(generate_bootstrap_compose(site))
    assert "backend" in doc["services"]
    assert doc["services"]["nginx"]["depends_on"] == ["backend"]


# ── Production override ─────────────────────────────────────────────


def test_override_is_valid_yaml():
    doc = yaml.safe_load(generate_compose_override(SiteConfig()))
    assert set(doc["services"]) == {"web", "nginx", "certbot"}


def test_override_nginx_https():
    nginx = yaml.safe_load(generate_compose_override(SiteConfig()))["services"]["nginx"]
    assert nginx["build"] == "./nginx-local"
    assert nginx["ports"] == ["80:80", "443:443"]
    assert "./certbot/conf:/etc/letsencrypt" in nginx["volumes"]
    assert "./certbot/www:/var/www/certbot" in nginx["volumes"]
    assert "nginx -s reload" in nginx["command"]
    assert 'daemon off;' in nginx["command"]


def test_override_renewal_agent():
    certbot = yaml.safe_load(generate_compose_override(SiteConfig()))["services"]["certbot"]
    assert certbot["image"] == "certbot/certbot"
    assert "certbot renew" in certbot["entrypoint"]
    assert "sleep 12h" in certbot["entrypoint"]
    assert "$$!" in certbot["entrypoint"]
    assert "./certbot/conf:/etc/letsencrypt" in certbot["volumes"]


def test_override_intervals_configurable():
    site = SiteConfig.from_dict({"certbot": {"renew_interval": "1d", "reload_interval": "3h"}})
    services = yaml.safe_load(generate_compose_override(site))["services"]
    assert "sleep 1d" in services["certbot"]["entrypoint"]
    assert "sleep 3h" in services["nginx"]["command"]


def test_override_web_env_files():
    web = yaml.safe_load(generate_compose_override(SiteConfig()))["services"]["web"]
    assert web["env_file"] == ["./.env.prod", "./.env.prod.local"]


# ── Commands ────────────────────────────────────────────────────────


def test_file_lists():
    site = SiteConfig()
    assert prod_files(site) == ["docker-compose.prod.yml", LOCAL_COMPOSE_FILE]
    assert temp_files(site) == [TEMP_COMPOSE_FILE]


def test_compose_cmd_layers_files():
    site = SiteConfig()
    assert compose_up(site, prod_files(site)) == "docker compose -f docker-compose.prod.yml -f docker-compose.prod.local.yml up --build -d"
    assert compose_up(site, temp_files(site), build=False) == "docker compose -f docker-compose.temp.yml up -d"
    assert compose_down(site, temp_files(site)) == "docker compose -f docker-compose.temp.yml down"


def test_compose_cmd_custom_command():
    site = SiteConfig.from_dict({"compose": {"command": "docker-compose"}})
    assert compose_cmd(site, ["a b.yml"], "ps") == "docker-compose -f 'a b.yml' ps"


def test_logs_and_reload():
    site = SiteConfig()
    assert compose_logs(site, temp_files(site)).endswith("logs --tail=100")
    assert compose_reload_proxy(site, ["docker-compose.prod.yml"]).endswith("exec nginx nginx -s reload")


def test_generated_paths():
    assert GENERATED_PATHS == [".env.prod.local", "docker-compose.prod.local.yml", "nginx-local/", "certbot/"]
