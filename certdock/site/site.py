"""Site config loading and deep merge."""

import os

import yaml

from certdock.site.types import SiteConfig

SITE_FILE = "certdock.yaml"

_SECTIONS = {"app", "database", "proxy", "certbot", "compose", "health"}
_DOMAIN_KEYS = {"domain", "email", "public_ip", "include_www"}


def deep_merge(base, override):
    """Recursive dict merge. Override wins for scalars."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _validate_keys(config, source):
    unknown = set(config) - _SECTIONS - _DOMAIN_KEYS
    if unknown:
        raise ValueError(f"Unknown keys in {source}: {', '.join(sorted(unknown))}")
    for section in _SECTIONS & set(config):
        if not isinstance(config[section], dict):
            raise ValueError(f"'{section}' in {source} must be a mapping")


def load_site(project_dir, overrides=None):
    """Load certdock.yaml from project_dir (if present) and deep-merge overrides.

    Override values of None are dropped so unset CLI flags never mask the file.

    Returns a SiteConfig dataclass.
    """
    site_path = os.path.join(project_dir, SITE_FILE)
    config = {}
    if os.path.isfile(site_path):
        with open(site_path) as f:
            config = yaml.safe_load(f) or {}
        if not isinstance(config, dict):
            raise ValueError(f"{site_path} must contain a mapping")
        _validate_keys(config, site_path)

    if overrides:
        config = deep_merge(config, _drop_none(overrides))

    try:
        site = SiteConfig.from_dict(config)
    except TypeError as e:
        raise ValueError(f"Invalid site config: {e}") from None
    _validate_health(site.health)
    return site


def _validate_health(health):
    if isinstance(health.attempts, bool) or not isinstance(health.attempts, int) or health.attempts < 1:
        raise ValueError(f"health.attempts must be an integer >= 1, got {health.attempts!r}")
    for name in ("delay", "settle"):
        value = getattr(health, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            raise ValueError(f"health.{name} must be a number >= 0, got {value!r}")


def _drop_none(d):
    result = {}
    for key, value in d.items():
        if isinstance(value, dict):
            value = _drop_none(value)
            if not value:
                continue
        elif value is None:
            continue
        result[key] = value
    return result
