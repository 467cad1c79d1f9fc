"""Shared CLI plumbing: common flags, site loading, operator input resolution."""

import logging
import os
import sys

from certdock.deploy.local import make_workspace
from certdock.redact import register_secret
from certdock.site import DomainRecord, load_site

logger = logging.getLogger(__name__)

ENV_DOMAIN = "CERTDOCK_DOMAIN"
ENV_EMAIL = "CERTDOCK_EMAIL"
ENV_PUBLIC_IP = "CERTDOCK_PUBLIC_IP"


def add_project_args(parser):
    parser.add_argument("--project-dir", default=".", help="Project directory holding the compose files (default: .)")
    parser.add_argument("--compose-command", default=None, help="Compose invocation (default: 'docker compose')")
    parser.add_argument("--dry-run", action="store_true", help="Print commands and file writes without executing")


def add_domain_args(parser, ip=True, www=True):
    parser.add_argument("--domain", default=None, help=f"Domain name (fallback: ${ENV_DOMAIN}, certdock.yaml, prompt)")
    parser.add_argument("--email", default=None, help=f"Contact email for Let's Encrypt (fallback: ${ENV_EMAIL})")
    if ip:
        parser.add_argument("--ip", default=None, help=f"Public IP of this host (fallback: ${ENV_PUBLIC_IP})")
    if www:
        parser.add_argument("--no-www", action="store_true", help="Do not add the www. alias")
    parser.add_argument("--staging", action="store_true", help="Use the Let's Encrypt staging environment")


def load_site_or_exit(args):
    """Load certdock.yaml from --project-dir with CLI overrides. Exits 1 on invalid config."""
    overrides = {
        "compose": {"command": getattr(args, "compose_command", None)},
        "certbot": {"staging": True if getattr(args, "staging", False) else None},
    }
    try:
        site = load_site(args.project_dir, overrides)
    except (ValueError, FileNotFoundError) as e:
        logger.error(str(e))
        sys.exit(1)
    register_secret(site.database.password)
    return site


def _prompt(label):
    try:
        return input(f"{label}: ").strip()
    except EOFError:
        return ""


def _pick(flag_value, env_var, site_value, label, interactive):
    for value in (flag_value, os.environ.get(env_var), site_value):
        if value:
            return str(value).strip()
    return _prompt(label) if interactive else ""


def resolve_record(args, site, require_ip=False, interactive=True):
    """Build and validate the DomainRecord: flag, then env var, then certdock.yaml, then prompt.

    Exits 1 when a required value is missing or malformed.
    """
    from_site = site.domain or DomainRecord(domain="", email="")
    domain = _pick(args.domain, ENV_DOMAIN, from_site.domain, "Enter your domain name (e.g., example.com)", interactive)
    email = _pick(args.email, ENV_EMAIL, from_site.email, "Enter your email for the SSL certificate", interactive)
    public_ip = ""
    if require_ip:
        public_ip = _pick(getattr(args, "ip", None), ENV_PUBLIC_IP, from_site.public_ip, "Enter your server's public IP", interactive)

    include_www = from_site.include_www if site.domain else True
    if getattr(args, "no_www", False):
        include_www = False

    record = DomainRecord(domain=domain.lower(), email=email, public_ip=public_ip, include_www=include_www)
    try:
        record.validate(require_ip=require_ip)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info(f"Domain: {record.domain}")
    logger.info(f"Email: {record.email}")
    if record.public_ip:
        logger.info(f"Public IP: {record.public_ip}")
    return record


def workspace_for(args):
    return make_workspace(args.project_dir, dry_run=args.dry_run)
