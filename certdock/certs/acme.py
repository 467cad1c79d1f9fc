"""Certificate acquisition via certbot in webroot mode."""

import logging
import os
import shlex

from certdock.deploy.compose import CERTBOT_CONF_DIR, CERTBOT_WWW_DIR, compose_cmd
from certdock.deploy.nginx import LETSENCRYPT_DIR, WEBROOT

logger = logging.getLogger(__name__)


def certonly_args(names, email, force_renewal=False, staging=False):
    """certbot ``certonly --webroot`` arguments for one or two domain names.

    Without force_renewal an existing, still-valid certificate is kept, so a
    re-run never replaces a good bundle.
    """
    if not names:
        raise ValueError("At least one domain name is required")
    args = [
        "certonly",
        "--webroot",
        "-w", WEBROOT,
        "--email", email,
        "--agree-tos",
        "--no-eff-email",
        "--non-interactive",
        "--force-renewal" if force_renewal else "--keep-until-expiring",
    ]
    if staging:
        args.append("--staging")
    for name in names:
        args += ["-d", name]
    return args


def docker_run_certbot_cmd(site, project_root, names, email, force_renewal=False):
    """One-off certbot container with the certificate dirs bind-mounted by absolute path."""
    conf_dir = os.path.join(project_root, CERTBOT_CONF_DIR)
    www_dir = os.path.join(project_root, CERTBOT_WWW_DIR)
    args = certonly_args(names, email, force_renewal=force_renewal, staging=site.certbot.staging)
    return " ".join(
        [
            "docker", "run", "--rm",
            "-v", shlex.quote(f"{conf_dir}:{LETSENCRYPT_DIR}"),
            "-v", shlex.quote(f"{www_dir}:{WEBROOT}"),
            shlex.quote(site.certbot.image),
            *(shlex.quote(a) for a in args),
        ]
    )


def compose_run_certbot_cmd(site, files, names, email, force_renewal=False):
    """certbot via the compose project's own ``certbot`` service (volumes come from the compose file)."""
    args = certonly_args(names, email, force_renewal=force_renewal, staging=site.certbot.staging)
    return compose_cmd(site, files, "run", "--rm", "--no-deps", "certbot", "certbot", *(shlex.quote(a) for a in args))


def host_certificate_paths(project_root, domain):
    """(fullchain, privkey) of a certificate bundle on the host."""
    live = os.path.join(project_root, CERTBOT_CONF_DIR, "live", domain)
    return os.path.join(live, "fullchain.pem"), os.path.join(live, "privkey.pem")


def certificate_exists(project_root, domain):
    """True when both files of the bundle are present on disk."""
    return all(os.path.exists(p) for p in host_certificate_paths(project_root, domain))


async def acquire_certificate(run_cmd, command, names):
    """Run a certbot command built above. Returns True on exit code 0."""
    logger.info(f"Requesting SSL certificate from Let's Encrypt for: {', '.join(names)}")
    rc, _, _ = await run_cmd(command, timeout=600, log_output=True)
    if rc != 0:
        logger.error(f"certbot exited with code {rc}")
        return False
    logger.info("SSL certificate obtained.")
    return True
