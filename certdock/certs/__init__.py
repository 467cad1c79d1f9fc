"""Certificate acquisition: certbot webroot commands and bundle paths."""

from certdock.certs.acme import (
    acquire_certificate,
    certificate_exists,
    certonly_args,
    compose_run_certbot_cmd,
    docker_run_certbot_cmd,
    host_certificate_paths,
)

__all__ = [
    "acquire_certificate",
    "certificate_exists",
    "certonly_args",
    "compose_run_certbot_cmd",
    "docker_run_certbot_cmd",
    "host_certificate_paths",
]
