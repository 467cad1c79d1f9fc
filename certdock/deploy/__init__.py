"""Deploy library: config materialization, compose commands, local transport."""

from certdock.deploy.compose import (
    GENERATED_PATHS,
    LOCAL_COMPOSE_FILE,
    TEMP_COMPOSE_FILE,
    compose_cmd,
    generate_bootstrap_compose,
    generate_compose_override,
    prod_files,
    temp_files,
)
from certdock.deploy.envfile import generate_env_local, merge_gitignore, update_allowed_hosts
from certdock.deploy.local import Workspace, make_workspace
from certdock.deploy.nginx import (
    certificate_paths,
    generate_nginx_dockerfile,
    generate_nginx_http_conf,
    generate_nginx_https_conf,
    substitute_domain,
)

__all__ = [
    "GENERATED_PATHS",
    "LOCAL_COMPOSE_FILE",
    "TEMP_COMPOSE_FILE",
    "compose_cmd",
    "generate_bootstrap_compose",
    "generate_compose_override",
    "prod_files",
    "temp_files",
    "generate_env_local",
    "merge_gitignore",
    "update_allowed_hosts",
    "Workspace",
    "make_workspace",
    "certificate_paths",
    "generate_nginx_dockerfile",
    "generate_nginx_http_conf",
    "generate_nginx_https_conf",
    "substitute_domain",
]
