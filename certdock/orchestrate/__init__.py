"""Deploy workflows: bootstrap, in-place SSL, single-domain certificate, update, teardown."""

from certdock.orchestrate.bootstrap import run_bootstrap
from certdock.orchestrate.single_domain import run_single_domain_cert
from certdock.orchestrate.ssl_setup import run_ssl_setup
from certdock.orchestrate.state import BootstrapState, DeployError
from certdock.orchestrate.update import run_teardown, run_update

__all__ = [
    "BootstrapState",
    "DeployError",
    "run_bootstrap",
    "run_single_domain_cert",
    "run_ssl_setup",
    "run_teardown",
    "run_update",
]
