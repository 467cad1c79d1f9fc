"""Bootstrap protocol states and the fatal-step error."""

from enum import Enum


class BootstrapState(str, Enum):
    NO_CONFIG = "NO_CONFIG"
    HTTP_ONLY = "HTTP_ONLY"
    CERT_REQUESTED = "CERT_REQUESTED"
    HTTPS_ACTIVE = "HTTPS_ACTIVE"
    FAILED = "FAILED"


class DeployError(Exception):
    """A fatal step failure. The run halts; no rollback is attempted."""

    def __init__(self, message, state=None):
        super().__init__(message)
        self.state = state
