"""CLI logging setup: plain messages, level tag on warnings and errors."""

import logging
import sys

from certdock.redact import SecretRedactingFilter


class _CliFormatter(logging.Formatter):
    """INFO/DEBUG print as-is; WARNING and above get a ``[LEVEL]`` prefix."""

    def format(self, record):
        message = super().format(record)
        if record.levelno >= logging.WARNING:
            return f"[{record.levelname}] {message}"
        return message


def setup_cli_logging(verbose=False):
    """Configure root logger for CLI commands.

    Messages go to stdout so command output and step logs interleave in order.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_CliFormatter("%(message)s"))
    # Handler-level: logger filters do not see records propagated from children
    handler.addFilter(SecretRedactingFilter())
    root.addHandler(handler)
