#!/usr/bin/env python3
"""certdock CLI entrypoint: Django behind nginx with Let's Encrypt certificates."""

import argparse

from certdock.commands.cert import register_cert_command
from certdock.commands.deploy import register_deploy_command
from certdock.commands.entrypoint import register_entrypoint_command
from certdock.commands.ports import register_ports_command
from certdock.commands.ssl import register_ssl_command
from certdock.commands.teardown import register_teardown_command
from certdock.commands.update import register_update_command
from certdock.logging_setup import setup_cli_logging


def main():
    parser = argparse.ArgumentParser(description="Deploy a Django app behind nginx with Let's Encrypt certificates")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every executed command")
    subparsers = parser.add_subparsers(dest="command", required=True)

    register_deploy_command(subparsers)
    register_ssl_command(subparsers)
    register_cert_command(subparsers)
    register_update_command(subparsers)
    register_ports_command(subparsers)
    register_teardown_command(subparsers)
    register_entrypoint_command(subparsers)

    args = parser.parse_args()
    setup_cli_logging(verbose=args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
