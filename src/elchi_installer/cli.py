#!/usr/bin/env python
"""Command-line interface for elchi-installer.

This module provides the two entry points: ``elchi-install`` provisions a
local kind cluster with the Elchi stack, ``elchi-uninstall`` removes it.
"""

import signal
import sys
from types import FrameType

import click
from icecream import ic
from rich.markup import escape

from elchi_installer import __version__, console
from elchi_installer.config import StackConfig
from elchi_installer.exceptions import ArgumentValidationError, ElchiInstallerError
from elchi_installer.models import InstallParams, validate_address, validate_port
from elchi_installer.provision import Provisioner
from elchi_installer.teardown import Teardown

_INSTALL_EPILOG = """\b
Examples:
  elchi-install elchi.example.com 80
  elchi-install 192.168.1.100 8080
  elchi-install elchi-test.example.io 30080
"""


def _terminate(signum: int, _frame: FrameType | None) -> None:
    raise SystemExit(128 + signum)


def _install_signal_handlers() -> None:
    """Turn SIGTERM into SystemExit so cleanup handlers run."""
    signal.signal(signal.SIGTERM, _terminate)


def _validate_port(_ctx: click.Context, _param: click.Parameter, value: str) -> int:
    try:
        return validate_port(value)
    except ArgumentValidationError as e:
        raise click.BadParameter(str(e)) from None


def _validate_address(_ctx: click.Context, _param: click.Parameter, value: str) -> str:
    try:
        return validate_address(value)
    except ArgumentValidationError as e:
        raise click.BadParameter(str(e)) from None


@click.command(
    help="Install the Elchi stack on a local kind cluster.\n\n"
    "ADDRESS is the main address/domain for Elchi (e.g. elchi.example.com or 192.168.1.100). "
    "PORT is the port number to expose the Elchi service on (1-65535).",
    epilog=_INSTALL_EPILOG,
)
@click.argument("address", callback=_validate_address)
@click.argument("port", callback=_validate_port)
@click.option("--debug", required=False, is_flag=True, help="print debug information")
@click.version_option(__version__, "--version", "-v", message="%(version)s")
def install(address: str, port: int, debug: bool) -> None:
    """Provision the cluster and install the chart.

    Args:
        address: Main address the stack is served on.
        port: Host port the stack is exposed on.
        debug: Enable debug output.

    """
    if not debug:
        ic.disable()

    _install_signal_handlers()
    params = InstallParams(address=address, port=port)
    ic(params)

    try:
        Provisioner(StackConfig.from_env(), params).run()
    except ElchiInstallerError as e:
        console.error(escape(str(e)))
        console.error(f"Installation failed with exit code: {e.exit_code}")
        console.info("Check the error messages above for details")
        sys.exit(e.exit_code)


@click.command(help="Remove the Elchi kind cluster, images and binaries. Docker is preserved.")
@click.option("--yes", "-y", required=False, is_flag=True, help="do not ask for confirmation")
@click.option("--debug", required=False, is_flag=True, help="print debug information")
@click.version_option(__version__, "--version", "-v", message="%(version)s")
def uninstall(yes: bool, debug: bool) -> None:
    """Tear down everything the installer created.

    Args:
        yes: Skip the confirmation prompt.
        debug: Enable debug output.

    """
    if not debug:
        ic.disable()

    _install_signal_handlers()

    try:
        Teardown(StackConfig.from_env()).run(assume_yes=yes)
    except ElchiInstallerError as e:
        console.error(escape(str(e)))
        sys.exit(e.exit_code)


if __name__ == "__main__":
    install()
