"""Data models for elchi-installer.

This module provides the small, typed records passed between the
pipeline steps, plus validation of the two positional install arguments.
"""

import re
from dataclasses import dataclass
from typing import NamedTuple

from elchi_installer.exceptions import ArgumentValidationError

_PORT_PATTERN = re.compile(r"[0-9]+")
_MIN_PORT = 1
_MAX_PORT = 65535


def validate_port(value: str) -> int:
    """Validate a service port given on the command line.

    Args:
        value: The raw argument, e.g. '8080'.

    Returns:
        The port as an integer.

    Raises:
        ArgumentValidationError: If the value is not made only of decimal
            digits or falls outside 1-65535.

    """
    error = ArgumentValidationError(f"Invalid port number: {value} (must be between {_MIN_PORT}-{_MAX_PORT})")
    if not _PORT_PATTERN.fullmatch(value):
        raise error

    # Leading zeros are allowed; anything left over 5 digits is out of range
    digits = value.lstrip("0")
    if len(digits) > len(str(_MAX_PORT)) or not _MIN_PORT <= int(digits or "0") <= _MAX_PORT:
        raise error
    return int(digits)


def validate_address(value: str) -> str:
    """Validate the main address (domain or IP) given on the command line.

    Raises:
        ArgumentValidationError: If the address is empty.

    """
    if not value.strip():
        raise ArgumentValidationError("Main address cannot be empty")
    return value


@dataclass(frozen=True, slots=True)
class InstallParams:
    """Operator-supplied parameters for the provisioning pipeline.

    Attributes:
        address: Main address (domain or IP) the stack is served on.
        port: Host port the stack is exposed on.

    """

    address: str
    port: int

    @property
    def access_url(self) -> str:
        """URL the web UI is reachable at once installed."""
        return f"http://{self.address}:{self.port}"


class CommandResult(NamedTuple):
    """Outcome of an external command.

    Attributes:
        args: The command line that was executed.
        returncode: Exit status (127 when the executable was not found).
        stdout: Captured standard output ('' when streamed).
        stderr: Captured standard error ('' when streamed).

    """

    args: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ToolStatus(NamedTuple):
    """Result of probing the host for a command-line tool.

    Attributes:
        name: Executable name that was looked up.
        path: Resolved path, or None when not on PATH.
        version: First line of the tool's version output.

    """

    name: str
    path: str | None
    version: str

    @property
    def present(self) -> bool:
        return self.path is not None


class OSInfo(NamedTuple):
    """Fields of interest from /etc/os-release."""

    id: str
    version_id: str
    pretty_name: str
    codename: str


class ImageRef(NamedTuple):
    """A local Docker image as listed by 'docker images'."""

    repository: str
    tag: str
    image_id: str
