"""Custom exceptions for elchi-installer.

This module defines the exception hierarchy used by both pipelines. Any
exception raised from this hierarchy aborts the provisioning pipeline;
advisory conditions are reported through the console and never raised.
"""

from collections.abc import Sequence


class ElchiInstallerError(Exception):
    """Base exception for all elchi-installer errors.

    Attributes:
        exit_code: Process exit code the CLI terminates with.

    """

    exit_code: int = 1

    def __init__(self, message: str = "", *, exit_code: int | None = None) -> None:
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ArgumentValidationError(ElchiInstallerError):
    """Raised when a command-line argument fails validation."""

    exit_code = 2


class UnsupportedPlatformError(ElchiInstallerError):
    """Raised when the CPU architecture has no matching release binary.

    elchi-installer supports:
    - x86_64 (amd64) and arm64 for every tool
    - armv7l (arm) for kubectl only
    """

    pass


class UnsupportedOSError(ElchiInstallerError):
    """Raised when the host operating system cannot be used.

    This can occur when:
    - /etc/os-release is missing
    - The distribution is not Ubuntu and the operator declined to continue
    """

    pass


class PrerequisiteError(ElchiInstallerError):
    """Raised when a host prerequisite is not met.

    This can occur when:
    - sudo privileges cannot be obtained
    - There is not enough free disk space
    - There is no internet connectivity
    """

    pass


class CommandError(ElchiInstallerError):
    """Raised when a fatal external command exits non-zero.

    Attributes:
        command: The command line that was executed.
        returncode: The command's exit status.
        stderr: Captured standard error, if any.

    """

    def __init__(self, message: str, *, command: Sequence[str] = (), returncode: int = 1, stderr: str = "") -> None:
        super().__init__(message, exit_code=returncode if returncode > 0 else 1)
        self.command: list[str] = list(command)
        self.returncode = returncode
        self.stderr = stderr


class DownloadError(ElchiInstallerError):
    """Raised when a binary or install script cannot be downloaded."""

    pass


class ClusterError(ElchiInstallerError):
    """Raised when the kind cluster cannot be created, reached or made ready."""

    pass


class ChartError(ElchiInstallerError):
    """Raised when the Helm repository or chart installation fails."""

    pass
