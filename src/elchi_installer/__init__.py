"""elchi-installer: local kind deployment of the Elchi proxy management stack.

This package provides two commands: one provisions a three-node kind
cluster and installs the Elchi Helm chart into it, the other tears the
cluster and the installed tooling down again.

Example usage:
    from elchi_installer import InstallParams, Provisioner, StackConfig

    config = StackConfig.from_env()
    Provisioner(config, InstallParams(address="elchi.example.com", port=8080)).run()
"""

__version__ = "1.0.0"

from elchi_installer.cli import install, uninstall
from elchi_installer.config import StackConfig
from elchi_installer.exceptions import (
    ArgumentValidationError,
    ChartError,
    ClusterError,
    CommandError,
    DownloadError,
    ElchiInstallerError,
    PrerequisiteError,
    UnsupportedOSError,
    UnsupportedPlatformError,
)
from elchi_installer.models import InstallParams
from elchi_installer.provision import Provisioner
from elchi_installer.teardown import Teardown

__all__ = [
    # Version
    "__version__",
    # CLI entry points
    "install",
    "uninstall",
    # Classes
    "InstallParams",
    "Provisioner",
    "StackConfig",
    "Teardown",
    # Exceptions
    "ElchiInstallerError",
    "ArgumentValidationError",
    "ChartError",
    "ClusterError",
    "CommandError",
    "DownloadError",
    "PrerequisiteError",
    "UnsupportedOSError",
    "UnsupportedPlatformError",
]
