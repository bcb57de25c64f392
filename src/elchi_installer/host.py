"""Host system utilities for elchi-installer.

This module provides the Host class: platform detection, OS and
prerequisite checks, tool presence probes and release binary downloads.
"""

import functools
import hashlib
import os
import platform
import shutil
from collections.abc import Callable, Sequence
from pathlib import Path

import requests
from icecream import ic
from rich.markup import escape

from elchi_installer import console, runner
from elchi_installer.config import StackConfig
from elchi_installer.exceptions import (
    DownloadError,
    PrerequisiteError,
    UnsupportedOSError,
    UnsupportedPlatformError,
)
from elchi_installer.models import OSInfo, ToolStatus

OS_RELEASE_PATH = Path("/etc/os-release")
SUPPORTED_OS_ID = "ubuntu"
SUPPORTED_OS_VERSION = "24.04"

VERSION_UNKNOWN = "version unknown"
_GIB = 1024**3
_DOWNLOAD_TIMEOUT = 60
_CONNECTIVITY_URL = "https://dl.k8s.io"

# Rough footprint of a full installation, shown when disk space is short
_DISK_BREAKDOWN = (
    "Docker images: ~6-7GB",
    "Kubernetes (kind): ~3-4GB",
    "Elchi stack containers: ~3-4GB",
    "System packages: ~1GB",
    "Working space: ~1-2GB",
)


def read_os_release(path: Path = OS_RELEASE_PATH) -> OSInfo:
    """Parse an os-release file.

    Args:
        path: Location of the os-release file.

    Returns:
        OSInfo with the distribution id, version, pretty name and codename.

    Raises:
        UnsupportedOSError: If the file does not exist.

    """
    if not path.exists():
        raise UnsupportedOSError(f"Cannot detect OS. This installer requires Ubuntu {SUPPORTED_OS_VERSION}")

    fields: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        fields[key] = value.strip().strip("\"'")
    ic(fields)

    os_id = fields.get("ID", "")
    version_id = fields.get("VERSION_ID", "")
    return OSInfo(
        id=os_id,
        version_id=version_id,
        pretty_name=fields.get("PRETTY_NAME", f"{os_id} {version_id}".strip()),
        codename=fields.get("VERSION_CODENAME", ""),
    )


def sha256_of(path: Path) -> str:
    """Return the hex sha256 digest of a file."""
    digest = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


class Host:
    """Manages host system operations for the installer.

    Attributes:
        config: Stack configuration (binary directory, thresholds).
        cpu_type: Detected CPU architecture (amd64, arm64 or arm).

    """

    def __init__(self, config: StackConfig) -> None:
        self.config = config

    @functools.cached_property
    def cpu_type(self) -> str:
        """CPU architecture, detected on first use."""
        return self._get_cpu_type()

    @staticmethod
    def _get_cpu_type() -> str:
        """Detect and return the CPU architecture.

        Returns:
            The CPU type as a string ('amd64', 'arm64' or 'arm').

        Raises:
            UnsupportedPlatformError: If the CPU architecture is not supported.

        """
        match platform.machine():
            case "x86_64":
                return "amd64"
            case "arm64" | "aarch64":
                return "arm64"
            case "armv7l":
                return "arm"
            case _:
                raise UnsupportedPlatformError(f"Unsupported architecture: {platform.machine()}")

    def binary_arch(self, tool: str) -> str:
        """Return the release architecture to download for a tool.

        kind only publishes amd64 and arm64 builds; kubectl also has arm.

        Raises:
            UnsupportedPlatformError: If the tool has no build for this CPU.

        """
        if self.cpu_type == "arm" and tool != "kubectl":
            raise UnsupportedPlatformError(f"Unsupported architecture for {tool}: {platform.machine()}")
        return self.cpu_type

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"Host(bin_dir={self.config.bin_dir!r})"

    # ------------------------------------------------------------ OS and prerequisites

    @staticmethod
    def validate_os(confirm: Callable[[str], bool], os_release: Path = OS_RELEASE_PATH) -> OSInfo:
        """Check the host is Ubuntu, asking before continuing on anything else.

        Args:
            confirm: Prompt callback returning True when the operator agrees.
            os_release: Location of the os-release file.

        Returns:
            The parsed OSInfo.

        Raises:
            UnsupportedOSError: If the OS cannot be detected, or it is not
                Ubuntu and the operator declined to continue.

        """
        os_info = read_os_release(os_release)

        if os_info.id != SUPPORTED_OS_ID:
            console.warning(
                f"This installer is designed for Ubuntu {SUPPORTED_OS_VERSION}, "
                f"detected: {os_info.id} {os_info.version_id}"
            )
            if not confirm("Continue anyway?"):
                raise UnsupportedOSError(f"Unsupported operating system: {os_info.pretty_name}")
        elif os_info.version_id != SUPPORTED_OS_VERSION:
            console.warning(f"Recommended version is {SUPPORTED_OS_VERSION}, detected: {os_info.version_id}")

        console.success(f"OS validation completed: {os_info.pretty_name}")
        return os_info

    @staticmethod
    def check_privileges() -> None:
        """Make sure privileged commands can run.

        Raises:
            PrerequisiteError: If sudo privileges cannot be obtained.

        """
        if runner.is_root():
            console.warning("Running as root. It's recommended to run as a regular user with sudo access")
            return

        if runner.run_quiet(["sudo", "-n", "true"]).ok:
            return

        console.info("This installer requires sudo privileges")
        if not runner.run_quiet(["sudo", "-v"], stream=True).ok:
            raise PrerequisiteError("Failed to obtain sudo privileges")

    def check_disk_space(self, path: str = "/") -> int:
        """Verify enough free space is available.

        Returns:
            The available space in GiB.

        Raises:
            PrerequisiteError: If less than the required space is free.

        """
        console.action("Checking available disk space...")
        required = self.config.required_disk_gb
        available = round(shutil.disk_usage(path).free / _GIB)
        console.info(f"Available disk space: {available}GB (required: ~{required}GB, recommended: 20GB)")

        if available < required:
            console.error("Insufficient disk space!")
            console.error(f"Available: {available}GB, Required: ~{required}GB")
            console.bullet_list("Disk space breakdown:", _DISK_BREAKDOWN)
            raise PrerequisiteError(f"Please free up at least {required}GB of disk space")

        console.success("Sufficient disk space available")
        return available

    def check_connectivity(self) -> None:
        """Verify the host can reach the internet.

        Pings each configured host in turn; falls back to an HTTPS request
        when ping itself is not installed yet.

        Raises:
            PrerequisiteError: If no probe succeeds.

        """
        console.action("Testing internet connectivity...")

        if runner.which("ping"):
            for target in self.config.connectivity_hosts:
                if runner.run_quiet(["ping", "-c", "1", "-W", "2", target]).ok:
                    console.success("Internet connectivity verified")
                    return
        else:
            try:
                requests.head(_CONNECTIVITY_URL, timeout=5)
            except requests.RequestException as e:
                ic(e)
            else:
                console.success("Internet connectivity verified")
                return

        raise PrerequisiteError("No internet connectivity detected")

    # ------------------------------------------------------------ Tool probes

    @staticmethod
    def probe(tool: str, version_args: Sequence[str] = ("--version",)) -> ToolStatus:
        """Check whether a tool is on PATH and report its version.

        Args:
            tool: Executable name.
            version_args: Arguments that make the tool print its version.

        Returns:
            ToolStatus; version is informational only.

        """
        path = runner.which(tool)
        if path is None:
            return ToolStatus(name=tool, path=None, version="")

        result = runner.run_quiet([tool, *version_args])
        output = (result.stdout or result.stderr).strip()
        version = output.splitlines()[0] if result.ok and output else VERSION_UNKNOWN
        return ToolStatus(name=tool, path=path, version=version)

    # ------------------------------------------------------------ Downloads

    @staticmethod
    def fetch_text(url: str) -> str:
        """Fetch a small text document (release pointers, checksums, scripts).

        Raises:
            DownloadError: If the request fails.

        """
        ic(url)
        try:
            response = requests.get(url, timeout=_DOWNLOAD_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            raise DownloadError(f"Failed to download {url}: {e}") from e
        return response.text

    @staticmethod
    def download(url: str, dest: Path, label: str) -> Path:
        """Stream a file to disk with a progress bar.

        Args:
            url: Source URL.
            dest: Destination file path.
            label: Description shown next to the progress bar.

        Returns:
            The destination path.

        Raises:
            DownloadError: If the file is missing or the transfer fails.

        """
        ic(url)
        ic(dest)
        try:
            with requests.get(url, timeout=_DOWNLOAD_TIMEOUT, stream=True) as r:
                if r.status_code == 404:
                    raise DownloadError(f"{label} is not available for download at {url}")
                r.raise_for_status()

                total_size = int(r.headers.get("content-length", 0))

                with console.create_download_progress() as progress:
                    task = progress.add_task(label, total=total_size)

                    with dest.open("wb") as f:
                        for chunk in r.iter_content(chunk_size=8192):
                            if chunk:
                                f.write(chunk)
                                progress.update(task, advance=len(chunk))
        except requests.RequestException as e:
            raise DownloadError(f"Failed to download {label}: {e}") from e
        return dest

    def verify_checksum(self, path: Path, checksum_url: str) -> bool:
        """Compare a downloaded file against its published sha256.

        A mismatch or an unreachable checksum only produces a warning.

        Returns:
            True if the checksum matched.

        """
        try:
            expected = self.fetch_text(checksum_url).split()[0].lower()
        except (DownloadError, IndexError) as e:
            console.warning(f"Could not fetch checksum for {path.name}: {escape(str(e))}")
            return False

        actual = sha256_of(path)
        ic(expected, actual)
        if actual != expected:
            console.warning(f"{path.name} checksum verification failed")
            return False

        console.step(f"{path.name} checksum verified")
        return True

    def install_binary(self, src: Path, name: str) -> Path:
        """Install an executable into the configured binary directory.

        Raises:
            CommandError: If the install command fails.

        """
        target = self.config.binary_path(name)
        runner.run(["install", "-o", "root", "-g", "root", "-m", "0755", str(src), str(target)], sudo=True)
        return target

    def remove_binary(self, name: str) -> bool:
        """Remove an installed binary, best-effort.

        Returns:
            True if the binary existed before removal.

        """
        target = self.config.binary_path(name)
        if not target.exists():
            return False
        runner.run_quiet(["rm", "-f", str(target)], sudo=True)
        return True

    @staticmethod
    def user_name() -> str:
        """Name of the invoking user, preferring the sudo caller."""
        return os.environ.get("SUDO_USER") or os.environ.get("USER") or ""
