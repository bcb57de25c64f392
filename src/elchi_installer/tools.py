"""Installation of the command-line tools the stack needs.

Every installer follows the same shape: probe for the tool, log its
version and return if it is already there, otherwise install it. Install
failures are fatal; group membership, service enablement and checksum
problems are only reported.
"""

import tempfile
from pathlib import Path

from icecream import ic

from elchi_installer import console, runner
from elchi_installer.exceptions import CommandError
from elchi_installer.host import VERSION_UNKNOWN, Host
from elchi_installer.models import OSInfo, ToolStatus

DOCKER_GPG_URL = "https://download.docker.com/linux/ubuntu/gpg"
DOCKER_APT_URL = "https://download.docker.com/linux/ubuntu"
DOCKER_KEYRING = Path("/etc/apt/keyrings/docker.gpg")
DOCKER_SOURCES_LIST = Path("/etc/apt/sources.list.d/docker.list")
DOCKER_PREREQUISITES = ("ca-certificates", "curl", "gnupg", "lsb-release")
DOCKER_PACKAGES = (
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
)

KUBECTL_RELEASE_URL = "https://dl.k8s.io/release"
KIND_RELEASE_URL = "https://kind.sigs.k8s.io/dl"
HELM_INSTALL_SCRIPT_URL = "https://raw.githubusercontent.com/helm/helm/main/scripts/get-helm-3"

# executable -> apt package providing it
NETWORK_TOOLS = {
    "ping": "iputils-ping",
    "nslookup": "dnsutils",
}


def _apt_install(*packages: str) -> None:
    runner.run(["apt-get", "install", "-y", "-qq", *packages], sudo=True, stream=True)


def _already_installed(status: ToolStatus, label: str) -> bool:
    if status.present:
        console.success(f"{label} already installed: {status.version}")
        return True
    return False


def update_package_index() -> None:
    """Refresh the apt package index.

    Raises:
        CommandError: If apt-get update fails.

    """
    console.action("Running apt-get update...")
    try:
        runner.run(["apt-get", "update", "-qq"], sudo=True, stream=True)
    except CommandError as e:
        raise CommandError("Failed to update package lists", command=e.command, returncode=e.returncode) from e
    console.success("System packages updated successfully")


def install_apt_package(package: str, command: str | None = None) -> ToolStatus:
    """Install an apt package unless the command it provides already exists.

    Args:
        package: apt package name.
        command: Executable to probe for; defaults to the package name.

    Returns:
        ToolStatus of the command after installation.

    Raises:
        CommandError: If the package cannot be installed.

    """
    command = command or package
    status = Host.probe(command)
    if _already_installed(status, package):
        return status

    console.action(f"Installing {package}...")
    try:
        _apt_install(package)
    except CommandError as e:
        raise CommandError(f"Failed to install {package}", command=e.command, returncode=e.returncode) from e

    console.success(f"{package} installed successfully")
    return Host.probe(command)


def install_docker(host: Host, os_info: OSInfo) -> ToolStatus:
    """Install Docker Engine from Docker's apt repository.

    Args:
        host: Host used to fetch the repository signing key.
        os_info: Host OS details; the codename selects the apt suite.

    Returns:
        ToolStatus of docker.

    Raises:
        CommandError: If the key or packages cannot be installed.
        DownloadError: If the signing key cannot be fetched.

    """
    status = host.probe("docker")
    if _already_installed(status, "Docker"):
        return status

    console.action("Installing Docker from official repository...")
    _apt_install(*DOCKER_PREREQUISITES)

    runner.run(["install", "-m", "0755", "-d", str(DOCKER_KEYRING.parent)], sudo=True)
    gpg_key = host.fetch_text(DOCKER_GPG_URL)
    try:
        runner.run(["gpg", "--batch", "--yes", "--dearmor", "-o", str(DOCKER_KEYRING)], sudo=True, input=gpg_key)
    except CommandError as e:
        raise CommandError("Failed to add Docker GPG key", command=e.command, returncode=e.returncode) from e
    runner.run(["chmod", "a+r", str(DOCKER_KEYRING)], sudo=True)

    arch = runner.run(["dpkg", "--print-architecture"]).stdout.strip()
    source_line = f"deb [arch={arch} signed-by={DOCKER_KEYRING}] {DOCKER_APT_URL} {os_info.codename} stable\n"
    ic(source_line)
    runner.run(["tee", str(DOCKER_SOURCES_LIST)], sudo=True, input=source_line)

    runner.run(["apt-get", "update", "-qq"], sudo=True, stream=True)
    try:
        _apt_install(*DOCKER_PACKAGES)
    except CommandError as e:
        raise CommandError("Failed to install Docker", command=e.command, returncode=e.returncode) from e

    user = host.user_name()
    if not user or not runner.run_quiet(["usermod", "-aG", "docker", user], sudo=True).ok:
        console.warning("Failed to add user to docker group")
    if not runner.run_quiet(["systemctl", "enable", "docker", "--now"], sudo=True).ok:
        console.warning("Failed to enable Docker service")

    console.success("Docker installed successfully")
    console.warning("You may need to log out and back in for docker group changes to take effect")
    return host.probe("docker")


def install_kubectl(host: Host) -> ToolStatus:
    """Install kubectl from the Kubernetes release bucket.

    An existing kubectl that cannot report its client version is treated
    as broken and replaced.

    Raises:
        DownloadError: If the binary cannot be downloaded.
        UnsupportedPlatformError: If there is no build for this CPU.

    """
    status = host.probe("kubectl", ("version", "--client"))
    if status.present:
        if status.version != VERSION_UNKNOWN:
            console.success(f"kubectl already installed: {status.version}")
            return status
        console.warning("kubectl exists but is not working, reinstalling...")
        host.remove_binary("kubectl")

    arch = host.binary_arch("kubectl")
    console.info(f"Detected architecture: {host.cpu_type} (using kubectl binary for {arch})")

    version = host.config.kubectl_version
    if version == "stable":
        version = host.fetch_text(f"{KUBECTL_RELEASE_URL}/stable.txt").strip()
    url = f"{KUBECTL_RELEASE_URL}/{version}/bin/linux/{arch}/kubectl"

    console.action(f"Downloading kubectl {version}...")
    with tempfile.TemporaryDirectory(prefix="elchi-") as tmp:
        binary = host.download(url, Path(tmp) / "kubectl", f"kubectl {version}")
        host.verify_checksum(binary, f"{url}.sha256")
        host.install_binary(binary, "kubectl")

    status = host.probe("kubectl", ("version", "--client"))
    console.success(f"kubectl installed successfully: {status.version}")
    return status


def install_kind(host: Host) -> ToolStatus:
    """Install the pinned kind release.

    Raises:
        DownloadError: If the binary cannot be downloaded.
        UnsupportedPlatformError: If there is no build for this CPU.

    """
    status = host.probe("kind", ("version",))
    if _already_installed(status, "kind"):
        return status

    version = host.config.kind_version
    url = f"{KIND_RELEASE_URL}/{version}/kind-linux-{host.binary_arch('kind')}"

    console.action(f"Downloading kind {version}...")
    with tempfile.TemporaryDirectory(prefix="elchi-") as tmp:
        binary = host.download(url, Path(tmp) / "kind", f"kind {version}")
        host.verify_checksum(binary, f"{url}.sha256sum")
        host.install_binary(binary, "kind")

    status = host.probe("kind", ("version",))
    console.success(f"kind installed successfully: {status.version}")
    return status


def install_helm(host: Host) -> ToolStatus:
    """Install Helm 3 with the upstream installer script.

    Raises:
        DownloadError: If the script cannot be fetched.
        CommandError: If the script fails.

    """
    status = host.probe("helm", ("version", "--short"))
    if _already_installed(status, "Helm"):
        return status

    console.action("Installing Helm via official script...")
    script = host.fetch_text(HELM_INSTALL_SCRIPT_URL)
    try:
        runner.run(
            ["bash", "-s"],
            input=script,
            env={"HELM_INSTALL_DIR": str(host.config.bin_dir)},
            stream=True,
        )
    except CommandError as e:
        raise CommandError("Failed to install Helm", command=e.command, returncode=e.returncode) from e

    status = host.probe("helm", ("version", "--short"))
    console.success(f"Helm installed successfully: {status.version}")
    return status


def install_network_tools() -> None:
    """Install ping and DNS lookup utilities.

    Raises:
        CommandError: If a package cannot be installed.

    """
    for command, package in NETWORK_TOOLS.items():
        if runner.which(command):
            console.success(f"{command} already installed")
            continue
        console.action(f"Installing {package}...")
        try:
            _apt_install(package)
        except CommandError as e:
            raise CommandError(f"Failed to install {package}", command=e.command, returncode=e.returncode) from e
        console.success(f"{package} installed successfully")

    console.success("Network utilities ready (ping, nslookup, dig)")


