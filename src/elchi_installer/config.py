"""Stack configuration shared by the install and uninstall commands.

The cluster name and namespace are fixed so that teardown always finds
exactly what provisioning created. A few host-specific paths and the kind
release can be overridden through the environment.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path

CLUSTER_NAME = "elchi-cluster"
CLUSTER_NAMESPACE = "elchi-stack"

# Label kind puts on every node container it creates
KIND_CLUSTER_LABEL = "io.x-k8s.kind.cluster"


@dataclass(frozen=True, slots=True)
class StackConfig:
    """Immutable settings for both pipelines.

    Attributes:
        cluster_name: Name of the kind cluster.
        namespace: Namespace the chart is installed into.
        helm_repo_name: Local alias of the chart repository.
        helm_repo_url: URL of the chart repository.
        chart_name: Chart (and release) name.
        kind_version: kind release to download.
        kubectl_version: kubectl release channel ('stable') or a version.
        bin_dir: Directory standalone binaries are installed into.
        kind_config_path: Location of the transient kind configuration.
        required_disk_gb: Minimum free space on '/' in GiB.
        node_ready_timeout: Seconds to wait for every node to be Ready.
        auxiliary_ports: Extra host ports mapped into the control plane.
        connectivity_hosts: Hosts pinged to verify internet access.
        kind_node_image: Repository of the kind node image.
        app_image_patterns: Repository substrings of application images.

    """

    cluster_name: str = CLUSTER_NAME
    namespace: str = CLUSTER_NAMESPACE
    helm_repo_name: str = "elchi"
    helm_repo_url: str = "https://charts.elchi.io/"
    chart_name: str = "elchi-stack"
    kind_version: str = "v0.20.0"
    kubectl_version: str = "stable"
    bin_dir: Path = Path("/usr/local/bin")
    kind_config_path: Path = Path("/tmp/kind-config.yaml")
    required_disk_gb: int = 15
    node_ready_timeout: int = 300
    auxiliary_ports: tuple[int, ...] = (30001, 30002)
    connectivity_hosts: tuple[str, ...] = ("google.com", "8.8.8.8")
    kind_node_image: str = "kindest/node"
    app_image_patterns: tuple[str, ...] = ("elchi", "mongo", "victoriametrics", "envoyproxy")

    @property
    def kube_context(self) -> str:
        """kubectl context kind registers for the cluster."""
        return f"kind-{self.cluster_name}"

    @property
    def chart_ref(self) -> str:
        """Fully qualified chart reference, e.g. 'elchi/elchi-stack'."""
        return f"{self.helm_repo_name}/{self.chart_name}"

    def binary_path(self, name: str) -> Path:
        """Return where a standalone binary lives once installed."""
        return self.bin_dir / name

    @classmethod
    def from_env(cls) -> "StackConfig":
        """Build the configuration, applying ELCHI_* environment overrides."""
        config = cls()
        overrides: dict[str, object] = {}
        if bin_dir := os.environ.get("ELCHI_BIN_DIR"):
            overrides["bin_dir"] = Path(bin_dir)
        if kind_version := os.environ.get("ELCHI_KIND_VERSION"):
            overrides["kind_version"] = kind_version
        if kind_config_path := os.environ.get("ELCHI_KIND_CONFIG_PATH"):
            overrides["kind_config_path"] = Path(kind_config_path)
        return replace(config, **overrides) if overrides else config
