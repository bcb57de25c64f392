"""kind cluster lifecycle.

This module builds the cluster topology, manages the transient kind
configuration file and wraps the kind/kubectl calls that create, verify
and delete the cluster.
"""

import contextlib
import time
from collections.abc import Generator
from pathlib import Path
from typing import Any

import yaml
from icecream import ic

from elchi_installer import console, runner
from elchi_installer.config import KIND_CLUSTER_LABEL, StackConfig
from elchi_installer.exceptions import ClusterError, CommandError

KIND_API_VERSION = "kind.x-k8s.io/v1alpha4"
WORKER_COUNT = 2

# Pause after deleting a cluster so Docker releases ports and networks
_SETTLE_SECONDS = 2

_INGRESS_PATCH = """kind: InitConfiguration
nodeRegistration:
  kubeletExtraArgs:
    node-labels: "ingress-ready=true"
"""


def _port_mapping(port: int) -> dict[str, Any]:
    return {"containerPort": port, "hostPort": port, "protocol": "TCP"}


def build_kind_config(config: StackConfig, port: int) -> dict[str, Any]:
    """Build the kind cluster definition.

    Args:
        config: Stack configuration (cluster name, auxiliary ports).
        port: Service port mapped 1:1 from the host into the control plane.

    Returns:
        The cluster definition as a plain dict, ready for YAML serialization.

    """
    control_plane = {
        "role": "control-plane",
        "extraPortMappings": [_port_mapping(p) for p in (port, *config.auxiliary_ports)],
        "kubeadmConfigPatches": [_INGRESS_PATCH],
    }
    workers = [{"role": "worker", "labels": {"worker": str(i)}} for i in range(1, WORKER_COUNT + 1)]

    return {
        "kind": "Cluster",
        "apiVersion": KIND_API_VERSION,
        "name": config.cluster_name,
        "nodes": [control_plane, *workers],
    }


@contextlib.contextmanager
def kind_config_file(config: StackConfig, port: int) -> Generator[Path, None, None]:
    """Write the kind configuration for the lifetime of the block.

    The file is removed when the block exits, whether it completes,
    raises or is interrupted.

    Yields:
        Path of the written configuration file.

    """
    path = config.kind_config_path
    try:
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(build_kind_config(config, port), f, sort_keys=False)
        ic(path)
        yield path
    finally:
        with contextlib.suppress(OSError):
            path.unlink(missing_ok=True)


class KindCluster:
    """A named kind cluster.

    Attributes:
        config: Stack configuration holding the cluster name.

    """

    def __init__(self, config: StackConfig) -> None:
        self.config = config

    @property
    def name(self) -> str:
        return self.config.cluster_name

    @property
    def context(self) -> str:
        """kubectl context of the cluster."""
        return self.config.kube_context

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"KindCluster(name={self.name!r})"

    def exists(self) -> bool:
        """Return True if kind reports a cluster with this exact name."""
        result = runner.run_quiet(["kind", "get", "clusters"])
        return self.name in result.stdout.split()

    def remove_orphan_containers(self) -> int:
        """Force-remove any container still labeled as a node of this cluster.

        Returns:
            Number of containers removal was attempted for.

        """
        result = runner.run_quiet(
            [
                "docker",
                "ps",
                "-a",
                "--filter",
                f"label={KIND_CLUSTER_LABEL}={self.name}",
                "--format",
                "{{.ID}}",
            ]
        )
        container_ids = result.stdout.split() if result.ok else []
        ic(container_ids)
        if container_ids:
            runner.run_quiet(["docker", "rm", "-f", *container_ids])
        return len(container_ids)

    def delete(self) -> None:
        """Delete the cluster and its leftover containers, best-effort."""
        console.action(f"Deleting cluster {console.highlight(self.name)}...")
        runner.run_quiet(["kind", "delete", "cluster", "--name", self.name])

        if runner.which("docker"):
            console.action("Cleaning up leftover containers...")
            self.remove_orphan_containers()

    def recreate(self, port: int) -> None:
        """Create the cluster, destroying any existing one of the same name first.

        Args:
            port: Service port mapped from the host.

        Raises:
            ClusterError: If kind fails to create the cluster.

        """
        if self.exists():
            console.warning(f"Cluster '{self.name}' already exists")
            console.info("Deleting existing cluster to ensure clean installation...")
            self.delete()
            time.sleep(_SETTLE_SECONDS)
            console.success("Existing cluster deleted and cleaned up")

        console.action("Generating cluster configuration...")
        with kind_config_file(self.config, port) as config_path:
            console.summary_panel(
                "Cluster Configuration",
                {
                    "Name": self.name,
                    "Nodes": f"1 control-plane + {WORKER_COUNT} workers",
                    "Port mapping": f"{port}:{port} (container:host)",
                },
                border_style="cyan",
            )
            console.action("Creating cluster (this may take a few minutes)...")
            try:
                runner.run(["kind", "create", "cluster", "--config", str(config_path)], stream=True)
            except CommandError as e:
                raise ClusterError("Failed to create kind cluster", exit_code=e.exit_code) from e

        console.success("Kind cluster created successfully")

    def verify(self) -> None:
        """Check the API server answers on the cluster's context.

        Raises:
            ClusterError: If kubectl cannot reach the cluster.

        """
        console.action("Verifying cluster status...")
        try:
            runner.run(["kubectl", "cluster-info", "--context", self.context], stream=True)
        except CommandError as e:
            raise ClusterError("Failed to connect to cluster", exit_code=e.exit_code) from e

    def wait_until_ready(self, timeout: int) -> None:
        """Block until every node reports Ready.

        Args:
            timeout: Seconds to wait before giving up.

        Raises:
            ClusterError: If the nodes are not Ready within the timeout.

        """
        console.action("Waiting for all nodes to be ready...")
        try:
            runner.run(
                [
                    "kubectl",
                    "wait",
                    "--context",
                    self.context,
                    "--for=condition=Ready",
                    "nodes",
                    "--all",
                    f"--timeout={timeout}s",
                ],
                stream=True,
            )
        except CommandError as e:
            raise ClusterError("Timeout waiting for nodes to be ready", exit_code=e.exit_code) from e
