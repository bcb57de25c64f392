"""Kubernetes API inspection of the provisioned cluster.

This module provides the ClusterInspector class, which reads node, pod
and service status through the Kubernetes API for display.
"""

from typing import Any

from icecream import ic
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import MaxRetryError

from elchi_installer import console
from elchi_installer.exceptions import ClusterError

NODE_COLUMNS = ("NAME", "STATUS", "ROLES", "VERSION", "INTERNAL-IP")
POD_COLUMNS = ("NAME", "READY", "STATUS", "RESTARTS", "NODE")
SERVICE_COLUMNS = ("NAME", "TYPE", "CLUSTER-IP", "PORT(S)")

_ROLE_LABEL_PREFIX = "node-role.kubernetes.io/"


def _node_row(node: Any) -> tuple[str, ...]:
    conditions = node.status.conditions or []
    ready = next((c.status for c in conditions if c.type == "Ready"), "Unknown")
    labels = node.metadata.labels or {}
    roles = sorted(label.removeprefix(_ROLE_LABEL_PREFIX) for label in labels if label.startswith(_ROLE_LABEL_PREFIX))
    addresses = node.status.addresses or []
    internal_ip = next((a.address for a in addresses if a.type == "InternalIP"), "<none>")
    return (
        node.metadata.name,
        "Ready" if ready == "True" else "NotReady",
        ",".join(roles) or "<none>",
        node.status.node_info.kubelet_version,
        internal_ip,
    )


def _pod_row(pod: Any) -> tuple[str, ...]:
    statuses = pod.status.container_statuses or []
    ready = sum(1 for s in statuses if s.ready)
    restarts = sum(s.restart_count for s in statuses)
    return (
        pod.metadata.name,
        f"{ready}/{len(statuses)}",
        pod.status.phase or "Unknown",
        str(restarts),
        pod.spec.node_name or "<none>",
    )


def _format_port(port: Any) -> str:
    text = f"{port.port}:{port.node_port}" if port.node_port else str(port.port)
    return f"{text}/{port.protocol}"


def _service_row(service: Any) -> tuple[str, ...]:
    ports = service.spec.ports or []
    return (
        service.metadata.name,
        service.spec.type,
        service.spec.cluster_ip or "<none>",
        ",".join(_format_port(p) for p in ports) or "<none>",
    )


class ClusterInspector:
    """Reads cluster state through the Kubernetes API.

    Attributes:
        context: kubeconfig context of the kind cluster.
        namespace: Namespace the stack is installed into.

    """

    def __init__(self, *, context: str, namespace: str) -> None:
        """Load the kubeconfig for the given context.

        Raises:
            ClusterError: If the kubeconfig or context is missing.

        """
        self.context = context
        self.namespace = namespace
        try:
            config.load_kube_config(context=context)
        except ConfigException as e:
            raise ClusterError(f"Invalid or missing kubeconfig for context {context}: {e}") from e
        self.api = client.CoreV1Api()

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"ClusterInspector(context={self.context!r}, namespace={self.namespace!r})"

    @staticmethod
    def _call(request: Any, **kwargs: Any) -> list[Any]:
        try:
            with console.spinner("Querying the Kubernetes API..."):
                return list(request(**kwargs).items)
        except MaxRetryError as e:
            raise ClusterError(f"Failed to connect to the Kubernetes cluster: {e.reason}") from e
        except ApiException as e:
            raise ClusterError(f"Kubernetes API request failed: {e.status} {e.reason}") from e

    def list_nodes(self) -> list[tuple[str, ...]]:
        """Return one display row per cluster node."""
        rows = [_node_row(n) for n in self._call(self.api.list_node)]
        ic(rows)
        return rows

    def list_pods(self) -> list[tuple[str, ...]]:
        """Return one display row per pod in the stack namespace."""
        rows = [_pod_row(p) for p in self._call(self.api.list_namespaced_pod, namespace=self.namespace)]
        ic(rows)
        return rows

    def list_services(self) -> list[tuple[str, ...]]:
        """Return one display row per service in the stack namespace."""
        rows = [_service_row(s) for s in self._call(self.api.list_namespaced_service, namespace=self.namespace)]
        ic(rows)
        return rows

    def show_nodes(self) -> None:
        console.resource_table("Nodes", NODE_COLUMNS, self.list_nodes())

    def show_workloads(self) -> None:
        """Print pod and service status for the stack namespace."""
        console.action("Checking pod status...")
        console.resource_table(f"Pods in {self.namespace}", POD_COLUMNS, self.list_pods())
        console.action("Checking service status...")
        console.resource_table(f"Services in {self.namespace}", SERVICE_COLUMNS, self.list_services())
