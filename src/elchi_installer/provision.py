"""Provisioning pipeline.

Brings a host from nothing to a running three-node kind cluster with the
Elchi stack chart installed. Steps run strictly in order; the first fatal
error propagates out of :meth:`Provisioner.run` and aborts the pipeline.
"""

from collections.abc import Callable

from icecream import ic
from rich.markup import escape

from elchi_installer import __version__, console, helm, prompts, tools
from elchi_installer.cluster import ClusterInspector
from elchi_installer.config import StackConfig
from elchi_installer.exceptions import ClusterError
from elchi_installer.host import Host
from elchi_installer.kind import WORKER_COUNT, KindCluster
from elchi_installer.models import InstallParams, OSInfo

DOCS_URL = "https://elchi.io/docs"


class Provisioner:
    """Runs the install steps for one address/port pair.

    Attributes:
        config: Stack configuration.
        params: Operator-supplied address and port.
        host: Host used for probes, checks and downloads.
        cluster: The kind cluster being provisioned.
        os_info: Parsed OS details, available after OS validation.

    """

    def __init__(
        self,
        config: StackConfig,
        params: InstallParams,
        *,
        host: Host | None = None,
        confirm: Callable[[str], bool] = prompts.confirm,
    ) -> None:
        self.config = config
        self.params = params
        self.host = host or Host(config)
        self.cluster = KindCluster(config)
        self.confirm = confirm
        self.os_info: OSInfo | None = None

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"Provisioner(cluster={self.config.cluster_name!r}, params={self.params!r})"

    @property
    def steps(self) -> list[tuple[str, Callable[[], None]]]:
        """Ordered (title, action) pairs making up the pipeline."""
        return [
            ("Validating Operating System", self.validate_os),
            ("Checking Prerequisites", self.check_prerequisites),
            ("Updating System Packages", tools.update_package_index),
            ("Installing Git", lambda: tools.install_apt_package("git")),
            ("Installing Docker", self.install_docker),
            ("Installing kubectl", lambda: tools.install_kubectl(self.host)),
            ("Installing kind (Kubernetes in Docker)", lambda: tools.install_kind(self.host)),
            ("Installing Helm", lambda: tools.install_helm(self.host)),
            ("Installing Network Utilities", tools.install_network_tools),
            (f"Creating kind Cluster: {self.config.cluster_name}", self.create_cluster),
            ("Setting up Helm Repository", lambda: helm.setup_repository(self.config)),
            ("Installing Elchi Stack", lambda: helm.install_chart(self.config, self.params)),
            ("Verifying Installation", self.verify_installation),
            ("Installation Summary", self.print_summary),
        ]

    def run(self) -> None:
        """Execute every step in order.

        Raises:
            ElchiInstallerError: From the first step that fails fatally.

        """
        console.banner(f"Elchi Stack Installation v{__version__}\nKubernetes-based Proxy Management Platform")
        console.summary_panel(
            "Installation Configuration",
            {"Main Address": self.params.address, "Port": str(self.params.port)},
            border_style="cyan",
        )

        steps = self.steps
        for index, (title, action) in enumerate(steps, start=1):
            console.step_header(index, len(steps), title)
            ic(title)
            action()

        console.newline()
        console.success("All done! Elchi stack is ready to use.")

    def validate_os(self) -> None:
        self.os_info = self.host.validate_os(self.confirm)

    def check_prerequisites(self) -> None:
        """Check privileges, disk space and connectivity."""
        self.host.check_privileges()
        self.host.check_disk_space()
        self.host.check_connectivity()
        console.success("Prerequisites check completed")

    def install_docker(self) -> None:
        if self.os_info is None:
            self.os_info = self.host.validate_os(self.confirm)
        tools.install_docker(self.host, self.os_info)

    def create_cluster(self) -> None:
        """Recreate the kind cluster and wait until every node is Ready."""
        self.cluster.recreate(self.params.port)
        self.cluster.verify()
        self.cluster.wait_until_ready(self.config.node_ready_timeout)
        console.success("All nodes are ready")

        try:
            ClusterInspector(context=self.config.kube_context, namespace=self.config.namespace).show_nodes()
        except ClusterError as e:
            console.warning(f"Could not list nodes: {escape(str(e))}")

    def verify_installation(self) -> None:
        """Show pod and service status; pods may legitimately still be starting."""
        try:
            ClusterInspector(context=self.config.kube_context, namespace=self.config.namespace).show_workloads()
        except ClusterError as e:
            console.warning(f"Could not inspect the installation: {escape(str(e))}")
            return

        console.success("Installation verification completed")
        console.info(f"Note: Pods may still be starting. Monitor with: kubectl get pods -n {self.config.namespace} -w")

    def print_summary(self) -> None:
        ns = self.config.namespace
        port = self.params.port

        console.summary_panel(
            "Installation Completed Successfully!",
            {
                "Cluster Name": self.config.cluster_name,
                "Context": self.config.kube_context,
                "Namespace": ns,
                "Nodes": f"1 control-plane + {WORKER_COUNT} workers",
                "Main Address": self.params.address,
                "Port": str(port),
                "Access URL": self.params.access_url,
            },
        )
        console.newline()
        console.bullet_list(
            "Useful Commands:",
            (
                f"kubectl get all -n {ns}",
                f"kubectl get pods -n {ns}",
                f"kubectl get svc -n {ns}",
                f"kubectl logs -n {ns} <pod-name>",
                f"helm list -n {ns}",
                f"kubectl port-forward -n {ns} svc/elchi-service {port}:{port}",
                f"kind delete cluster --name {self.config.cluster_name}",
            ),
            marker="$",
        )
        console.newline()
        console.bullet_list(
            "Next Steps:",
            (
                f"Access Elchi UI at: [success]{self.params.access_url}[/success]",
                "Configure your proxies through the web interface",
                f"Monitor logs: kubectl logs -n {ns} -l app=elchi --tail=100 -f",
            ),
        )
        console.newline()
        console.warning(
            "If you were added to the docker group, you may need to log out and back in for the change to take effect."
        )
        console.info(f"For more information, visit: {DOCS_URL}")
