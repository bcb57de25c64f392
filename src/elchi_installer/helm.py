"""Helm chart repository and release operations."""

from icecream import ic

from elchi_installer import console, runner
from elchi_installer.config import StackConfig
from elchi_installer.exceptions import ChartError, CommandError
from elchi_installer.models import InstallParams

# Storage class kind's local-path provisioner registers
STORAGE_CLASS = "standard"


def add_repository(name: str, url: str) -> None:
    """Register a chart repository.

    A failed add (typically the alias already exists with another URL) is
    retried once with --force-update.

    Raises:
        ChartError: If the forced add fails as well.

    """
    console.action(f"Adding Helm repository {console.highlight(name)}...")
    if runner.run_quiet(["helm", "repo", "add", name, url]).ok:
        return

    try:
        runner.run(["helm", "repo", "add", name, url, "--force-update"])
    except CommandError as e:
        raise ChartError(f"Failed to add Helm repository {name}", exit_code=e.exit_code) from e


def update_repositories() -> None:
    """Refresh the local index of every registered repository.

    Raises:
        ChartError: If helm repo update fails.

    """
    console.action("Updating Helm repositories...")
    try:
        runner.run(["helm", "repo", "update"])
    except CommandError as e:
        raise ChartError("Failed to update Helm repositories", exit_code=e.exit_code) from e


def search_repository(name: str) -> str:
    """List the charts a repository offers; failures are ignored."""
    result = runner.run_quiet(["helm", "search", "repo", name])
    return result.stdout if result.ok else ""


def setup_repository(config: StackConfig) -> None:
    """Register, refresh and list the stack's chart repository."""
    add_repository(config.helm_repo_name, config.helm_repo_url)
    update_repositories()
    console.success("Helm repository configured successfully")

    charts = search_repository(config.helm_repo_name)
    if charts:
        console.info("Available Elchi charts:")
        console.console.print(charts.rstrip(), markup=False, highlight=False)


def build_install_args(config: StackConfig, params: InstallParams) -> list[str]:
    """Build the helm install command line for the stack.

    Args:
        config: Stack configuration (chart, namespace, cluster context).
        params: Operator-supplied address and port.

    Returns:
        The full command line.

    """
    return [
        "helm",
        "install",
        config.chart_name,
        config.chart_ref,
        "--namespace",
        config.namespace,
        "--create-namespace",
        "--kube-context",
        config.kube_context,
        "--set-string",
        f"global.mainAddress={params.address}",
        "--set-string",
        f"global.port={params.port}",
        "--set",
        f"global.envoy.service.httpNodePort={params.port}",
        "--set-string",
        f"mongodb.persistence.storageClass={STORAGE_CLASS}",
        "--set-string",
        f"victoriametrics.persistence.storageClass={STORAGE_CLASS}",
    ]


def install_chart(config: StackConfig, params: InstallParams) -> None:
    """Install the stack chart into its namespace.

    Raises:
        ChartError: If helm install fails.

    """
    console.summary_panel(
        "Installation Parameters",
        {
            "Chart": config.chart_ref,
            "Namespace": config.namespace,
            "Main Address": params.address,
            "Port": str(params.port),
        },
        border_style="cyan",
    )

    cmd = build_install_args(config, params)
    ic(cmd)
    console.action("Installing Elchi stack...")
    try:
        runner.run(cmd, stream=True)
    except CommandError as e:
        raise ChartError("Failed to install Elchi stack", exit_code=e.exit_code) from e

    console.success("Elchi stack installation initiated")
    console.info("Helm chart deployed. Pods are starting in the background...")
    console.info(f"Use 'kubectl get pods -n {config.namespace} -w' to monitor pod status")
