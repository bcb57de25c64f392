"""Tests for provision.py module."""

from unittest.mock import MagicMock, patch

import pytest

from elchi_installer.exceptions import ClusterError, CommandError, UnsupportedOSError
from elchi_installer.host import Host
from elchi_installer.models import InstallParams, OSInfo
from elchi_installer.provision import Provisioner

PARAMS = InstallParams(address="elchi.example.com", port=8080)
NOBLE = OSInfo(id="ubuntu", version_id="24.04", pretty_name="Ubuntu 24.04 LTS", codename="noble")


@pytest.fixture
def mock_host(stack_config):
    host = MagicMock(spec=Host)
    host.config = stack_config
    host.validate_os.return_value = NOBLE
    return host


@pytest.fixture
def pipeline():
    """Patch every external collaborator of the pipeline onto one recorder."""
    recorder = MagicMock()
    with (
        patch("elchi_installer.provision.tools", recorder.tools),
        patch("elchi_installer.provision.helm", recorder.helm),
        patch("elchi_installer.provision.KindCluster", return_value=recorder.cluster),
        patch("elchi_installer.provision.ClusterInspector", return_value=recorder.inspector),
        patch("elchi_installer.provision.console"),
    ):
        yield recorder


def _names(recorder: MagicMock) -> list[str]:
    return [name for name, _, _ in recorder.mock_calls if not name.startswith(("cluster.__", "inspector.__"))]


class TestProvisionerSteps:
    """Tests for step ordering."""

    def test_fourteen_steps(self, stack_config, mock_host):
        """Test the pipeline has its fourteen steps in order."""
        titles = [title for title, _ in Provisioner(stack_config, PARAMS, host=mock_host).steps]

        assert len(titles) == 14
        assert titles[0] == "Validating Operating System"
        assert titles[9] == "Creating kind Cluster: elchi-cluster"
        assert titles[11] == "Installing Elchi Stack"
        assert titles[-1] == "Installation Summary"

    def test_run_in_order(self, stack_config, mock_host, pipeline):
        """Test tools, cluster and chart are handled in pipeline order."""
        Provisioner(stack_config, PARAMS, host=mock_host).run()

        assert _names(pipeline) == [
            "tools.update_package_index",
            "tools.install_apt_package",
            "tools.install_docker",
            "tools.install_kubectl",
            "tools.install_kind",
            "tools.install_helm",
            "tools.install_network_tools",
            "cluster.recreate",
            "cluster.verify",
            "cluster.wait_until_ready",
            "inspector.show_nodes",
            "helm.setup_repository",
            "helm.install_chart",
            "inspector.show_workloads",
        ]
        pipeline.tools.install_apt_package.assert_called_once_with("git")
        pipeline.tools.install_docker.assert_called_once_with(mock_host, NOBLE)

    def test_host_checks_run_first(self, stack_config, mock_host, pipeline):
        """Test OS validation and prerequisite checks precede any install."""
        order = []
        mock_host.check_privileges.side_effect = lambda: order.append("privileges")
        mock_host.check_disk_space.side_effect = lambda: order.append("disk")
        mock_host.check_connectivity.side_effect = lambda: order.append("connectivity")
        pipeline.tools.update_package_index.side_effect = lambda: order.append("apt")

        Provisioner(stack_config, PARAMS, host=mock_host).run()

        assert mock_host.method_calls[0][0] == "validate_os"
        assert order == ["privileges", "disk", "connectivity", "apt"]

    def test_address_and_port_flow_through(self, stack_config, mock_host, pipeline):
        """Test the operator's address and port reach kind and Helm."""
        Provisioner(stack_config, PARAMS, host=mock_host).run()

        pipeline.cluster.recreate.assert_called_once_with(8080)
        pipeline.cluster.wait_until_ready.assert_called_once_with(300)
        pipeline.helm.install_chart.assert_called_once_with(stack_config, PARAMS)


class TestProvisionerFailures:
    """Tests for fatal and advisory failures."""

    def test_fatal_error_stops_pipeline(self, stack_config, mock_host, pipeline):
        """Test no step after a fatal failure runs."""
        pipeline.tools.install_kind.side_effect = CommandError("download failed", returncode=22)

        with pytest.raises(CommandError) as exc_info:
            Provisioner(stack_config, PARAMS, host=mock_host).run()

        assert exc_info.value.exit_code == 22
        pipeline.tools.install_helm.assert_not_called()
        pipeline.cluster.recreate.assert_not_called()
        pipeline.helm.install_chart.assert_not_called()

    def test_declined_os_aborts(self, stack_config, mock_host, pipeline):
        """Test declining to continue on an unsupported OS aborts before installs."""
        mock_host.validate_os.side_effect = UnsupportedOSError("Installation cancelled")

        with pytest.raises(UnsupportedOSError):
            Provisioner(stack_config, PARAMS, host=mock_host).run()

        mock_host.check_privileges.assert_not_called()
        pipeline.tools.update_package_index.assert_not_called()

    def test_cluster_failure_is_fatal(self, stack_config, mock_host, pipeline):
        """Test a failed cluster creation aborts before Helm runs."""
        pipeline.cluster.recreate.side_effect = ClusterError("Failed to create kind cluster")

        with pytest.raises(ClusterError):
            Provisioner(stack_config, PARAMS, host=mock_host).run()

        pipeline.helm.setup_repository.assert_not_called()

    def test_verification_is_advisory(self, stack_config, mock_host, pipeline):
        """Test an unreachable API during verification only warns."""
        with patch("elchi_installer.provision.ClusterInspector", side_effect=ClusterError("refused")):
            Provisioner(stack_config, PARAMS, host=mock_host).run()

        pipeline.helm.install_chart.assert_called_once()


class TestProvisionerSummary:
    """Tests for the final summary."""

    def test_summary_contents(self, stack_config, mock_host):
        """Test the summary shows cluster, context, namespace and access URL."""
        with patch("elchi_installer.provision.console") as mock_console:
            Provisioner(stack_config, PARAMS, host=mock_host).print_summary()

        items = mock_console.summary_panel.call_args[0][1]
        assert items["Cluster Name"] == "elchi-cluster"
        assert items["Context"] == "kind-elchi-cluster"
        assert items["Namespace"] == "elchi-stack"
        assert items["Access URL"] == "http://elchi.example.com:8080"
