"""Teardown pipeline.

Removes everything provisioning can create (the kind cluster, cached
images and the kind, kubectl and Helm binaries) while leaving Docker and
other host packages alone. Every step checks whether there is anything to
remove and swallows failures of the removal itself, so running teardown
on a clean host, or twice in a row, only logs skips.
"""

import contextlib
import shutil
from collections.abc import Callable, Iterable
from pathlib import Path

from icecream import ic

from elchi_installer import console, prompts, runner
from elchi_installer.config import StackConfig
from elchi_installer.host import Host
from elchi_installer.kind import KindCluster
from elchi_installer.models import ImageRef

# Helm state under the invoking user's home
HELM_USER_DIRS = (".cache/helm", ".config/helm", ".local/share/helm")

PRESERVED_COMPONENTS = (
    "Docker itself",
    "Git",
    "Network utilities (ping, nslookup)",
    "System packages",
)


def parse_images(output: str) -> list[ImageRef]:
    """Parse 'docker images' output formatted as 'repository tag id' lines."""
    images: list[ImageRef] = []
    for line in output.splitlines():
        fields = line.split()
        if len(fields) == 3:
            images.append(ImageRef(*fields))
    return images


def select_images(images: Iterable[ImageRef], patterns: Iterable[str]) -> list[ImageRef]:
    """Return images whose repository contains any of the patterns."""
    patterns = tuple(patterns)
    return [image for image in images if any(p in image.repository for p in patterns)]


class Teardown:
    """Runs the uninstall steps.

    Attributes:
        config: Stack configuration shared with provisioning.
        host: Host used for binary removal.
        cluster: The kind cluster to delete.
        home: Home directory whose Helm state is removed.

    """

    def __init__(
        self,
        config: StackConfig,
        *,
        host: Host | None = None,
        confirm: Callable[[str], bool] = prompts.confirm,
        home: Path | None = None,
    ) -> None:
        self.config = config
        self.host = host or Host(config)
        self.cluster = KindCluster(config)
        self.confirm_prompt = confirm
        self.home = home or Path.home()

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"Teardown(cluster={self.config.cluster_name!r})"

    @property
    def steps(self) -> list[tuple[str, Callable[[], None]]]:
        """Ordered (title, action) pairs making up the pipeline."""
        return [
            (f"Deleting kind Cluster: {self.config.cluster_name}", self.delete_cluster),
            ("Cleaning up Docker Images", self.cleanup_images),
            ("Removing kubectl", self.remove_kubectl),
            ("Removing Helm", self.remove_helm),
            ("Removing kind", self.remove_kind),
        ]

    def confirm(self, *, assume_yes: bool = False) -> bool:
        """Describe what will be removed and ask the operator to agree.

        Args:
            assume_yes: Skip the prompt and proceed.

        Returns:
            True if teardown should proceed.

        """
        console.warning("This will remove the following:")
        console.bullet_list(
            "",
            (
                f"kind cluster: {self.config.cluster_name}",
                "kubectl binary",
                "Helm binary",
                "kind binary",
                "Docker images used by Elchi",
            ),
        )
        console.newline()
        console.success("Docker itself and other system packages will be preserved.")
        console.newline()

        if assume_yes or self.confirm_prompt("Are you sure you want to continue?"):
            return True

        console.info("Uninstallation cancelled by user")
        return False

    def run(self, *, assume_yes: bool = False) -> bool:
        """Confirm, then execute every removal step.

        Returns:
            False if the operator declined, True once all steps have run.

        """
        console.banner("Elchi Stack Uninstallation", style="red")
        if not self.confirm(assume_yes=assume_yes):
            return False

        steps = self.steps
        for index, (title, action) in enumerate(steps, start=1):
            console.step_header(index, len(steps), title)
            ic(title)
            action()

        self.print_summary()
        console.success("All done! Elchi has been uninstalled.")
        return True

    def delete_cluster(self) -> None:
        if not runner.which("kind"):
            console.warning("kind is not installed, skipping cluster deletion")
            return

        if not self.cluster.exists():
            console.warning(f"Cluster '{self.config.cluster_name}' does not exist, skipping deletion")
            return

        self.cluster.delete()
        console.success("Cluster deleted successfully")

    def cleanup_images(self) -> None:
        """Remove the kind node image and application images, then prune."""
        if not runner.which("docker"):
            console.warning("Docker is not installed, skipping image cleanup")
            return

        listing = runner.run_quiet(["docker", "images", "--format", "{{.Repository}} {{.Tag}} {{.ID}}"])
        images = parse_images(listing.stdout) if listing.ok else []

        console.action("Removing kind node images...")
        self._remove_images(select_images(images, (self.config.kind_node_image,)))

        console.action("Removing Elchi-related images...")
        self._remove_images(select_images(images, self.config.app_image_patterns))

        console.action("Pruning dangling images...")
        runner.run_quiet(["docker", "image", "prune", "-f"])

        console.success("Docker images cleaned up successfully")

    @staticmethod
    def _remove_images(images: list[ImageRef]) -> None:
        image_ids = sorted({image.image_id for image in images})
        ic(image_ids)
        if image_ids:
            runner.run_quiet(["docker", "rmi", "-f", *image_ids])

    def _remove_binary(self, name: str, label: str) -> bool:
        path = self.config.binary_path(name)
        if not self.host.remove_binary(name):
            console.warning(f"{label} is not installed at {path}, skipping")
            return False
        console.success(f"{label} removed successfully")
        return True

    def remove_kubectl(self) -> None:
        self._remove_binary("kubectl", "kubectl")

    def remove_helm(self) -> None:
        """Remove the Helm binary and its cache, config and data directories."""
        if not self._remove_binary("helm", "Helm"):
            return

        console.action("Cleaning up Helm cache and configuration...")
        for relative in HELM_USER_DIRS:
            with contextlib.suppress(OSError):
                shutil.rmtree(self.home / relative)

    def remove_kind(self) -> None:
        self._remove_binary("kind", "kind")

    def print_summary(self) -> None:
        console.newline()
        console.summary_panel(
            "Uninstallation Completed Successfully!",
            {
                "kind cluster": self.config.cluster_name,
                "Binaries": "kubectl, helm, kind",
                "Images": "Elchi, kind, mongo, victoriametrics, envoy",
            },
        )
        console.bullet_list("Preserved Components:", PRESERVED_COMPONENTS)
        console.newline()
        console.info("Thank you for using Elchi!")
