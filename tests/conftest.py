"""Shared test fixtures for elchi-installer tests."""

from collections.abc import Callable
from unittest.mock import MagicMock, patch

import pytest

from elchi_installer.config import StackConfig
from elchi_installer.exceptions import CommandError
from elchi_installer.host import Host
from elchi_installer.models import CommandResult


class FakeRunner:
    """Stand-in for runner.run that records commands and replays canned results.

    Responses are matched on the longest registered command prefix; anything
    unregistered succeeds with empty output. Like the real runner, a failing
    command raises CommandError unless called with check=False.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.kwargs: list[dict] = []
        self.installed: set[str] = set()
        self._responses: dict[tuple[str, ...], CommandResult] = {}
        self._effects: dict[tuple[str, ...], Callable[[list[str]], None]] = {}

    def respond(self, *prefix: str, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self._responses[prefix] = CommandResult(list(prefix), returncode, stdout, stderr)

    def on(self, *prefix: str, effect: Callable[[list[str]], None]) -> None:
        """Run effect with the command line whenever a matching command runs."""
        self._effects[prefix] = effect

    def which(self, name: str) -> str | None:
        return f"/usr/bin/{name}" if name in self.installed else None

    def __call__(self, args, **kwargs) -> CommandResult:
        cmd = [str(a) for a in args]
        self.calls.append(cmd)
        self.kwargs.append(kwargs)

        for prefix, effect in self._effects.items():
            if tuple(cmd[: len(prefix)]) == prefix:
                effect(cmd)

        result = CommandResult(cmd, 0, "", "")
        for prefix in sorted(self._responses, key=len, reverse=True):
            if tuple(cmd[: len(prefix)]) == prefix:
                canned = self._responses[prefix]
                result = CommandResult(cmd, canned.returncode, canned.stdout, canned.stderr)
                break

        if kwargs.get("check", True) and not result.ok:
            raise CommandError(f"'{' '.join(cmd)}' failed", command=cmd, returncode=result.returncode)
        return result

    def called(self, *prefix: str) -> bool:
        return any(tuple(cmd[: len(prefix)]) == prefix for cmd in self.calls)

    def calls_for(self, *prefix: str) -> list[list[str]]:
        return [cmd for cmd in self.calls if tuple(cmd[: len(prefix)]) == prefix]


@pytest.fixture
def fake_runner():
    """Patch command execution and PATH lookups with a FakeRunner."""
    fake = FakeRunner()
    with (
        patch("elchi_installer.runner.run", side_effect=fake),
        patch("elchi_installer.runner.which", side_effect=fake.which),
    ):
        yield fake


@pytest.fixture
def stack_config(tmp_path):
    """StackConfig pointing the binary directory and kind config into tmp_path."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    return StackConfig(bin_dir=bin_dir, kind_config_path=tmp_path / "kind-config.yaml")


@pytest.fixture
def host(stack_config):
    """Host on an x86_64 machine."""
    with patch("elchi_installer.host.platform.machine", return_value="x86_64"):
        host = Host(stack_config)
        assert host.cpu_type == "amd64"
    return host


@pytest.fixture
def mock_core_v1_api():
    """Mock kubeconfig loading and CoreV1Api."""
    with (
        patch("kubernetes.config.load_kube_config") as mock_load,
        patch("kubernetes.client.CoreV1Api") as mock_api,
    ):
        api_instance = MagicMock()
        mock_api.return_value = api_instance
        api_instance.load = mock_load
        yield api_instance


@pytest.fixture
def ubuntu_os_release(tmp_path):
    """An Ubuntu 24.04 os-release file."""
    path = tmp_path / "os-release"
    path.write_text(
        'PRETTY_NAME="Ubuntu 24.04.1 LTS"\n'
        'NAME="Ubuntu"\n'
        'VERSION_ID="24.04"\n'
        "VERSION_CODENAME=noble\n"
        "ID=ubuntu\n"
        "ID_LIKE=debian\n"
    )
    return path
