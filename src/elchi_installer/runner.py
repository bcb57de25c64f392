"""External command execution.

Every call to apt, docker, kind, kubectl and helm goes through :func:`run`,
which captures the exit status and output uniformly. Call sites choose
whether a failure is fatal (``check=True``) or advisory (``check=False``).
"""

import os
import shutil
import subprocess
from collections.abc import Mapping, Sequence

from icecream import ic

from elchi_installer.exceptions import CommandError
from elchi_installer.models import CommandResult

# Exit status shells use for "command not found"
_NOT_FOUND = 127


def which(name: str) -> str | None:
    """Return the full path of an executable on PATH, or None."""
    return shutil.which(name)


def is_root() -> bool:
    """Return True when the process already runs with root privileges."""
    return os.geteuid() == 0


def _with_sudo(args: Sequence[str], sudo: bool) -> list[str]:
    cmd = [str(arg) for arg in args]
    if sudo and not is_root():
        cmd.insert(0, "sudo")
    return cmd


def run(
    args: Sequence[str],
    *,
    sudo: bool = False,
    check: bool = True,
    input: str | bytes | None = None,
    stream: bool = False,
    env: Mapping[str, str] | None = None,
) -> CommandResult:
    """Run an external command.

    Args:
        args: Command line to execute.
        sudo: Prefix the command with sudo unless already running as root.
        check: Raise CommandError when the command fails or is missing.
        input: Data written to the command's stdin.
        stream: Let output go straight to the terminal instead of capturing it.
        env: Extra environment variables merged into the current environment.

    Returns:
        CommandResult with exit status and captured output.

    Raises:
        CommandError: If check is True and the command exits non-zero
            or cannot be executed.

    """
    cmd = _with_sudo(args, sudo)
    ic(cmd)

    run_env = {**os.environ, **env} if env else None
    text = not isinstance(input, bytes)

    try:
        completed = subprocess.run(
            cmd,
            input=input,
            capture_output=not stream,
            text=text,
            env=run_env,
            check=False,
        )
    except FileNotFoundError as err:
        if check:
            raise CommandError(f"Command not found: {cmd[0]}", command=cmd, returncode=_NOT_FOUND) from err
        return CommandResult(args=cmd, returncode=_NOT_FOUND, stdout="", stderr=str(err))

    stdout = completed.stdout or ""
    stderr = completed.stderr or ""
    if isinstance(stdout, bytes):
        stdout = stdout.decode(errors="replace")
    if isinstance(stderr, bytes):
        stderr = stderr.decode(errors="replace")

    result = CommandResult(args=cmd, returncode=completed.returncode, stdout=stdout, stderr=stderr)
    ic(result.returncode)

    if check and not result.ok:
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else f"exit code {result.returncode}"
        raise CommandError(
            f"'{' '.join(cmd)}' failed: {detail}",
            command=cmd,
            returncode=result.returncode,
            stderr=stderr,
        )
    return result


def run_quiet(args: Sequence[str], **kwargs: object) -> CommandResult:
    """Run a command on a best-effort basis; failures are returned, never raised."""
    kwargs["check"] = False
    return run(args, **kwargs)  # type: ignore[arg-type]
