"""SSH-backed communicator for provisioning a running build target."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Sequence

from ..errors import RemoteCommandError
from ..logging import get_logger
from .osprobe import CommandResult

# Build targets are short-lived and usually reuse addresses, so host keys are
# neither checked nor recorded.
DEFAULT_SSH_OPTIONS: Sequence[str] = (
    "-o", "StrictHostKeyChecking=no",
    "-o", "UserKnownHostsFile=/dev/null",
    "-o", "ConnectTimeout=10",
    "-o", "BatchMode=yes",
)


class SSHCommunicator:
    """Runs commands and uploads directories through the OpenSSH client tools."""

    def __init__(
        self,
        target: str,
        *,
        options: Sequence[str] = DEFAULT_SSH_OPTIONS,
        timeout: float = 120.0,
        runner: Callable[..., subprocess.CompletedProcess] | None = None,
    ) -> None:
        self.target = target
        self.options = list(options)
        self.timeout = timeout
        self._runner = runner or subprocess.run
        self.logger = get_logger("ssh")

    def run(self, command: str) -> CommandResult:
        """Run ``command`` on the target and return its exit status and stdout."""
        try:
            completed = self._runner(
                ["ssh", *self.options, self.target, command],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise RemoteCommandError(f"SSH command timed out after {self.timeout:g}s: {command}") from exc
        return CommandResult(exit_status=completed.returncode, stdout=completed.stdout or "")

    def upload_dir(self, destination: str, source_dir: str) -> None:
        """Copy the contents of ``source_dir`` into ``destination`` on the target."""
        source = Path(source_dir)
        self.logger.debug("Uploading %s to %s:%s", source, self.target, destination)
        try:
            completed = self._runner(
                ["scp", *self.options, "-r", f"{source}/.", f"{self.target}:{destination}"],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise RemoteCommandError(f"upload to '{destination}' timed out after {self.timeout:g}s") from exc
        if completed.returncode != 0:
            raise RemoteCommandError(
                f"upload to '{destination}' failed (rc={completed.returncode})\n"
                f"stderr: {(completed.stderr or '').strip()}"
            )


__all__ = ["DEFAULT_SSH_OPTIONS", "SSHCommunicator"]
