"""Source-control revision lookup."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable

from ..errors import RevisionLookupError


class GitRevisionProvider:
    """Reports the commit currently checked out in a project directory."""

    def __init__(self, runner: Callable[..., str] | None = None) -> None:
        self._runner = runner or self._default_runner

    def current(self, project_dir: Path) -> str:
        """Return the trimmed output of ``git rev-parse HEAD`` run in ``project_dir``."""
        return self._runner(["git", "rev-parse", "HEAD"], cwd=Path(project_dir)).strip()

    @staticmethod
    def _default_runner(args: Iterable[str], *, cwd: Path) -> str:
        command = list(args)
        try:
            completed = subprocess.run(
                command,
                cwd=str(cwd),
                text=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as exc:
            raise RevisionLookupError(f"failed to get current git revision - {exc}") from exc
        if completed.returncode != 0:
            raise RevisionLookupError(
                f"failed to get current git revision - exit status {completed.returncode}"
                f" - output: '{completed.stdout.strip()}'"
            )
        return completed.stdout


__all__ = ["GitRevisionProvider"]
