"""Tests for the SSH communicator."""

from __future__ import annotations

import subprocess

import pytest

from breadcrumbs.errors import RemoteCommandError
from breadcrumbs.remote.ssh import DEFAULT_SSH_OPTIONS, SSHCommunicator


def _completed(args, returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=args, returncode=returncode, stdout=stdout, stderr=stderr)


def test_run_invokes_ssh_and_returns_result() -> None:
    calls = []

    def runner(args, **kwargs):
        calls.append((args, kwargs))
        return _completed(args, returncode=0, stdout="CentOS Linux release 7.6.1810\n")

    communicator = SSHCommunicator("root@10.0.0.5", timeout=15, runner=runner)
    result = communicator.run("cat /etc/redhat-release")

    assert result.exit_status == 0
    assert result.stdout == "CentOS Linux release 7.6.1810\n"
    args, kwargs = calls[0]
    assert args == ["ssh", *DEFAULT_SSH_OPTIONS, "root@10.0.0.5", "cat /etc/redhat-release"]
    assert kwargs["timeout"] == 15
    assert kwargs["capture_output"] is True


def test_run_reports_non_zero_exit_without_raising() -> None:
    communicator = SSHCommunicator(
        "root@host", runner=lambda args, **kwargs: _completed(args, returncode=2)
    )

    assert communicator.run("ls").exit_status == 2


def test_run_timeout_raises_remote_error() -> None:
    def runner(args, **kwargs):
        raise subprocess.TimeoutExpired(args, kwargs["timeout"])

    with pytest.raises(RemoteCommandError):
        SSHCommunicator("root@host", runner=runner).run("ls")


def test_upload_dir_uses_scp(tmp_path) -> None:
    calls = []

    def runner(args, **kwargs):
        calls.append(args)
        return _completed(args)

    SSHCommunicator("root@host", options=(), runner=runner).upload_dir("/var/crumbs", str(tmp_path))

    assert calls == [["scp", "-r", f"{tmp_path}/.", "root@host:/var/crumbs"]]


def test_upload_dir_failure_raises() -> None:
    communicator = SSHCommunicator(
        "root@host",
        runner=lambda args, **kwargs: _completed(args, returncode=1, stderr="permission denied\n"),
    )

    with pytest.raises(RemoteCommandError) as excinfo:
        communicator.upload_dir("/", "/tmp/crumbs")

    assert "permission denied" in str(excinfo.value)
