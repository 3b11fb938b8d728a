"""Build target communication: OS probing and uploads."""

from .osprobe import CommandResult, Communicator, parse_version, probe_os
from .ssh import SSHCommunicator

__all__ = ["CommandResult", "Communicator", "SSHCommunicator", "parse_version", "probe_os"]
