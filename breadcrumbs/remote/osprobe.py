"""Operating system fingerprinting of a live build target."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from ..errors import RemoteCommandError
from ..logging import get_logger
from ..models import OptionalManifestFields

UNIX = "unix"
WINDOWS = "windows"
UNKNOWN = "unknown"

_LOGGER = get_logger("osprobe")


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a command run on the build target."""

    exit_status: int
    stdout: str = ""


class Communicator(Protocol):
    """Connection to the machine being built."""

    def run(self, command: str) -> CommandResult:
        ...

    def upload_dir(self, destination: str, source_dir: str) -> None:
        ...


@dataclass(frozen=True)
class OSMatch:
    name: str
    version: str


def parse_version(text: str) -> str:
    """Return the first run of digits and dots that starts with a digit."""
    version = []
    started = False
    for char in text:
        if char.isdigit():
            started = True
        if not started:
            continue
        if not char.isdigit() and char != ".":
            break
        version.append(char)
    return "".join(version)


def _run_quietly(communicator: Communicator, command: str) -> Optional[CommandResult]:
    try:
        return communicator.run(command)
    except (RemoteCommandError, OSError) as exc:
        _LOGGER.debug("Command %r could not be started: %s", command, exc)
        return None


class ReleaseFileProbe:
    """Matches a distribution by reading a release file on the target."""

    def __init__(self, command: str, default_name: str, variants: Sequence[str] = ()) -> None:
        self.command = command
        self.default_name = default_name
        self.variants = tuple(variants)

    def probe(self, communicator: Communicator) -> Optional[OSMatch]:
        result = _run_quietly(communicator, self.command)
        if result is None or result.exit_status != 0:
            return None
        lowered = result.stdout.lower()
        name = next((variant for variant in self.variants if variant in lowered), self.default_name)
        return OSMatch(name=name, version=parse_version(result.stdout))


UNIX_PROBES: Sequence[ReleaseFileProbe] = (
    ReleaseFileProbe("cat /etc/redhat-release", "redhat", variants=("centos",)),
    ReleaseFileProbe("cat /etc/issue", "debian", variants=("ubuntu",)),
    ReleaseFileProbe("sw_vers", "macos"),
)


def os_category(communicator: Communicator) -> str:
    result = _run_quietly(communicator, "ls")
    if result is None:
        return UNKNOWN
    if result.exit_status == 0:
        return UNIX
    return WINDOWS


def windows_version(communicator: Communicator) -> str:
    result = _run_quietly(communicator, "ver")
    if result is None:
        return ""
    return parse_version(result.stdout)


def probe_os(
    communicator: Communicator, probes: Sequence[ReleaseFileProbe] = UNIX_PROBES
) -> OptionalManifestFields:
    """Classify the target's OS; unknown targets yield empty fields."""
    category = os_category(communicator)
    if category == WINDOWS:
        return OptionalManifestFields(os_name=WINDOWS, os_version=windows_version(communicator))
    if category == UNIX:
        for probe in probes:
            match = probe.probe(communicator)
            if match is not None:
                _LOGGER.debug("Target identified as %s %s", match.name, match.version)
                return OptionalManifestFields(os_name=match.name, os_version=match.version)
    return OptionalManifestFields()


__all__ = [
    "CommandResult",
    "Communicator",
    "OSMatch",
    "ReleaseFileProbe",
    "UNIX_PROBES",
    "os_category",
    "parse_version",
    "probe_os",
    "windows_version",
]
