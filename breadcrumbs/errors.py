"""Exception types raised by breadcrumbs components."""

from __future__ import annotations


class BreadcrumbsError(RuntimeError):
    """Base class for every error surfaced by breadcrumbs."""


class ConfigError(BreadcrumbsError):
    """Raised when the plugin configuration is missing or cannot be parsed."""


class TemplateTooLargeError(BreadcrumbsError):
    """Raised when the template file exceeds the configured size limit."""

    def __init__(self, path: str, limit: int) -> None:
        super().__init__(
            f"template file '{path}' size exceeds maximum size of {limit} byte(s)"
        )
        self.path = path
        self.limit = limit


class FileTooLargeError(BreadcrumbsError):
    """Raised when a local file or HTTP body exceeds the save size limit."""

    def __init__(self, source: str, limit: int, *, kind: str = "local file") -> None:
        super().__init__(f"{kind} '{source}' exceeds maximum size of {limit} byte(s)")
        self.source = source
        self.limit = limit


class VariableSyntaxError(BreadcrumbsError):
    """Raised when a reference does not contain the expected variable markers."""


class ReferenceDecodeError(BreadcrumbsError):
    """Raised when a reference in the template is not valid UTF-8."""

    def __init__(self, offset: int) -> None:
        super().__init__(f"template reference at byte offset {offset} is not valid UTF-8")
        self.offset = offset


class UnknownVariableTypeError(BreadcrumbsError):
    """Raised for a `{{ ... }}` span that is neither a user nor a special variable."""

    def __init__(self, raw: str) -> None:
        super().__init__(f"unknown template variable type in '{raw}'")
        self.raw = raw


class MissingVariableError(BreadcrumbsError):
    """Raised when a template variable has no value in the known variables."""

    def __init__(self, name: str, raw: str = "") -> None:
        super().__init__(
            f"template variable '{name}' does not exist in the provided variables"
        )
        self.name = name
        self.raw = raw


class ReferenceNotFoundError(BreadcrumbsError):
    """Raised when the disk fallback cannot find a file referenced by the template."""

    def __init__(self, file_name: str, directory: str) -> None:
        super().__init__(f"failed to find file '{file_name}' in '{directory}'")
        self.file_name = file_name
        self.directory = directory


class DirectoryWalkError(BreadcrumbsError):
    """Raised when walking the project tree fails."""


class FetchFailedError(BreadcrumbsError):
    """Raised when an HTTP file cannot be fetched."""

    def __init__(self, url: str, reason: str, status: int | None = None) -> None:
        super().__init__(f"failed to GET http file '{url}' - {reason}")
        self.url = url
        self.status = status


class CopyFailedError(BreadcrumbsError):
    """Raised when a local file cannot be copied into the artifact directory."""

    def __init__(self, source: str, destination: str, reason: str) -> None:
        super().__init__(
            f"failed to copy local file '{source}' to '{destination}' - {reason}"
        )
        self.source = source
        self.destination = destination


class UnknownSourceError(BreadcrumbsError):
    """Raised when a found file carries a source the materializer cannot handle."""

    def __init__(self, source: str) -> None:
        super().__init__(f"unknown file source '{source}'")
        self.source = source


class RevisionLookupError(BreadcrumbsError):
    """Raised when the current source-control revision cannot be determined."""


class RemoteCommandError(BreadcrumbsError):
    """Raised when a command or upload against the build target fails."""


class PreparationHalted(BreadcrumbsError):
    """Terminating signal of a debug-mode preparation, carrying its payload."""

    def __init__(self, payload: str) -> None:
        super().__init__(payload)
        self.payload = payload


__all__ = [
    "BreadcrumbsError",
    "ConfigError",
    "CopyFailedError",
    "DirectoryWalkError",
    "FetchFailedError",
    "FileTooLargeError",
    "MissingVariableError",
    "PreparationHalted",
    "ReferenceDecodeError",
    "ReferenceNotFoundError",
    "RemoteCommandError",
    "RevisionLookupError",
    "TemplateTooLargeError",
    "UnknownSourceError",
    "UnknownVariableTypeError",
    "VariableSyntaxError",
]
