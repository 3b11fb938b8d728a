"""Core data models shared across breadcrumbs components."""

from __future__ import annotations

import json
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .hashing import hash_text

LOCAL_STORAGE = "local_storage"
HTTP_HOST = "http_host"
HTTPS_HOST = "https_host"

HTTP_PREFIX = "http://"
HTTPS_PREFIX = "https://"

MANIFEST_FILENAME = "breadcrumbs.json"
_JSON_INDENT = 4


def classify_source(path: str) -> str:
    """Return the file source implied by a reference's prefix."""
    if path.startswith(HTTP_PREFIX):
        return HTTP_HOST
    if path.startswith(HTTPS_PREFIX):
        return HTTPS_HOST
    return LOCAL_STORAGE


@dataclass(frozen=True)
class FileMeta:
    """A file reference discovered in the build template."""

    name: str
    found_at_path: str
    stored_at_path: str
    source: str
    unresolved: bool = field(default=False, compare=False)

    @classmethod
    def from_path(cls, path: str) -> "FileMeta":
        """Build a finalized, content-addressed reference for ``path``."""
        return cls(
            name=posixpath.basename(path),
            found_at_path=path,
            stored_at_path=hash_text(path),
            source=classify_source(path),
        )

    @classmethod
    def unresolved_reference(cls, text: str) -> "FileMeta":
        """Wrap scanner output that still contains template-variable syntax."""
        return cls(name="", found_at_path=text, stored_at_path="", source="", unresolved=True)

    def destination_dir(self, root: Path) -> Path:
        return (root / self.stored_at_path).parent

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "found_at_path": self.found_at_path,
            "stored_at_path": self.stored_at_path,
            "source": self.source,
        }


@dataclass(frozen=True)
class OptionalManifestFields:
    """Manifest fields only known when a live build target was probed."""

    os_name: str = ""
    os_version: str = ""


@dataclass(frozen=True)
class Manifest:
    """The breadcrumb record describing a build and the files it referenced."""

    plugin_version: str
    git_revision: str
    build_name: str
    build_type: str
    user_variables: Dict[str, str]
    include_suffixes: Tuple[str, ...]
    template_id: str
    found_files: Tuple[FileMeta, ...]
    os_name: str = ""
    os_version: str = ""
    template_raw: bytes = field(default=b"", repr=False, compare=False)
    project_dir: Optional[Path] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        found: List[Dict[str, str]] = [meta.to_dict() for meta in self.found_files]
        return {
            "plugin_version": self.plugin_version,
            "git_revision": self.git_revision,
            "packer_build_name": self.build_name,
            "packer_build_type": self.build_type,
            "packer_user_variables": dict(sorted(self.user_variables.items())),
            "os_name": self.os_name,
            "os_version": self.os_version,
            "include_suffixes": list(self.include_suffixes),
            "packer_template_path": self.template_id,
            "found_files": found,
        }

    def to_json(self) -> str:
        """Serialize as indented JSON terminated by a newline."""
        return json.dumps(self.to_dict(), indent=_JSON_INDENT) + "\n"


__all__ = [
    "FileMeta",
    "HTTPS_HOST",
    "HTTP_HOST",
    "LOCAL_STORAGE",
    "MANIFEST_FILENAME",
    "Manifest",
    "OptionalManifestFields",
    "classify_source",
]
