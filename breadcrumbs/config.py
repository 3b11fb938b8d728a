"""Plugin configuration decoding and validation."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .errors import ConfigError

DEFAULT_TEMPLATE_SIZE_BYTES = 100_000
DEFAULT_SAVE_FILE_SIZE_BYTES = 100_000
DEFAULT_UPLOAD_DIR = "/"


@dataclass(frozen=True)
class PluginConfig:
    """Validated configuration snapshot for one build."""

    template_path: Path
    include_suffixes: List[str] = field(default_factory=list)
    artifacts_dir_path: Optional[Path] = None
    upload_dir_path: str = DEFAULT_UPLOAD_DIR
    template_size_bytes: int = DEFAULT_TEMPLATE_SIZE_BYTES
    save_file_size_bytes: int = DEFAULT_SAVE_FILE_SIZE_BYTES
    debug_config: bool = False
    debug_manifest: bool = False
    debug_breadcrumbs: bool = False
    plugin_version: str = ""
    build_name: str = ""
    builder_type: str = ""
    user_variables: Dict[str, str] = field(default_factory=dict)

    @property
    def project_dir_path(self) -> Path:
        """Directory holding the template; always derived, never configured."""
        return self.template_path.parent

    def to_dict(self) -> Dict[str, Any]:
        return {
            "packer_template_path": str(self.template_path),
            "project_dir_path": str(self.project_dir_path),
            "include_suffixes": list(self.include_suffixes),
            "artifacts_dir_path": str(self.artifacts_dir_path) if self.artifacts_dir_path else "",
            "upload_dir_path": self.upload_dir_path,
            "template_size_bytes": self.template_size_bytes,
            "save_file_size_bytes": self.save_file_size_bytes,
            "debug_config": self.debug_config,
            "debug_manifest": self.debug_manifest,
            "debug_breadcrumbs": self.debug_breadcrumbs,
            "plugin_version": self.plugin_version,
            "packer_build_name": self.build_name,
            "packer_builder_type": self.builder_type,
            "packer_user_variables": dict(sorted(self.user_variables.items())),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=4)


def decode_config(*raw_configs: Optional[Mapping[str, Any]]) -> PluginConfig:
    """Merge raw configuration mappings (later ones win) into a PluginConfig."""
    data: Dict[str, Any] = {}
    for raw in raw_configs:
        if raw is None:
            continue
        if not isinstance(raw, Mapping):
            raise ConfigError("configuration must be a mapping")
        data.update(raw)

    template = _as_str(data.get("packer_template_path"))
    if template is None or not template.strip():
        raise ConfigError("failed to get template path")

    artifacts = _as_str(data.get("artifacts_dir_path"))
    upload = _as_str(data.get("upload_dir_path"))

    return PluginConfig(
        template_path=Path(template).expanduser(),
        include_suffixes=_as_str_list(data.get("include_suffixes")),
        artifacts_dir_path=Path(artifacts).expanduser() if artifacts and artifacts.strip() else None,
        upload_dir_path=upload if upload and upload.strip() else DEFAULT_UPLOAD_DIR,
        template_size_bytes=_size_limit(
            data.get("template_size_bytes"), "template_size_bytes", DEFAULT_TEMPLATE_SIZE_BYTES
        ),
        save_file_size_bytes=_size_limit(
            data.get("save_file_size_bytes"), "save_file_size_bytes", DEFAULT_SAVE_FILE_SIZE_BYTES
        ),
        debug_config=_as_bool(data.get("debug_config")) or False,
        debug_manifest=_as_bool(data.get("debug_manifest")) or False,
        debug_breadcrumbs=_as_bool(data.get("debug_breadcrumbs")) or False,
        plugin_version=_as_str(data.get("plugin_version")) or "",
        build_name=_as_str(data.get("packer_build_name")) or "",
        builder_type=_as_str(data.get("packer_builder_type")) or "",
        user_variables=_as_str_map(data.get("packer_user_variables")),
    )


def load_config(
    config_path: Path, overrides: Optional[Mapping[str, Any]] = None
) -> PluginConfig:
    """Load a YAML configuration file, apply ``overrides`` and validate.

    A relative ``packer_template_path`` in the file is resolved against the
    file's directory.
    """
    config_file = Path(config_path).expanduser().resolve()
    data = _read_config(config_file)

    template = _as_str(data.get("packer_template_path"))
    if template:
        template_path = Path(template).expanduser()
        if not template_path.is_absolute():
            data["packer_template_path"] = str(config_file.parent / template_path)

    return decode_config(data, overrides)


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}

    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _size_limit(value: Any, key: str, default: int) -> int:
    if value is None:
        return default
    limit = _as_int(value)
    if limit is None:
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    if limit < 0:
        raise ConfigError(f"{key} must not be negative, got {limit}")
    return limit or default


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, Path):
        return str(value)
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


def _as_str_map(value: Any) -> Dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    result: Dict[str, str] = {}
    for key, item in value.items():
        text = _as_str(item)
        if text is None:
            continue
        result[str(key)] = text
    return result


__all__ = [
    "DEFAULT_SAVE_FILE_SIZE_BYTES",
    "DEFAULT_TEMPLATE_SIZE_BYTES",
    "DEFAULT_UPLOAD_DIR",
    "PluginConfig",
    "decode_config",
    "load_config",
]
