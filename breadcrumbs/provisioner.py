"""Build-host facing lifecycle: prepare a configuration, then provision a target."""

from __future__ import annotations

import shutil
import tempfile
from dataclasses import replace
from pathlib import Path
from typing import Any, Mapping, Optional

from .config import PluginConfig, decode_config
from .errors import ConfigError, PreparationHalted
from .logging import get_logger
from .manifest import ManifestBuilder
from .materializer import materialize
from .models import Manifest
from .remote.osprobe import Communicator, probe_os

_TEMP_PREFIX = "breadcrumbs-"


class Provisioner:
    """Collects breadcrumbs for a build and uploads them to the target."""

    def __init__(self, version: str = "", builder: ManifestBuilder | None = None) -> None:
        self.version = version
        self.builder = builder or ManifestBuilder()
        self.logger = get_logger("provisioner")
        self._config: Optional[PluginConfig] = None

    @property
    def config(self) -> PluginConfig:
        if self._config is None:
            raise ConfigError("provisioner has not been prepared")
        return self._config

    def prepare(self, *raw_configs: Optional[Mapping[str, Any]]) -> PluginConfig:
        """Decode the configuration; debug flags halt with their payload.

        Raises PreparationHalted when ``debug_config``, ``debug_manifest`` or
        ``debug_breadcrumbs`` is set, carrying the config JSON, the manifest
        JSON, or the location of the written breadcrumbs respectively.
        """
        config = decode_config(*raw_configs)
        if self.version and not config.plugin_version:
            config = replace(config, plugin_version=self.version)
        self._config = config

        if config.debug_config:
            raise PreparationHalted(config.to_json())
        if config.debug_manifest:
            raise PreparationHalted(self.render_manifest())
        if config.debug_breadcrumbs:
            location = self.collect()
            raise PreparationHalted(f"created breadcrumbs at '{location}'")
        return config

    def build_manifest(self, communicator: Communicator | None = None) -> Manifest:
        optional_fields = probe_os(communicator) if communicator is not None else None
        return self.builder.build(self.config, optional_fields)

    def render_manifest(self) -> str:
        return self.build_manifest().to_json()

    def collect(self, destination: Path | None = None) -> Path:
        """Materialize breadcrumbs without a target and return their directory."""
        config = self.config
        manifest = self.build_manifest()
        root = destination or config.artifacts_dir_path
        if root is None:
            root = Path(tempfile.mkdtemp(prefix=_TEMP_PREFIX))
        materialize(root, manifest, config.save_file_size_bytes)
        return root

    def provision(self, communicator: Communicator) -> None:
        """Build, materialize and upload breadcrumbs to the running target."""
        config = self.config
        manifest = self.build_manifest(communicator)

        temp_dir: Optional[Path] = None
        root = config.artifacts_dir_path
        if root is None:
            temp_dir = Path(tempfile.mkdtemp(prefix=_TEMP_PREFIX))
            root = temp_dir / "breadcrumbs"

        try:
            materialize(root, manifest, config.save_file_size_bytes)
            self.logger.info("Uploading breadcrumbs to '%s'...", config.upload_dir_path)
            communicator.upload_dir(config.upload_dir_path, str(root))
            self.logger.info("Successfully uploaded breadcrumbs")
        finally:
            if temp_dir is not None:
                shutil.rmtree(temp_dir, ignore_errors=True)


__all__ = ["Provisioner"]
