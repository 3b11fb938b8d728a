"""Assembly of the breadcrumbs manifest from a build template."""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Callable, List, Optional

from .config import PluginConfig
from .errors import MissingVariableError, TemplateTooLargeError
from .git.revision import GitRevisionProvider
from .hashing import hash_text
from .locator import find_file_in_dir
from .logging import get_logger
from .models import FileMeta, Manifest, OptionalManifestFields
from .scanner import ReferenceScanner
from .variables import VariableResolver


class ManifestBuilder:
    """Scans a template for every configured suffix and builds the Manifest."""

    def __init__(
        self,
        scanner: ReferenceScanner | None = None,
        resolver: VariableResolver | None = None,
        revision_provider: Callable[[Path], str] | None = None,
        locator: Callable[[str, Path], str] = find_file_in_dir,
    ) -> None:
        self.scanner = scanner or ReferenceScanner()
        self.resolver = resolver or VariableResolver(self.scanner.syntax)
        self._revision_provider = revision_provider or GitRevisionProvider().current
        self._locator = locator
        self.logger = get_logger("manifest")

    def build(
        self, config: PluginConfig, optional_fields: OptionalManifestFields | None = None
    ) -> Manifest:
        """Return the manifest for ``config``'s template."""
        optional_fields = optional_fields or OptionalManifestFields()
        template_raw = self._read_template(config)

        found_files: List[FileMeta] = []
        for suffix in config.include_suffixes:
            results = self.scanner.scan(template_raw, suffix)
            self.logger.debug("Suffix %s matched %d reference(s)", suffix, len(results))
            for meta in results:
                if meta.unresolved:
                    meta = self._resolve(meta.found_at_path, config)
                found_files.append(meta)

        revision = self._revision_provider(config.project_dir_path)

        return Manifest(
            plugin_version=config.plugin_version,
            git_revision=revision,
            build_name=config.build_name,
            build_type=config.builder_type,
            user_variables=dict(config.user_variables),
            include_suffixes=tuple(config.include_suffixes),
            template_id=hash_text(config.template_path.name),
            found_files=tuple(found_files),
            os_name=optional_fields.os_name,
            os_version=optional_fields.os_version,
            template_raw=template_raw,
            project_dir=config.project_dir_path,
        )

    def _read_template(self, config: PluginConfig) -> bytes:
        size = config.template_path.stat().st_size
        if size > config.template_size_bytes:
            raise TemplateTooLargeError(str(config.template_path), config.template_size_bytes)
        return config.template_path.read_bytes()

    def _resolve(self, reference: str, config: PluginConfig) -> FileMeta:
        try:
            resolved = self.resolver.resolve(reference, config.user_variables)
        except MissingVariableError as exc:
            self.logger.debug(
                "Variable %s missing for %s; searching %s", exc.name, reference, config.project_dir_path
            )
            return self._locate(reference, config)
        return FileMeta.from_path(resolved)

    def _locate(self, reference: str, config: PluginConfig) -> FileMeta:
        dir_hint, file_name = self.resolver.trim_to_file(reference)
        dir_hint = dir_hint.strip("/")
        search_dir = config.project_dir_path / dir_hint if dir_hint else config.project_dir_path
        located = self._locator(file_name, search_dir)
        path = posixpath.join(dir_hint, located) if dir_hint else located
        self.logger.info("Resolved %s to %s by searching the project directory", reference, path)
        return FileMeta.from_path(path)


def build_manifest(
    config: PluginConfig, optional_fields: Optional[OptionalManifestFields] = None
) -> Manifest:
    """Build a manifest with the default scanner, resolver and git lookup."""
    return ManifestBuilder().build(config, optional_fields)


__all__ = ["ManifestBuilder", "build_manifest"]
