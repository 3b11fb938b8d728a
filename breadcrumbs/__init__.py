"""Collect the files a build template references into content-addressed breadcrumbs."""

__version__ = "0.1.0"

from .config import PluginConfig, decode_config, load_config
from .manifest import ManifestBuilder, build_manifest
from .materializer import materialize
from .models import FileMeta, Manifest, OptionalManifestFields
from .provisioner import Provisioner
from .scanner import ReferenceScanner
from .variables import VariableResolver

__all__ = [
    "FileMeta",
    "Manifest",
    "ManifestBuilder",
    "OptionalManifestFields",
    "PluginConfig",
    "Provisioner",
    "ReferenceScanner",
    "VariableResolver",
    "build_manifest",
    "decode_config",
    "load_config",
    "materialize",
]
