"""Build minified script bundles with version 3 source maps."""

from .artifacts import publish
from .builder import BuildFault, BuildSuccess, DiagnosticRecord, ScriptBundleBuilder
from .models import AdHocBundle, BundleContext, OtherResource, ResourceKind, SourceFile, StaticBundle
from .registry import BundleRegistry, RegistryCollisionError
from .settings import BuildSettings

__all__ = [
    "AdHocBundle",
    "BuildFault",
    "BuildSettings",
    "BuildSuccess",
    "BundleContext",
    "BundleRegistry",
    "DiagnosticRecord",
    "OtherResource",
    "RegistryCollisionError",
    "ResourceKind",
    "ScriptBundleBuilder",
    "SourceFile",
    "StaticBundle",
    "publish",
]
