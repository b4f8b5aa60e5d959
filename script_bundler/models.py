"""Registry resources and the inputs of a bundle build."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional, Union

from . import paths

if TYPE_CHECKING:
    from .registry import BundleRegistry

Transform = Callable[[str], str]


class ResourceKind(str, Enum):
    """Closed set of resource kinds a registry path can be bound to."""

    STATIC_BUNDLE = "static_bundle"
    AD_HOC_BUNDLE = "ad_hoc_bundle"
    OTHER = "other"


@dataclass
class SourceFile:
    """A file included in a bundle, with the transforms applied to it."""

    virtual_path: str
    content: str
    transforms: List[Transform] = field(default_factory=list)

    @property
    def transform_count(self) -> int:
        return len(self.transforms)

    def apply_transforms(self) -> str:
        text = self.content
        for transform in self.transforms:
            text = transform(text)
        return text


@dataclass
class StaticBundle:
    """A bundle declared up front, built from an ordered list of files."""

    path: str
    files: List[SourceFile] = field(default_factory=list)
    kind: ResourceKind = field(default=ResourceKind.STATIC_BUNDLE, init=False)

    def include(self, *files: SourceFile) -> "StaticBundle":
        self.files.extend(files)
        return self


@dataclass
class AdHocBundle:
    """A bundle whose content is set directly by the build that owns it."""

    path: str
    content: str = ""
    kind: ResourceKind = field(default=ResourceKind.AD_HOC_BUNDLE, init=False)

    def set_content(self, content: str) -> None:
        self.content = content


@dataclass
class OtherResource:
    """Any resource bound by a collaborator this package knows nothing about."""

    path: str
    description: str = ""
    kind: ResourceKind = field(default=ResourceKind.OTHER, init=False)


Resource = Union[StaticBundle, AdHocBundle, OtherResource]


@dataclass
class BundleContext:
    """What a build needs from its host: the registry and the app root."""

    registry: "BundleRegistry"
    app_root: str = "/"

    def to_absolute(self, virtual_path: str) -> str:
        return paths.to_absolute(virtual_path, self.app_root)

    def content_for(self, virtual_path: str) -> Optional[str]:
        """Return the published content of an ad hoc bundle, if any."""
        resource = self.registry.get_bundle_for(virtual_path)
        if resource is None or resource.kind is not ResourceKind.AD_HOC_BUNDLE:
            return None
        return resource.content
