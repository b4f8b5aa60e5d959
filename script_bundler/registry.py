"""In-process registry of servable bundles keyed by virtual path."""
from __future__ import annotations

import threading
from typing import Dict, Iterator, List, Optional

from . import paths
from .models import Resource, ResourceKind


class RegistryCollisionError(RuntimeError):
    """A path reserved for derived content is bound to another kind of resource."""

    def __init__(self, path: str, kind: ResourceKind) -> None:
        super().__init__(
            f"There is a bundle on the virtual path '{path}' of the kind '{kind.value}' "
            f"when it was expected to be of the kind '{ResourceKind.AD_HOC_BUNDLE.value}'. "
            "That virtual path is reserved for generated content."
        )
        self.path = path
        self.kind = kind


class BundleRegistry:
    """Thread-safe mapping of virtual paths to resources.

    Lookups are case-insensitive and accept both ``~/x`` and ``/x`` forms.
    """

    def __init__(self) -> None:
        self._resources: Dict[str, Resource] = {}
        self._lock = threading.Lock()

    def get_bundle_for(self, virtual_path: str) -> Optional[Resource]:
        with self._lock:
            return self._resources.get(paths.registry_key(virtual_path))

    def add(self, resource: Resource) -> Resource:
        """Bind ``resource`` to its path, replacing any previous binding."""
        with self._lock:
            self._resources[paths.registry_key(resource.path)] = resource
        return resource

    def get_or_add(self, resource: Resource) -> Resource:
        """Bind ``resource`` unless its path is taken; return the bound one."""
        with self._lock:
            return self._resources.setdefault(paths.registry_key(resource.path), resource)

    def remove(self, virtual_path: str) -> Optional[Resource]:
        with self._lock:
            return self._resources.pop(paths.registry_key(virtual_path), None)

    def of_kind(self, kind: ResourceKind) -> List[Resource]:
        with self._lock:
            return [resource for resource in self._resources.values() if resource.kind is kind]

    def __contains__(self, virtual_path: object) -> bool:
        if not isinstance(virtual_path, str):
            return False
        return self.get_bundle_for(virtual_path) is not None

    def __iter__(self) -> Iterator[Resource]:
        with self._lock:
            resources = list(self._resources.values())
        return iter(resources)

    def __len__(self) -> int:
        with self._lock:
            return len(self._resources)
