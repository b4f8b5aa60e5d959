"""Publish generated content as ad hoc bundles in the registry."""
from __future__ import annotations

import logging
from typing import Union

from .models import AdHocBundle, BundleContext, ResourceKind
from .registry import BundleRegistry, RegistryCollisionError

logger = logging.getLogger(__name__)


def publish(target: Union[BundleContext, BundleRegistry], virtual_path: str, content: str) -> AdHocBundle:
    """Create or reuse the ad hoc bundle at ``virtual_path`` and set its content.

    Raises :class:`RegistryCollisionError` when the path is already bound to
    a resource of another kind.
    """
    registry = target.registry if isinstance(target, BundleContext) else target
    bundle = registry.get_or_add(AdHocBundle(virtual_path))
    if bundle.kind is not ResourceKind.AD_HOC_BUNDLE:
        raise RegistryCollisionError(virtual_path, bundle.kind)
    bundle.set_content(content)
    logger.debug("Published %d characters at %s", len(content), virtual_path)
    return bundle
