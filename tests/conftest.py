"""Shared fixtures for the bundle pipeline tests."""

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from script_bundler import BundleContext, BundleRegistry, SourceFile, StaticBundle  # noqa: E402


@pytest.fixture
def registry():
    return BundleRegistry()


@pytest.fixture
def context(registry):
    return BundleContext(registry)


@pytest.fixture
def make_bundle(registry):
    def _make(*files: SourceFile, path: str = "~/bundles/app") -> StaticBundle:
        return registry.add(StaticBundle(path, list(files)))

    return _make
