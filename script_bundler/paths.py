"""Virtual path helpers shared by the bundle pipeline."""
from __future__ import annotations

from pathlib import PurePosixPath

APP_RELATIVE_PREFIX = "~/"
MAP_SUFFIX = "map"
TRANSFORMED_MARKER = ".transformed"


def normalize(virtual_path: str) -> str:
    """Return ``virtual_path`` in its app-relative ``~/`` form."""
    if not virtual_path:
        raise ValueError("Virtual path must not be empty")
    if virtual_path.startswith(APP_RELATIVE_PREFIX):
        return virtual_path
    return APP_RELATIVE_PREFIX + virtual_path.lstrip("/")


def to_absolute(virtual_path: str, app_root: str = "/") -> str:
    """Resolve an app-relative path against the application root."""
    root = app_root if app_root.endswith("/") else app_root + "/"
    return root + normalize(virtual_path)[len(APP_RELATIVE_PREFIX):]


def registry_key(virtual_path: str) -> str:
    # Bundle lookups are case-insensitive.
    return normalize(virtual_path).casefold()


def map_path_for(bundle_path: str) -> str:
    """Virtual path of the source map published for ``bundle_path``.

    The suffix is appended without a dot so the path does not look like a
    ``.map`` file to static file handlers sitting in front of the bundles.
    """
    return bundle_path + MAP_SUFFIX


def transformed_path_for(file_path: str) -> str:
    """``~/js/app.js`` -> ``~/js/app.transformed.js``."""
    relative = PurePosixPath(normalize(file_path)[len(APP_RELATIVE_PREFIX):])
    transformed = relative.with_suffix(TRANSFORMED_MARKER + relative.suffix)
    return APP_RELATIVE_PREFIX + transformed.as_posix()
