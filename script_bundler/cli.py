"""Build a script bundle from files on disk.

Usage:
    script-bundler --root static --out build js/a.js js/b.js

Writes the bundle and every generated artifact (source map, transformed
files) under the output directory, at their virtual paths.
"""
from __future__ import annotations

import argparse
import logging
import pathlib
from typing import List, Optional

from . import paths
from .builder import BuildFault, ScriptBundleBuilder
from .models import BundleContext, ResourceKind, SourceFile, StaticBundle
from .registry import BundleRegistry
from .settings import BuildSettings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Concatenate and minify script files into one bundle with a source map"
    )
    parser.add_argument("files", nargs="+", help="Script files relative to --root, in bundle order")
    parser.add_argument("--bundle", default="~/bundles/site", help="Virtual path of the bundle")
    parser.add_argument("--root", default=".", help="Directory that ~/ refers to")
    parser.add_argument("--out", default="build", help="Directory to write the bundle and its artifacts to")
    parser.add_argument("--app-root", default="/", help="URL path the application is served from")
    parser.add_argument(
        "--minify",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Shrink the output (defaults to BUNDLE_MINIFY_CODE)",
    )
    parser.add_argument(
        "--drop-important-comments",
        action="store_true",
        help="Remove /*! ... */ comments when minifying",
    )
    return parser


def read_sources(root: pathlib.Path, names: List[str]) -> List[SourceFile]:
    files = []
    for name in names:
        path = root / name
        if not path.is_file():
            raise SystemExit(f"Source file {path} does not exist")
        files.append(SourceFile(paths.normalize(pathlib.PurePath(name).as_posix()), path.read_text()))
    return files


def write_artifact(out_dir: pathlib.Path, virtual_path: str, content: str) -> pathlib.Path:
    dest = out_dir / paths.normalize(virtual_path)[len(paths.APP_RELATIVE_PREFIX):]
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_text(content)
    return dest


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)

    defaults = BuildSettings.from_env()
    settings = BuildSettings(
        minify_code=defaults.minify_code if args.minify is None else args.minify,
        preserve_important_comments=defaults.preserve_important_comments and not args.drop_important_comments,
    )

    registry = BundleRegistry()
    bundle = registry.add(StaticBundle(args.bundle, read_sources(pathlib.Path(args.root), args.files)))
    context = BundleContext(registry, app_root=args.app_root)
    outcome = ScriptBundleBuilder(settings).build(bundle, context, bundle.files)

    out_dir = pathlib.Path(args.out)
    written = [write_artifact(out_dir, bundle.path, outcome.content)]
    for artifact in registry.of_kind(ResourceKind.AD_HOC_BUNDLE):
        written.append(write_artifact(out_dir, artifact.path, artifact.content))
    for dest in written:
        print(f"Wrote {dest}")
    return 1 if isinstance(outcome, BuildFault) else 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
