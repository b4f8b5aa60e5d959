"""Build script bundles with a source map published alongside them."""
from __future__ import annotations

import logging
import traceback
from dataclasses import asdict, dataclass, field
from typing import Iterable, List, Optional, Union

from . import artifacts, paths
from .concat import ConcatenatedContent, SourceOrigins, concatenate
from .minifier import CodeSettings, EvalTreatment, MinifyDiagnostics, minify
from .models import BundleContext, SourceFile, StaticBundle
from .registry import RegistryCollisionError
from .settings import BuildSettings
from .sourcemap import SourceMapSession

logger = logging.getLogger(__name__)

MINIFIER_ERRORS_HEADER = (
    "An error occurred during minification, see errors below - returning concatenated content unminified."
)
GENERIC_ERROR_HEADER = (
    "An error occurred during minification, see the diagnostic log for more details"
    " - returning concatenated content unminified."
)


@dataclass
class DiagnosticRecord:
    """Operator-facing details of a failed build. Never served."""

    bundle_path: str
    message: str
    inner_message: Optional[str]
    origin: str
    stack_trace: str

    @classmethod
    def from_exception(cls, bundle_path: str, exc: BaseException) -> "DiagnosticRecord":
        inner = exc.__cause__ or exc.__context__
        frames = traceback.extract_tb(exc.__traceback__)
        origin = f"{frames[-1].filename}:{frames[-1].lineno} in {frames[-1].name}" if frames else type(exc).__module__
        return cls(
            bundle_path=bundle_path,
            message=f"{type(exc).__name__}: {exc}",
            inner_message=f"{type(inner).__name__}: {inner}" if inner is not None and str(inner) else None,
            origin=origin,
            stack_trace="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        )


@dataclass
class BuildSuccess:
    """Content to serve. ``diagnostics`` is set when minification was skipped."""

    content: str
    source_map: Optional[str] = None
    diagnostics: List[str] = field(default_factory=list)


@dataclass
class BuildFault:
    """Content to serve after an unexpected error, plus what went wrong."""

    content: str
    summary: str
    record: DiagnosticRecord


BuildOutcome = Union[BuildSuccess, BuildFault]


def _comment_safe(text: str) -> str:
    return text.replace("*/", "* /")


def minifier_errors_content(concatenated: str, messages: Iterable[str]) -> str:
    lines = ["/* " + MINIFIER_ERRORS_HEADER]
    lines.extend(_comment_safe(message) for message in messages)
    lines.append(" */")
    return "\n".join(lines) + "\n" + concatenated


def generic_errors_content(concatenated: str) -> str:
    return "/* " + GENERIC_ERROR_HEADER + "\n */\n" + concatenated


class ScriptBundleBuilder:
    """Concatenate, minify and source-map the files of a script bundle.

    The source map is published as an ad hoc bundle at the bundle path with
    ``map`` appended. A build never fails because of the script itself:
    when minification is not possible the concatenated files are served
    as they are, behind a comment saying why.
    """

    def __init__(self, settings: Optional[BuildSettings] = None, log: Optional[logging.Logger] = None) -> None:
        self.settings = settings or BuildSettings()
        self.log = log or logger

    def build_bundle_content(
        self,
        bundle: StaticBundle,
        context: BundleContext,
        files: Optional[Iterable[SourceFile]],
        settings: Optional[BuildSettings] = None,
    ) -> str:
        if files is None:
            return ""
        return self.build(bundle, context, files, settings).content

    def build(
        self,
        bundle: StaticBundle,
        context: BundleContext,
        files: Iterable[SourceFile],
        settings: Optional[BuildSettings] = None,
    ) -> BuildOutcome:
        if context is None:
            raise ValueError("context is required")
        if bundle is None:
            raise ValueError("bundle is required")
        settings = settings or self.settings

        concatenated = ConcatenatedContent("", SourceOrigins())
        try:
            concatenated = concatenate(context, files)
            return self._minify(bundle, context, concatenated, settings)
        except RegistryCollisionError:
            raise
        except Exception as exc:
            return self._fault(bundle, concatenated.text, exc)

    def _minify(
        self,
        bundle: StaticBundle,
        context: BundleContext,
        concatenated: ConcatenatedContent,
        settings: BuildSettings,
    ) -> BuildSuccess:
        map_virtual_path = paths.map_path_for(bundle.path)
        session = SourceMapSession(context.to_absolute(bundle.path), context.to_absolute(map_virtual_path))
        code_settings = CodeSettings(
            minify_code=settings.minify_code,
            preserve_important_comments=settings.preserve_important_comments,
            term_semicolons=True,
            eval_treatment=EvalTreatment.MAKE_IMMEDIATE_SAFE,
            symbols_map=session,
        )

        result = minify(concatenated.text, code_settings, concatenated.origins)
        if isinstance(result, MinifyDiagnostics):
            messages = result.messages
            self.log.warning(
                "Minification of bundle %s reported %d error(s); serving it unminified: %s",
                bundle.path,
                len(messages),
                "; ".join(messages),
            )
            return BuildSuccess(minifier_errors_content(concatenated.text, messages), diagnostics=messages)

        artifacts.publish(context, map_virtual_path, result.source_map)
        return BuildSuccess(result.code, source_map=result.source_map)

    def _fault(self, bundle: StaticBundle, concatenated: str, exc: Exception) -> BuildFault:
        record = DiagnosticRecord.from_exception(bundle.path, exc)
        self.log.warning(
            "An exception occurred trying to build bundle contents for bundle with virtual path: %s. "
            "See exception details in the info log.",
            bundle.path,
            extra={"diagnostic": asdict(record)},
        )
        prefix = f"[Bundle '{bundle.path}']"
        self.log.info("%s exception message: %s", prefix, record.message)
        if record.inner_message:
            self.log.info("%s inner exception message: %s", prefix, record.inner_message)
        self.log.info("%s source: %s", prefix, record.origin)
        self.log.info("%s stack trace: %s", prefix, record.stack_trace)
        return BuildFault(generic_errors_content(concatenated), GENERIC_ERROR_HEADER, record)
