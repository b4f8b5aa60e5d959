"""Join the files of a bundle into one buffer, remembering where each came from."""
from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from . import artifacts, paths
from .models import BundleContext, SourceFile
from .sourcemap import count_line_breaks

logger = logging.getLogger(__name__)

FILE_SEPARATOR = "\n"


@dataclass(frozen=True)
class SourceSpan:
    """Lines ``first_line`` to ``first_line + line_count - 1`` of the buffer."""

    virtual_path: str
    source: str
    first_line: int
    line_count: int


@dataclass
class SourceOrigins:
    spans: List[SourceSpan] = field(default_factory=list)

    @classmethod
    def single(cls, source: str, text: str) -> "SourceOrigins":
        return cls([SourceSpan(source, source, 0, count_line_breaks(text) + 1)])

    def locate(self, line: int) -> Optional[Tuple[SourceSpan, int]]:
        """Return the span holding buffer ``line`` and the line within that span."""
        starts = [span.first_line for span in self.spans]
        index = bisect.bisect_right(starts, line) - 1
        if index < 0:
            return None
        span = self.spans[index]
        if line >= span.first_line + span.line_count:
            return None
        return span, line - span.first_line


@dataclass
class ConcatenatedContent:
    text: str
    origins: SourceOrigins


def concatenate(context: BundleContext, files: Iterable[SourceFile]) -> ConcatenatedContent:
    """Concatenate post-transform file contents in order.

    Files that went through at least one transform also get their
    transformed text published next to them (``app.js`` ->
    ``app.transformed.js``) so it can be inspected on its own.
    """
    chunks = []
    spans = []
    line = 0
    for source_file in files:
        contents = source_file.apply_transforms()
        if source_file.transform_count > 0:
            transformed_path = paths.transformed_path_for(source_file.virtual_path)
            artifacts.publish(context, transformed_path, contents)

        # A trailing "\r" merges with the separator into one line break.
        line_count = count_line_breaks(contents + FILE_SEPARATOR)
        spans.append(
            SourceSpan(
                virtual_path=source_file.virtual_path,
                source=context.to_absolute(source_file.virtual_path),
                first_line=line,
                line_count=line_count,
            )
        )
        line += line_count
        chunks.append(contents)
        chunks.append(FILE_SEPARATOR)

    logger.debug("Concatenated %d files into %d lines", len(spans), line)
    return ConcatenatedContent("".join(chunks), SourceOrigins(spans))
