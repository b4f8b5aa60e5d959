"""Version 3 source map emitter.

A :class:`SourceMapSession` collects mappings from positions in generated
output to positions in named sources while a minifier writes its output,
then serializes them as source map JSON::

    session = SourceMapSession("/bundles/app", "/bundles/appmap")
    index = session.add_source("/js/app.js")
    session.add_mapping(0, 0, index, 0, 0)
    session.serialize()

Lines and columns are zero based, as in the serialized format.
"""
from __future__ import annotations

import bisect
import json
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

VERSION = 3

BASE64_DIGITS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_BASE64_VALUES = {digit: value for value, digit in enumerate(BASE64_DIGITS)}
VLQ_SHIFT = 5
VLQ_CONTINUATION = 1 << VLQ_SHIFT
VLQ_MASK = VLQ_CONTINUATION - 1

# JavaScript line terminators.
LINE_BREAK = re.compile("\r\n|[\n\r\u2028\u2029]")


def count_line_breaks(text: str) -> int:
    return len(LINE_BREAK.findall(text))


def utf16_length(text: str) -> int:
    """Length of ``text`` in UTF-16 code units, the unit of map columns."""
    return len(text) + sum(1 for char in text if ord(char) > 0xFFFF)


class LineIndex:
    """Translate character offsets in ``text`` into (line, column) pairs."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._starts = [0] + [match.end() for match in LINE_BREAK.finditer(text)]

    def _line(self, offset: int) -> int:
        return bisect.bisect_right(self._starts, offset) - 1

    def position(self, offset: int) -> Tuple[int, int]:
        line = self._line(offset)
        return line, offset - self._starts[line]

    def utf16_position(self, offset: int) -> Tuple[int, int]:
        """Like :meth:`position`, with the column in UTF-16 code units."""
        line = self._line(offset)
        return line, utf16_length(self._text[self._starts[line]:offset])


def encode_vlq(value: int) -> str:
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    digits = []
    while True:
        digit = vlq & VLQ_MASK
        vlq >>= VLQ_SHIFT
        if vlq:
            digit |= VLQ_CONTINUATION
        digits.append(BASE64_DIGITS[digit])
        if not vlq:
            return "".join(digits)


def decode_vlq(segment: str) -> List[int]:
    """Decode every Base64 VLQ value packed in ``segment``."""
    values = []
    shift = accumulated = 0
    for char in segment:
        try:
            digit = _BASE64_VALUES[char]
        except KeyError:
            raise ValueError(f"Invalid Base64 VLQ digit {char!r}") from None
        accumulated += (digit & VLQ_MASK) << shift
        if digit & VLQ_CONTINUATION:
            shift += VLQ_SHIFT
            continue
        values.append(-(accumulated >> 1) if accumulated & 1 else accumulated >> 1)
        shift = accumulated = 0
    if shift:
        raise ValueError(f"Truncated Base64 VLQ segment {segment!r}")
    return values


@dataclass(frozen=True)
class Mapping:
    generated_line: int
    generated_column: int
    source: Optional[int] = None
    original_line: Optional[int] = None
    original_column: Optional[int] = None
    name: Optional[int] = None


def encode_mappings(mappings: List[Mapping]) -> str:
    ordered = sorted(mappings, key=lambda m: (m.generated_line, m.generated_column))
    lines: List[List[Tuple[int, str]]] = []
    previous_source = previous_line = previous_column = previous_name = 0
    for mapping in ordered:
        while len(lines) <= mapping.generated_line:
            lines.append([])
        row = lines[mapping.generated_line]
        previous_generated = row[-1][0] if row else 0
        segment = encode_vlq(mapping.generated_column - previous_generated)
        if mapping.source is not None:
            segment += encode_vlq(mapping.source - previous_source)
            segment += encode_vlq(mapping.original_line - previous_line)
            segment += encode_vlq(mapping.original_column - previous_column)
            previous_source = mapping.source
            previous_line = mapping.original_line
            previous_column = mapping.original_column
            if mapping.name is not None:
                segment += encode_vlq(mapping.name - previous_name)
                previous_name = mapping.name
        row.append((mapping.generated_column, segment))
    return ";".join(",".join(segment for _, segment in row) for row in lines)


def decode_mappings(encoded: str) -> List[Mapping]:
    """Inverse of :func:`encode_mappings`; returns absolute positions."""
    mappings = []
    source = original_line = original_column = name = 0
    for generated_line, row in enumerate(encoded.split(";")):
        generated_column = 0
        for segment in filter(None, row.split(",")):
            fields = decode_vlq(segment)
            if len(fields) not in (1, 4, 5):
                raise ValueError(f"Mapping segment {segment!r} has {len(fields)} fields")
            generated_column += fields[0]
            if len(fields) == 1:
                mappings.append(Mapping(generated_line, generated_column))
                continue
            source += fields[1]
            original_line += fields[2]
            original_column += fields[3]
            mapping_name = None
            if len(fields) == 5:
                name += fields[4]
                mapping_name = name
            mappings.append(
                Mapping(generated_line, generated_column, source, original_line, original_column, mapping_name)
            )
    return mappings


class SourceMapSession:
    """Accumulate mappings for one generated file."""

    def __init__(self, file: str, map_path: str) -> None:
        self.file = file
        self.map_path = map_path
        self.sources: List[str] = []
        self.names: List[str] = []
        self.mappings: List[Mapping] = []
        self._source_index: Dict[str, int] = {}
        self._name_index: Dict[str, int] = {}

    def add_source(self, source: str) -> int:
        if source not in self._source_index:
            self._source_index[source] = len(self.sources)
            self.sources.append(source)
        return self._source_index[source]

    def add_name(self, name: str) -> int:
        if name not in self._name_index:
            self._name_index[name] = len(self.names)
            self.names.append(name)
        return self._name_index[name]

    def add_mapping(
        self,
        generated_line: int,
        generated_column: int,
        source: int,
        original_line: int,
        original_column: int,
        name: Optional[str] = None,
    ) -> None:
        if not 0 <= source < len(self.sources):
            raise IndexError(f"Unknown source index {source}")
        name_index = self.add_name(name) if name is not None else None
        self.mappings.append(
            Mapping(generated_line, generated_column, source, original_line, original_column, name_index)
        )

    def mapping_url_comment(self) -> str:
        return f"//# sourceMappingURL={self.map_path}"

    def to_dict(self) -> dict:
        return {
            "version": VERSION,
            "file": self.file,
            "mappings": encode_mappings(self.mappings),
            "sources": list(self.sources),
            "names": list(self.names),
        }

    def serialize(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))
