"""Minify JavaScript and record a source map while doing it.

The script is parsed once with esprima, collecting tokens and comments with
their character ranges. The token stream is then written back out with as
little whitespace as it needs, and every token written is recorded in the
attached :class:`~script_bundler.sourcemap.SourceMapSession`.

Syntax problems are reported as :class:`MinificationDiagnostic` values
rather than raised.
"""
from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, NamedTuple, Optional, Set, Tuple, Union

import esprima
from esprima.error_handler import Error as ParseError

from .concat import SourceOrigins
from .sourcemap import LINE_BREAK, LineIndex, SourceMapSession, utf16_length

logger = logging.getLogger(__name__)

PARSE_OPTIONS = {"range": True, "tokens": True, "comment": True, "tolerant": True}
DEFAULT_SOURCE = "input.js"

SAFE_EVAL = "(0,eval)"
IMPORTANT_COMMENT_MARKERS = ("@license", "@preserve")

# Statements closed by a semicolon that automatic semicolon insertion may supply.
TERMINATED_STATEMENTS = frozenset(
    {
        "ExpressionStatement",
        "VariableDeclaration",
        "ReturnStatement",
        "BreakStatement",
        "ContinueStatement",
        "ThrowStatement",
        "DoWhileStatement",
        "DebuggerStatement",
    }
)
LOOP_HEADS = frozenset({"ForStatement", "ForInStatement", "ForOfStatement"})
# Collected alongside the tree on the Program node.
NON_AST_KEYS = frozenset({"tokens", "comments", "errors"})

# Character pairs that fuse into a different token when written side by side.
FUSING_PAIRS = frozenset({("+", "+"), ("-", "-"), ("/", "/"), ("/", "*"), ("<", "!"), ("-", ">")})


class EvalTreatment(str, Enum):
    IGNORE = "ignore"
    # Direct eval calls become indirect ones, so the evaluated code runs in
    # the global scope and cannot see or add local bindings.
    MAKE_IMMEDIATE_SAFE = "make_immediate_safe"


@dataclass
class CodeSettings:
    minify_code: bool = True
    preserve_important_comments: bool = True
    term_semicolons: bool = False
    eval_treatment: EvalTreatment = EvalTreatment.IGNORE
    symbols_map: Optional[SourceMapSession] = None


@dataclass(frozen=True)
class MinificationDiagnostic:
    """A syntax problem found in the input; line and column are 1-based."""

    message: str
    source: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.source}({self.line},{self.column}): {self.message}"


@dataclass
class MinifySuccess:
    code: str
    source_map: Optional[str] = None


@dataclass
class MinifyDiagnostics:
    diagnostics: List[MinificationDiagnostic]

    @property
    def messages(self) -> List[str]:
        return [str(diagnostic) for diagnostic in self.diagnostics]


MinifyResult = Union[MinifySuccess, MinifyDiagnostics]


class _Item(NamedTuple):
    start: int
    end: int
    type: str
    is_comment: bool


class _Writer:
    """Collects output text and tracks the current generated position.

    Columns are counted in UTF-16 code units, as source map consumers do.
    """

    def __init__(self) -> None:
        self.parts: List[str] = []
        self.line = 0
        self.column = 0

    def write(self, text: str) -> None:
        if not text:
            return
        self.parts.append(text)
        breaks = list(LINE_BREAK.finditer(text))
        if breaks:
            self.line += len(breaks)
            self.column = utf16_length(text[breaks[-1].end():])
        else:
            self.column += utf16_length(text)

    def getvalue(self) -> str:
        return "".join(self.parts)


def minify(
    source: str,
    settings: Optional[CodeSettings] = None,
    origins: Optional[SourceOrigins] = None,
) -> MinifyResult:
    settings = settings or CodeSettings()
    session = settings.symbols_map
    if origins is None:
        origins = SourceOrigins.single(session.file if session else DEFAULT_SOURCE, source)
    index = LineIndex(source)

    try:
        program = esprima.parseScript(source, PARSE_OPTIONS)
    except ParseError as exc:
        return MinifyDiagnostics([_diagnostic(exc, index, origins)])
    errors = getattr(program, "errors", None) or []
    if errors:
        return MinifyDiagnostics([_diagnostic(error, index, origins) for error in errors])

    terminate_after, eval_callees = _scan(program, source)
    if settings.eval_treatment is not EvalTreatment.MAKE_IMMEDIATE_SAFE:
        eval_callees = set()

    code = _emit(source, program, settings, index, origins, terminate_after, eval_callees)
    if session is None:
        return MinifySuccess(code)

    if code and not LINE_BREAK.match(code[-1]):
        code += "\n"
    code += session.mapping_url_comment()
    logger.debug("Minified %d characters to %d with %d mappings", len(source), len(code), len(session.mappings))
    return MinifySuccess(code, session.serialize())


def _diagnostic(error: ParseError, index: LineIndex, origins: SourceOrigins) -> MinificationDiagnostic:
    message = getattr(error, "description", None) or str(error)
    offset = getattr(error, "index", None)
    if offset is not None:
        line, column = index.position(offset)
    else:
        line = (getattr(error, "lineNumber", None) or 1) - 1
        column = (getattr(error, "column", None) or 1) - 1
    located = origins.locate(line)
    if located is None:
        return MinificationDiagnostic(message, DEFAULT_SOURCE, line + 1, column + 1)
    span, local_line = located
    return MinificationDiagnostic(message, span.virtual_path, local_line + 1, column + 1)


def _is_node(value: object) -> bool:
    return not isinstance(value, (str, int, float, bool, list, dict)) and isinstance(
        getattr(value, "type", None), str
    )


def _walk(program) -> Iterator[Tuple[object, Optional[str], Optional[str]]]:
    """Yield ``(node, parent type, key in parent)`` for every AST node."""
    stack = [(program, None, None)]
    while stack:
        node, parent_type, key = stack.pop()
        yield node, parent_type, key
        for child_key, value in vars(node).items():
            if child_key in NON_AST_KEYS:
                continue
            children = value if isinstance(value, list) else [value]
            for child in children:
                if _is_node(child):
                    stack.append((child, node.type, child_key))


def _scan(program, source: str) -> Tuple[Set[int], Set[int]]:
    """Find statements missing their semicolon and direct ``eval`` callees.

    Returns the end offsets of the unterminated statements and the start
    offsets of the ``eval`` identifiers.
    """
    terminate_after: Set[int] = set()
    eval_callees: Set[int] = set()
    for node, parent_type, key in _walk(program):
        if node.type in TERMINATED_STATEMENTS:
            if parent_type in LOOP_HEADS and key in ("init", "left"):
                continue
            end = node.range[1]
            if source[end - 1] != ";":
                terminate_after.add(end)
        elif node.type == "CallExpression":
            callee = node.callee
            if callee.type == "Identifier" and callee.name == "eval":
                eval_callees.add(callee.range[0])
    return terminate_after, eval_callees


def _items(program) -> List[_Item]:
    items = [_Item(token.range[0], token.range[1], token.type, False) for token in program.tokens or []]
    items.extend(
        _Item(comment.range[0], comment.range[1], comment.type, True) for comment in program.comments or []
    )
    items.sort()
    return items


def _is_important(raw: str) -> bool:
    return raw.startswith("/*!") or any(marker in raw for marker in IMPORTANT_COMMENT_MARKERS)


def _is_word_char(char: str) -> bool:
    return char.isalnum() or char in "$_\\" or ord(char) > 127


def _needs_space(previous: str, previous_type: Optional[str], text: str) -> bool:
    if not previous:
        return False
    left, right = previous[-1], text[0]
    if _is_word_char(left) and _is_word_char(right):
        return True
    if previous_type == "Numeric" and right == ".":
        return True
    # A word straight after a regular expression would read as its flags.
    if previous_type == "RegularExpression" and _is_word_char(right):
        return True
    return (left, right) in FUSING_PAIRS


def _emit(
    source: str,
    program,
    settings: CodeSettings,
    index: LineIndex,
    origins: SourceOrigins,
    terminate_after: Set[int],
    eval_callees: Set[int],
) -> str:
    writer = _Writer()
    session = settings.symbols_map
    if session is not None:
        for span in origins.spans:
            session.add_source(span.source)

    previous_end = 0
    previous_text = ""
    previous_type = None
    pending_break = False
    items = _items(program)
    token_starts = [item.start for item in items if not item.is_comment]
    for item in items:
        raw = source[item.start:item.end]
        if item.is_comment and settings.minify_code:
            if not (settings.preserve_important_comments and _is_important(raw)):
                continue
        text = SAFE_EVAL if item.start in eval_callees else raw

        if not settings.minify_code:
            writer.write(source[previous_end:item.start])
        elif pending_break:
            writer.write("\n")
        elif _needs_space(previous_text, previous_type, text):
            writer.write(" ")
        pending_break = False

        if session is not None and not item.is_comment:
            line, column = index.utf16_position(item.start)
            located = origins.locate(line)
            if located is not None:
                span, local_line = located
                session.add_mapping(writer.line, writer.column, session.add_source(span.source), local_line, column)

        writer.write(text)
        previous_end, previous_text, previous_type = item.end, text, item.type

        if item.type == "LineComment":
            # Runs to the end of the line.
            pending_break = True
        elif not item.is_comment and item.end in terminate_after:
            # "(0,eval)" opening the next statement would otherwise continue this one.
            if settings.term_semicolons or _next_token(token_starts, item.end) in eval_callees:
                writer.write(";")
                previous_text, previous_type = ";", "Punctuator"
            else:
                pending_break = True

    if not settings.minify_code:
        writer.write(source[previous_end:])
    return writer.getvalue()


def _next_token(token_starts: List[int], offset: int) -> Optional[int]:
    position = bisect.bisect_left(token_starts, offset)
    return token_starts[position] if position < len(token_starts) else None
