"""
Error taxonomy and diagnostics for the Kona evaluator
One exception family per pipeline stage: lexing, parsing, evaluation
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from termcolor import colored


@dataclass(frozen=True)
class SourceSpan:
    """Source location: byte offsets plus the 1-based line/column of the start"""
    filename: str
    start: int
    end: int
    line: int
    col: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.col}"


# ============================================================================
# EXCEPTION HIERARCHY
# ============================================================================

class KonaError(Exception):
    """Base class for every language-level failure"""
    kind = "KonaError"

    def __init__(self, message: str, span: Optional[SourceSpan] = None):
        self.message = message
        self.span = span
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        if self.span:
            return f"{self.kind} at {self.span}: {self.message}"
        return f"{self.kind}: {self.message}"


class LexError(KonaError):
    kind = "LexError"


class UnexpectedChar(LexError):
    kind = "UnexpectedChar"

    def __init__(self, char: str, span: SourceSpan):
        self.char = char
        super().__init__(f"unexpected character {char!r}", span)

    @property
    def position(self) -> SourceSpan:
        return self.span


class UnterminatedComment(LexError):
    kind = "UnterminatedComment"

    def __init__(self, span: SourceSpan):
        super().__init__("comment opened with '(*' is never closed", span)


class ParseError(KonaError):
    kind = "ParseError"


class UnexpectedToken(ParseError):
    kind = "UnexpectedToken"

    def __init__(self, expected: str, found: str, span: SourceSpan):
        self.expected = expected
        self.found = found
        super().__init__(f"expected {expected}, found {found}", span)

    @property
    def position(self) -> SourceSpan:
        return self.span


class DuplicateFunction(ParseError):
    kind = "DuplicateFunction"

    def __init__(self, name: str, span: Optional[SourceSpan] = None):
        self.name = name
        super().__init__(f"function '{name}' is defined more than once", span)


class EmptyCaseBody(ParseError):
    kind = "EmptyCaseBody"

    def __init__(self, span: Optional[SourceSpan] = None):
        super().__init__("case expression has no clauses", span)


class EvalError(KonaError):
    kind = "EvalError"


class UnknownFunction(EvalError):
    kind = "UnknownFunction"

    def __init__(self, name: str, span: Optional[SourceSpan] = None):
        self.name = name
        super().__init__(f"no function named '{name}'", span)


class ArityMismatch(EvalError):
    kind = "ArityMismatch"

    def __init__(self, name: str, expected: int, got: int, span: Optional[SourceSpan] = None):
        self.name = name
        self.expected = expected
        self.got = got
        super().__init__(f"'{name}' takes {expected} argument(s), got {got}", span)


class NoMatchingClause(EvalError):
    kind = "NoMatchingClause"

    def __init__(self, value: int, span: Optional[SourceSpan] = None):
        self.value = value
        super().__init__(f"no case clause matches value {value}", span)


class UnboundVariable(EvalError):
    kind = "UnboundVariable"

    def __init__(self, name: str, span: Optional[SourceSpan] = None):
        self.name = name
        super().__init__(f"unbound variable '{name}'", span)


class StackOverflow(EvalError):
    kind = "StackOverflow"

    def __init__(self, depth: int, span: Optional[SourceSpan] = None):
        self.depth = depth
        super().__init__(f"call depth exceeded {depth}", span)


# ============================================================================
# DIAGNOSTICS
# ============================================================================

def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 0) -> str:
    """Get the source lines around an error with a caret under the column"""
    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d} | "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1:
            context_parts.append(f"{'':4} | {' ' * (col_num - 1)}^")

    return '\n'.join(context_parts)


def _paint(text: str, color: bool, *args: Any, **kwargs: Any) -> str:
    return colored(text, *args, **kwargs) if color else text


def format_diagnostic(error: KonaError, source: Optional[str] = None, color: bool = False) -> str:
    """Render an error as a multi-line, human-readable diagnostic

    Args:
        error: Any KonaError
        source: Source text the span points into, if available
        color: Use ANSI colors (termcolor)

    Returns:
        The diagnostic text without a trailing newline
    """
    parts: List[str] = [
        _paint(f"error[{error.kind}]", color, "red", attrs=["bold"])
        + _paint(f": {error.message}", color, attrs=["bold"])
    ]

    if error.span is not None:
        parts.append(f"    File {error.span}")
        if source is not None:
            parts.append(get_context_lines(source, error.span.line, error.span.col))

    return '\n'.join(parts)
