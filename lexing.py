"""
Kona tokenizer
Token shapes are pyparsing elements; the source is scanned lazily with scan_string
"""

import re
from dataclasses import dataclass
from typing import Any, Iterator

from pyparsing import Literal, MatchFirst, Regex, Word, alphanums, alphas, col, lineno

from error_handling import SourceSpan, UnexpectedChar, UnterminatedComment


KEYWORDS = frozenset({'fun', 'case', 'in'})
OPERATORS = ('+', '-', '*')
# Longest first: '=>' must win over '='
PUNCTUATION = ('=>', '(', ')', '=', '|', '_')


@dataclass(frozen=True)
class Token:
    """Kona token with source information"""
    type: str
    value: Any
    span: SourceSpan

    def __str__(self) -> str:
        return f"{self.type}({self.value})"

    def describe(self) -> str:
        """Short human-readable form used in parse errors"""
        if self.type == "EOF":
            return "end of input"
        if self.type == "INTEGER":
            return f"integer {self.value}"
        if self.type == "IDENTIFIER":
            return f"identifier '{self.value}'"
        return f"'{self.value}'"


def _classify_word(tokens):
    word = tokens[0]
    return ("KEYWORD", word) if word in KEYWORDS else ("IDENTIFIER", word)


def _build_token_grammar() -> MatchFirst:
    """One alternative per token shape, tried in priority order"""
    comment = Regex(r'\(\*.*?\*\)', flags=re.DOTALL).set_parse_action(lambda t: ("COMMENT", t[0]))
    open_comment = Literal("(*").set_parse_action(lambda t: ("UNTERMINATED_COMMENT", t[0]))
    integer = Regex(r'[0-9]+').set_parse_action(lambda t: ("INTEGER", int(t[0])))
    word = Word(alphas, alphanums + "_").set_parse_action(_classify_word)
    operator = MatchFirst([Literal(op) for op in OPERATORS]).set_parse_action(lambda t: ("OPERATOR", t[0]))
    punctuation = MatchFirst([Literal(p) for p in PUNCTUATION]).set_parse_action(lambda t: ("PUNCTUATION", t[0]))

    grammar = comment | open_comment | integer | word | operator | punctuation
    # Offsets must line up with the caller's text
    return grammar.parse_with_tabs()


TOKEN_GRAMMAR = _build_token_grammar()


def make_span(source: str, start: int, end: int, filename: str) -> SourceSpan:
    """Build a span; line and column come from pyparsing's position helpers"""
    return SourceSpan(filename, start, end, lineno(start, source), col(start, source))


def _check_gap(source: str, gap_start: int, gap_end: int, filename: str) -> None:
    """Anything but whitespace between two tokens is an unknown character"""
    for pos in range(gap_start, gap_end):
        if not source[pos].isspace():
            raise UnexpectedChar(source[pos], make_span(source, pos, pos + 1, filename))


def tokenize(source: str, filename: str = "<input>") -> Iterator[Token]:
    """Lazily tokenize Kona source, ending with a single EOF token

    Each call rescans from the beginning of ``source``. Errors are raised
    when the scan reaches the offending text, not up front.
    """
    last_end = 0
    for tokens, start, end in TOKEN_GRAMMAR.scan_string(source):
        _check_gap(source, last_end, start, filename)
        last_end = end

        token_type, value = tokens[0]
        span = make_span(source, start, end, filename)
        if token_type == "COMMENT":
            continue
        if token_type == "UNTERMINATED_COMMENT":
            raise UnterminatedComment(span)
        yield Token(token_type, value, span)

    _check_gap(source, last_end, len(source), filename)
    yield Token("EOF", None, make_span(source, len(source), len(source), filename))
