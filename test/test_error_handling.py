"""
Error taxonomy tests for Kona
"""

import pytest
from error_handling import (
  ArityMismatch,
  DuplicateFunction,
  EmptyCaseBody,
  EvalError,
  KonaError,
  LexError,
  NoMatchingClause,
  ParseError,
  SourceSpan,
  StackOverflow,
  UnboundVariable,
  UnexpectedChar,
  UnexpectedToken,
  UnknownFunction,
  UnterminatedComment,
  get_context_lines,
)


SPAN = SourceSpan("demo.kona", 4, 5, 1, 5)

FAMILIES = {
    LexError: [UnexpectedChar, UnterminatedComment],
    ParseError: [UnexpectedToken, DuplicateFunction, EmptyCaseBody],
    EvalError: [UnknownFunction, ArityMismatch, NoMatchingClause, UnboundVariable, StackOverflow],
}


class TestTaxonomy:
  """Three disjoint families under one base class"""

  @pytest.mark.parametrize("family", list(FAMILIES))
  def test_members_belong_to_one_family(self, family):
    others = [f for f in FAMILIES if f is not family]
    for member in FAMILIES[family]:
      assert issubclass(member, family)
      assert issubclass(member, KonaError)
      assert not any(issubclass(member, other) for other in others)

  def test_kinds_are_unique(self):
    kinds = [member.kind for members in FAMILIES.values() for member in members]
    assert len(kinds) == len(set(kinds))


class TestMessages:
  """Errors carry their context and a readable str()"""

  def test_str_with_span(self):
    error = UnexpectedToken("'='", "integer 3", SPAN)
    assert str(error) == "UnexpectedToken at demo.kona:1:5: expected '=', found integer 3"

  def test_str_without_span(self):
    assert str(UnknownFunction("nope")) == "UnknownFunction: no function named 'nope'"

  def test_arity_fields(self):
    error = ArityMismatch("fib", 1, 2)
    assert (error.name, error.expected, error.got) == ("fib", 1, 2)

  def test_unexpected_char_position(self):
    error = UnexpectedChar("$", SPAN)
    assert error.position is SPAN
    assert error.char == "$"


class TestContextLines:
  """Source excerpt with a caret under the error column"""

  def test_single_line(self):
    assert get_context_lines("fun f n = n $ 1", 1, 13) == (
        "   1 | fun f n = n $ 1\n"
        "     |             ^"
    )

  def test_surrounding_lines(self):
    text = get_context_lines("a\nb\nc", 2, 1, context_lines=1)
    assert text.splitlines() == ["   1 | a", "   2 | b", "     | ^", "   3 | c"]
