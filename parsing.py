"""
Kona parser
Recursive descent over the token stream with a single token of lookahead
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from error_handling import DuplicateFunction, EmptyCaseBody, SourceSpan, UnexpectedToken
from lexing import Token, tokenize
from syntax import (
    BinaryOp, Call, CaseMatch, Clause, Expression, FunctionDef, IntLiteral,
    LiteralPattern, Pattern, Program, Variable, WildcardPattern,
)


logger = logging.getLogger(__name__)

ADDITIVE_OPERATORS = ('+', '-')
MULTIPLICATIVE_OPERATORS = ('*',)


def _join(start: SourceSpan, end: SourceSpan) -> SourceSpan:
    """Span from the start of one node to the end of another"""
    return SourceSpan(start.filename, start.start, end.end, start.line, start.col)


class Parser:
    """Builds a Program from a token stream

    The stream is pulled lazily, so lexical errors surface at the point the
    parser reaches them.
    """

    def __init__(self, tokens: Iterable[Token], debug: bool = False):
        self.debug = debug
        self._tokens: Iterator[Token] = iter(tokens)
        self._previous: Optional[Token] = None
        self._current: Token = self._pull()

    # ------------------------------------------------------------------
    # Token stream
    # ------------------------------------------------------------------

    def _pull(self) -> Token:
        token = next(self._tokens, None)
        if token is None:
            # A stream without an explicit EOF token ends where the last one did
            span = self._previous.span if self._previous else SourceSpan("<input>", 0, 0, 1, 1)
            end = SourceSpan(span.filename, span.end, span.end, span.line, span.col)
            return Token("EOF", None, end)
        return token

    def _advance(self) -> Token:
        token = self._current
        self._previous = token
        if token.type != "EOF":
            self._current = self._pull()
        return token

    def _check(self, token_type: str, value=None) -> bool:
        if self._current.type != token_type:
            return False
        return value is None or self._current.value == value

    def _expect(self, token_type: str, value=None, expected: Optional[str] = None) -> Token:
        if not self._check(token_type, value):
            if expected is None:
                expected = f"'{value}'" if value is not None else token_type.lower()
            raise UnexpectedToken(expected, self._current.describe(), self._current.span)
        return self._advance()

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def parse_program(self) -> Program:
        """program := fundef* EOF"""
        functions: Dict[str, FunctionDef] = {}
        while not self._check("EOF"):
            fdef = self.parse_function()
            if fdef.name in functions:
                raise DuplicateFunction(fdef.name, fdef.span)
            functions[fdef.name] = fdef
            if self.debug:
                logger.debug("parsed function %s %s", fdef.name, fdef.param)
        return Program(functions)

    def parse_function(self) -> FunctionDef:
        """fundef := 'fun' IDENT IDENT '=' expr"""
        fun_kw = self._expect("KEYWORD", "fun", expected="'fun'")
        name = self._expect("IDENTIFIER", expected="function name")
        param = self._expect("IDENTIFIER", expected="parameter name")
        self._expect("PUNCTUATION", "=")
        body = self.parse_expression()
        return FunctionDef(name.value, param.value, body, _join(fun_kw.span, body.span))

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def parse_expression(self) -> Expression:
        """expr := case_expr | additive"""
        if self._check("KEYWORD", "case"):
            return self.parse_case()
        return self.parse_additive()

    def parse_case(self) -> CaseMatch:
        """case_expr := 'case' expr 'in' clause ('|' clause)*"""
        case_kw = self._advance()
        scrutinee = self.parse_expression()
        in_kw = self._expect("KEYWORD", "in", expected="'in'")

        if self._ends_expression():
            raise EmptyCaseBody(_join(case_kw.span, in_kw.span))

        clauses: List[Clause] = [self.parse_clause()]
        while self._check("PUNCTUATION", "|"):
            self._advance()
            clauses.append(self.parse_clause())

        return CaseMatch(scrutinee, tuple(clauses), _join(case_kw.span, clauses[-1].span))

    def _ends_expression(self) -> bool:
        """True when the current token can only follow a complete expression"""
        return (
            self._check("EOF")
            or self._check("KEYWORD", "fun")
            or self._check("PUNCTUATION", ")")
            or self._check("PUNCTUATION", "|")
        )

    def parse_clause(self) -> Clause:
        """clause := pattern '=>' expr"""
        pattern = self.parse_pattern()
        self._expect("PUNCTUATION", "=>")
        body = self.parse_expression()
        return Clause(pattern, body, _join(pattern.span, body.span))

    def parse_pattern(self) -> Pattern:
        """pattern := INT | '_'"""
        if self._check("INTEGER"):
            token = self._advance()
            return LiteralPattern(token.value, token.span)
        if self._check("PUNCTUATION", "_"):
            return WildcardPattern(self._advance().span)
        raise UnexpectedToken("pattern (integer or '_')", self._current.describe(), self._current.span)

    def _parse_binary_level(self, operators, parse_operand) -> Expression:
        left = parse_operand()
        while self._current.type == "OPERATOR" and self._current.value in operators:
            op = self._advance().value
            right = parse_operand()
            left = BinaryOp(op, left, right, _join(left.span, right.span))
        return left

    def parse_additive(self) -> Expression:
        """additive := multiplicative (('+' | '-') multiplicative)*"""
        return self._parse_binary_level(ADDITIVE_OPERATORS, self.parse_multiplicative)

    def parse_multiplicative(self) -> Expression:
        """multiplicative := application ('*' application)*"""
        return self._parse_binary_level(MULTIPLICATIVE_OPERATORS, self.parse_application)

    def _starts_atom(self) -> bool:
        return (
            self._check("INTEGER")
            or self._check("IDENTIFIER")
            or self._check("PUNCTUATION", "(")
        )

    def parse_application(self) -> Expression:
        """application := IDENT atom? | atom"""
        if self._check("IDENTIFIER"):
            name = self._advance()
            if self._starts_atom():
                argument = self.parse_atom()
                return Call(name.value, argument, _join(name.span, argument.span))
            return Variable(name.value, name.span)
        return self.parse_atom()

    def parse_atom(self) -> Expression:
        """atom := INT | IDENT | '(' expr ')'"""
        if self._check("INTEGER"):
            token = self._advance()
            return IntLiteral(token.value, token.span)
        if self._check("IDENTIFIER"):
            token = self._advance()
            return Variable(token.value, token.span)
        if self._check("PUNCTUATION", "("):
            self._advance()
            expr = self.parse_expression()
            self._expect("PUNCTUATION", ")")
            return expr
        raise UnexpectedToken("expression", self._current.describe(), self._current.span)


# ============================================================================
# ENTRY POINTS
# ============================================================================

def parse(tokens: Iterable[Token], debug: bool = False) -> Program:
    """Parse a token stream into a Program"""
    return Parser(tokens, debug=debug).parse_program()


def parse_source(text: str, filename: str = "<input>", debug: bool = False) -> Program:
    """Tokenize and parse Kona source code from a string"""
    return parse(tokenize(text, filename), debug=debug)


def parse_file(filepath: str, debug: bool = False) -> Program:
    """Parse a Kona source file"""
    with open(filepath, 'r', encoding='utf-8') as f:
        content = f.read()
    return parse_source(content, filepath, debug=debug)
