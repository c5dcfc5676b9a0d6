"""
Kona abstract syntax tree
Immutable node types, the Program mapping, and printers for source and debugging
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Iterator, Optional, Tuple, Union

from error_handling import SourceSpan


# ============================================================================
# PATTERNS
# ============================================================================

@dataclass(frozen=True)
class LiteralPattern:
    value: int
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class WildcardPattern:
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


Pattern = Union[LiteralPattern, WildcardPattern]


# ============================================================================
# EXPRESSIONS
# ============================================================================

@dataclass(frozen=True)
class IntLiteral:
    value: int
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Variable:
    name: str
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: 'Expression'
    right: 'Expression'
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Call:
    function: str
    argument: 'Expression'
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Clause:
    pattern: Pattern
    body: 'Expression'
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class CaseMatch:
    scrutinee: 'Expression'
    clauses: Tuple[Clause, ...]
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


Expression = Union[IntLiteral, Variable, BinaryOp, Call, CaseMatch]


@dataclass(frozen=True)
class FunctionDef:
    name: str
    param: str
    body: Expression
    span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)

    @property
    def arity(self) -> int:
        # The language only has single-parameter functions
        return 1


class Program(Mapping):
    """Read-only mapping from function name to FunctionDef, in definition order"""

    def __init__(self, functions: Mapping[str, FunctionDef]):
        self._functions = MappingProxyType(dict(functions))

    def __getitem__(self, name: str) -> FunctionDef:
        return self._functions[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._functions)

    def __len__(self) -> int:
        return len(self._functions)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Program):
            return NotImplemented
        return list(self.items()) == list(other.items())

    __hash__ = None

    def __repr__(self) -> str:
        return f"Program({list(self._functions)})"


def expression_depth(expr: Expression) -> int:
    """Nesting depth of an expression tree; a leaf has depth 1"""
    if isinstance(expr, BinaryOp):
        return 1 + max(expression_depth(expr.left), expression_depth(expr.right))
    if isinstance(expr, Call):
        return 1 + expression_depth(expr.argument)
    if isinstance(expr, CaseMatch):
        branches = [expr.scrutinee] + [c.body for c in expr.clauses]
        return 1 + max(expression_depth(branch) for branch in branches)
    return 1


# ============================================================================
# SOURCE PRINTER
# ============================================================================

# Binding strength of binary operators; application and atoms sit above all of them
PRECEDENCE = {'+': 1, '-': 1, '*': 2}
APPLICATION_PRECEDENCE = 3


def format_pattern(pattern: Pattern) -> str:
    if isinstance(pattern, WildcardPattern):
        return "_"
    return str(pattern.value)


def format_expr(expr: Expression, min_precedence: int = 0) -> str:
    """Print an expression, adding parentheses only where reparsing needs them

    ``min_precedence`` is the binding strength the surrounding context demands;
    case expressions take 0 and are wrapped everywhere except at the top.
    """
    if isinstance(expr, IntLiteral):
        return str(expr.value)
    if isinstance(expr, Variable):
        return expr.name
    if isinstance(expr, Call):
        text = f"{expr.function} {format_expr(expr.argument, APPLICATION_PRECEDENCE + 1)}"
        return f"({text})" if min_precedence > APPLICATION_PRECEDENCE else text
    if isinstance(expr, BinaryOp):
        prec = PRECEDENCE[expr.op]
        # Left-associative: the right operand must bind strictly tighter
        text = f"{format_expr(expr.left, prec)} {expr.op} {format_expr(expr.right, prec + 1)}"
        return f"({text})" if min_precedence > prec else text
    if isinstance(expr, CaseMatch):
        clauses = " | ".join(
            f"{format_pattern(c.pattern)} => {format_expr(c.body, 1)}" for c in expr.clauses
        )
        text = f"case {format_expr(expr.scrutinee, 1)} in {clauses}"
        return f"({text})" if min_precedence > 0 else text
    raise TypeError(f"not an expression node: {expr!r}")


def format_function(fdef: FunctionDef) -> str:
    return f"fun {fdef.name} {fdef.param} = {format_expr(fdef.body)}"


def pretty_print(program: Program) -> str:
    """Canonical source text for a program; reparsing it yields an equal Program"""
    return "".join(format_function(fdef) + "\n" for fdef in program.values())


# ============================================================================
# DEBUG TREE DUMP
# ============================================================================

def dump_tree(node, indent: int = 0) -> str:
    """Indented tree view of an AST node, one node per line"""
    if isinstance(node, Program):
        return "".join(dump_tree(fdef, indent) for fdef in node.values())

    pad = "  " * indent
    scalars = []
    children = []
    for f in fields(node):
        if f.name == 'span':
            continue
        value = getattr(node, f.name)
        if isinstance(value, tuple):
            children.extend(value)
        elif isinstance(value, (str, int)):
            scalars.append(repr(value))
        else:
            children.append(value)

    result = f"{pad}{type(node).__name__}"
    if scalars:
        result += f"({', '.join(scalars)})"
    result += "\n"
    for child in children:
        result += dump_tree(child, indent + 1)
    return result
