"""
Kona Interpreter
Environment-based evaluation of a parsed Program: one fresh environment per
call, first-match-wins case dispatch, no memoization
"""

from typing import Any, Dict, Optional, Sequence
import logging

from error_handling import (
  ArityMismatch,
  NoMatchingClause,
  StackOverflow,
  UnboundVariable,
  UnknownFunction,
)
from parsing import parse_source
from syntax import (
  BinaryOp,
  Call,
  CaseMatch,
  Clause,
  Expression,
  FunctionDef,
  IntLiteral,
  LiteralPattern,
  Pattern,
  Program,
  Variable,
  WildcardPattern,
  expression_depth,
)
from utilities import BINARY_OPERATORS, is_int_value, recursion_headroom, wrap_int


logger = logging.getLogger(__name__)

# Maximum number of nested Kona calls
DEFAULT_MAX_DEPTH = 1000

# Extra Python frames for pattern matching, operators and debug logging
FRAME_SLACK = 200
# Ceiling on the recursion limit requested by one evaluation
MAX_HOST_FRAMES = 100_000


# ============================================================================
# DATA STRUCTURES
# ============================================================================

def make_environment(param: str, value: int) -> Dict[str, int]:
  """Create the environment for one function activation"""
  return {param: value}


def env_lookup(env: Dict[str, int], name: str) -> Optional[int]:
  """Look up a variable; environments have no parent chain"""
  return env.get(name)


def make_execution_context(max_depth: int = DEFAULT_MAX_DEPTH, debug: bool = False) -> Dict[str, Any]:
  """Per-evaluation settings, shared read-only by every frame of one evaluate call"""
  return {
      'max_depth': max_depth,
      'debug': debug,
  }


def host_frames_needed(program: Program, max_depth: int) -> int:
  """Python frames for ``max_depth`` nested calls of the program's functions

  One Kona call costs a call_function frame plus an eval_expr/eval_* pair
  per level of expression nesting on the way to the next call.
  """
  nesting = max((expression_depth(fdef.body) for fdef in program.values()), default=1)
  return min(max_depth * (2 * nesting + 1) + FRAME_SLACK, MAX_HOST_FRAMES)


# ============================================================================
# PATTERN MATCHING
# ============================================================================

def matches_pattern(value: int, pattern: Pattern) -> bool:
  """A literal matches on equality, a wildcard matches everything"""
  if isinstance(pattern, WildcardPattern):
    return True
  if isinstance(pattern, LiteralPattern):
    return wrap_int(pattern.value) == value
  raise TypeError(f"not a pattern node: {pattern!r}")


def select_clause(value: int, clauses: Sequence[Clause]) -> Optional[Clause]:
  """Scan clauses in source order and return the first that matches

  A wildcard placed before other clauses shadows them.
  """
  for clause in clauses:
    if matches_pattern(value, clause.pattern):
      return clause
  return None


# ============================================================================
# EVALUATION FUNCTIONS
# ============================================================================

def eval_expr(expr: Expression, env: Dict[str, int], program: Program, depth: int, context: Dict[str, Any]) -> int:
  """Evaluate an expression node to an integer"""
  if isinstance(expr, IntLiteral):
    return eval_int_literal(expr, env, program, depth, context)
  elif isinstance(expr, Variable):
    return eval_variable(expr, env, program, depth, context)
  elif isinstance(expr, BinaryOp):
    return eval_binary_op(expr, env, program, depth, context)
  elif isinstance(expr, Call):
    return eval_call(expr, env, program, depth, context)
  elif isinstance(expr, CaseMatch):
    return eval_case(expr, env, program, depth, context)
  raise TypeError(f"not an expression node: {expr!r}")


def eval_int_literal(expr: IntLiteral, env: Dict[str, int], program: Program, depth: int, context: Dict[str, Any]) -> int:
  return wrap_int(expr.value)


def eval_variable(expr: Variable, env: Dict[str, int], program: Program, depth: int, context: Dict[str, Any]) -> int:
  value = env_lookup(env, expr.name)
  if value is None:
    raise UnboundVariable(expr.name, expr.span)
  return value


def eval_binary_op(expr: BinaryOp, env: Dict[str, int], program: Program, depth: int, context: Dict[str, Any]) -> int:
  """Evaluate left, then right, then apply the wrapping operator"""
  left = eval_expr(expr.left, env, program, depth, context)
  right = eval_expr(expr.right, env, program, depth, context)
  return BINARY_OPERATORS[expr.op](left, right)


def eval_call(expr: Call, env: Dict[str, int], program: Program, depth: int, context: Dict[str, Any]) -> int:
  """Evaluate the argument in the caller's environment, then enter the callee"""
  argument = eval_expr(expr.argument, env, program, depth, context)
  fdef = program.get(expr.function)
  if fdef is None:
    raise UnknownFunction(expr.function, expr.span)
  return call_function(fdef, argument, program, depth + 1, context, expr.span)


def eval_case(expr: CaseMatch, env: Dict[str, int], program: Program, depth: int, context: Dict[str, Any]) -> int:
  """Evaluate the scrutinee once and run only the first matching clause"""
  value = eval_expr(expr.scrutinee, env, program, depth, context)
  clause = select_clause(value, expr.clauses)
  if clause is None:
    raise NoMatchingClause(value, expr.span)
  return eval_expr(clause.body, env, program, depth, context)


def call_function(fdef: FunctionDef, argument: int, program: Program, depth: int,
                  context: Dict[str, Any], span=None) -> int:
  """Bind the parameter in a fresh environment and evaluate the body"""
  if depth > context['max_depth']:
    raise StackOverflow(context['max_depth'], span)
  if context['debug']:
    logger.debug("%scall %s %d", "  " * (depth - 1), fdef.name, argument)

  env = make_environment(fdef.param, argument)
  try:
    result = eval_expr(fdef.body, env, program, depth, context)
  except RecursionError:
    # Innermost call records where the host stack ran out; outer calls keep it
    context.setdefault('overflow', (depth, span or fdef.span))
    raise

  if context['debug']:
    logger.debug("%s%s %d = %d", "  " * (depth - 1), fdef.name, argument, result)
  return result


# ============================================================================
# PROGRAM EVALUATION
# ============================================================================

def evaluate(program: Program, function_name: str, arguments: Sequence[int],
             max_depth: int = DEFAULT_MAX_DEPTH, debug: bool = False) -> int:
  """
  Apply a named function of the program to integer arguments.

  Raises UnknownFunction, ArityMismatch, NoMatchingClause, UnboundVariable or
  StackOverflow. Only the returned integer leaves the call; nothing is cached
  between calls, so concurrent evaluations of one Program are independent.
  """
  arguments = list(arguments)
  for arg in arguments:
    if not is_int_value(arg):
      raise TypeError(f"Kona arguments must be integers, got {type(arg).__name__}")

  fdef = program.get(function_name)
  if fdef is None:
    raise UnknownFunction(function_name)
  if len(arguments) != fdef.arity:
    raise ArityMismatch(function_name, fdef.arity, len(arguments), fdef.span)

  context = make_execution_context(max_depth, debug)
  with recursion_headroom(host_frames_needed(program, max_depth)):
    try:
      return call_function(fdef, wrap_int(arguments[0]), program, 1, context)
    except RecursionError:
      depth, span = context.get('overflow', (1, fdef.span))
      raise StackOverflow(depth, span) from None


def run(source: str, function_name: str, arguments: Sequence[int], filename: str = "<input>",
        max_depth: int = DEFAULT_MAX_DEPTH, debug: bool = False) -> int:
  """Lex, parse and evaluate in one step; the first error of any stage propagates"""
  program = parse_source(source, filename, debug=debug)
  return evaluate(program, function_name, arguments, max_depth=max_depth, debug=debug)


def create_interpreter(max_depth: int = DEFAULT_MAX_DEPTH, debug: bool = False):
  """Factory returning an evaluate function with fixed settings"""
  def interpreter(program: Program, function_name: str, arguments: Sequence[int]) -> int:
    return evaluate(program, function_name, arguments, max_depth=max_depth, debug=debug)

  return interpreter
