"""
Utilities module for the Kona interpreter
Fixed-width integer arithmetic, the binary operator table, and host stack sizing
"""

from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List
import operator
import sys
import threading


INT_BITS = 64
INT_MIN = -(1 << (INT_BITS - 1))
INT_MAX = (1 << (INT_BITS - 1)) - 1


# ==================== INTEGER UTILITIES ====================

def wrap_int(value: int) -> int:
  """
  Reduce an arbitrary Python int to a signed 64-bit two's-complement value

  Examples:
    wrap_int(INT_MAX + 1) -> INT_MIN
    wrap_int(-1) -> -1
  """
  return ((value - INT_MIN) & ((1 << INT_BITS) - 1)) + INT_MIN


def is_int_value(value) -> bool:
  """Host values accepted as Kona integers; bool is not one"""
  return isinstance(value, int) and not isinstance(value, bool)


# ==================== OPERATOR TABLE ====================

def binary_arithmetic_op(op: Callable[[int, int], int]) -> Callable[[int, int], int]:
  """
  Factory for wrapping binary arithmetic operations

  Args:
    op: Python operator function (e.g., operator.add)

  Returns:
    Function applying op and wrapping the result to 64 bits
  """
  def arithmetic(x: int, y: int) -> int:
    return wrap_int(op(x, y))

  arithmetic.__name__ = f"kona_{op.__name__}"
  return arithmetic


BINARY_OPERATORS: Dict[str, Callable[[int, int], int]] = {
  '+': binary_arithmetic_op(operator.add),
  '-': binary_arithmetic_op(operator.sub),
  '*': binary_arithmetic_op(operator.mul),
}


# ==================== HOST RECURSION LIMIT ====================

_limit_lock = threading.Lock()
_limit_requests: List[int] = []
_base_recursion_limit = sys.getrecursionlimit()


def _apply_recursion_limit() -> None:
  # Caller holds _limit_lock
  sys.setrecursionlimit(_base_recursion_limit + max(_limit_requests, default=0))


@contextmanager
def recursion_headroom(frames: int) -> Iterator[None]:
  """
  Raise the interpreter recursion limit by ``frames`` while the block runs

  The limit is process-wide, so overlapping requests from several threads
  share it: the largest active request wins, and the original limit comes
  back once the last block exits.
  """
  global _base_recursion_limit
  with _limit_lock:
    if not _limit_requests:
      _base_recursion_limit = sys.getrecursionlimit()
    _limit_requests.append(frames)
    _apply_recursion_limit()
  try:
    yield
  finally:
    with _limit_lock:
      _limit_requests.remove(frames)
      _apply_recursion_limit()
