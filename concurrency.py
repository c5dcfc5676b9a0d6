"""
Parallel evaluation front ends
A Program is never mutated after parsing, so any number of threads or actors
may evaluate against the same instance without locking
"""

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple
import logging

import pykka

from interpreter import DEFAULT_MAX_DEPTH, create_interpreter
from syntax import Program


logger = logging.getLogger(__name__)

Request = Tuple[str, Sequence[int]]


# ============================================================================
# ACTOR SYSTEM (Using Pykka)
# ============================================================================

class EvaluatorActor(pykka.ThreadingActor):
  """Actor that answers evaluation requests against one Program"""

  def __init__(self, program: Program, max_depth: int = DEFAULT_MAX_DEPTH, debug: bool = False):
    super().__init__()
    self.program = program
    self._interpreter = create_interpreter(max_depth=max_depth, debug=debug)

  def evaluate(self, function_name: str, arguments: Sequence[int]) -> int:
    """Called through the actor proxy; errors are re-raised by the caller's future.get()"""
    return self._interpreter(self.program, function_name, arguments)


def start_evaluators(program: Program, count: int = 1, max_depth: int = DEFAULT_MAX_DEPTH,
                     debug: bool = False) -> List[pykka.ActorRef]:
  """Start ``count`` evaluator actors sharing the same Program"""
  if count < 1:
    raise ValueError(f"count must be at least 1, got {count}")
  return [EvaluatorActor.start(program, max_depth, debug) for _ in range(count)]


def stop_evaluators(actor_refs: Sequence[pykka.ActorRef]) -> None:
  """Stop evaluator actors, waiting for each to finish its current request"""
  for actor_ref in actor_refs:
    actor_ref.stop()


def evaluate_with_actors(actor_refs: Sequence[pykka.ActorRef], requests: Sequence[Request],
                         timeout: Optional[float] = None) -> List[int]:
  """Distribute requests round-robin over running actors; results keep request order"""
  if not actor_refs:
    raise ValueError("no evaluator actors given")

  proxies = [actor_ref.proxy() for actor_ref in actor_refs]
  futures = [
      proxies[i % len(proxies)].evaluate(name, list(args))
      for i, (name, args) in enumerate(requests)
  ]
  return [future.get(timeout=timeout) for future in futures]


# ============================================================================
# THREAD POOL
# ============================================================================

def evaluate_many(program: Program, requests: Sequence[Request], max_workers: Optional[int] = None,
                  max_depth: int = DEFAULT_MAX_DEPTH, debug: bool = False) -> List[int]:
  """
  Evaluate independent requests on a thread pool.

  Args:
    program: Parsed program shared by every worker
    requests: (function name, arguments) pairs
    max_workers: Pool size, ThreadPoolExecutor's default when None

  Returns:
    One result per request, in request order. The error of the first failing
    request (in request order) is re-raised.
  """
  interpreter = create_interpreter(max_depth=max_depth, debug=debug)
  with ThreadPoolExecutor(max_workers=max_workers) as executor:
    futures = [
        executor.submit(interpreter, program, name, list(args))
        for name, args in requests
    ]
    if debug:
      logger.debug("submitted %d evaluation requests", len(futures))
    return [future.result() for future in futures]
