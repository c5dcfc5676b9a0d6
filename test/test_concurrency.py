"""
Test for parallel evaluation against a shared Program
"""

import sys

import pykka
import pytest
from concurrency import (
  evaluate_many,
  evaluate_with_actors,
  start_evaluators,
  stop_evaluators,
)
from error_handling import ArityMismatch, NoMatchingClause, UnknownFunction
from interpreter import evaluate
from parsing import parse_source


class TestThreadPool:
  """evaluate_many fans requests out on a thread pool"""

  def test_results_in_request_order(self, fib_program):
    requests = [("fib", [n]) for n in range(15)]
    expected = [evaluate(fib_program, "fib", [n]) for n in range(15)]
    assert evaluate_many(fib_program, requests, max_workers=4) == expected

  def test_matches_sequential_evaluation(self, fib_program):
    requests = [("fib", [12])] * 8
    assert evaluate_many(fib_program, requests, max_workers=8) == [144] * 8

  def test_first_error_reraised(self, fib_program):
    requests = [("fib", [3]), ("fib", []), ("nope", [1])]
    with pytest.raises(ArityMismatch):
      evaluate_many(fib_program, requests)

  def test_deep_recursion_in_workers(self):
    program = parse_source("fun sum n = case n in 0 => 0 | _ => n + sum (n - 1)")
    before = sys.getrecursionlimit()
    assert evaluate_many(program, [("sum", [900])] * 4, max_workers=4) == [405450] * 4
    assert sys.getrecursionlimit() == before

  def test_empty_request_list(self, fib_program):
    assert evaluate_many(fib_program, []) == []

  def test_program_unchanged_after_parallel_use(self, fib_program):
    before = dict(fib_program)
    evaluate_many(fib_program, [("fib", [10])] * 4)
    assert dict(fib_program) == before


class TestActors:
  """EvaluatorActor answers through its pykka proxy"""

  @pytest.fixture
  def actors(self, fib_program):
    refs = start_evaluators(fib_program, count=3)
    yield refs
    stop_evaluators(refs)

  def test_single_actor(self, actors):
    proxy = actors[0].proxy()
    assert proxy.evaluate("fib", [10]).get(timeout=10) == 55

  def test_round_robin(self, actors):
    requests = [("fib", [n]) for n in range(10)]
    assert evaluate_with_actors(actors, requests, timeout=10) == [0, 1, 1, 2, 3, 5, 8, 13, 21, 34]

  def test_error_reraised_by_future(self, actors):
    proxy = actors[1].proxy()
    with pytest.raises(UnknownFunction):
      proxy.evaluate("missing", [1]).get(timeout=10)

  def test_actor_survives_failed_request(self, actors):
    proxy = actors[2].proxy()
    with pytest.raises(ArityMismatch):
      proxy.evaluate("fib", [1, 2]).get(timeout=10)
    assert proxy.evaluate("fib", [6]).get(timeout=10) == 8

  def test_actor_depth_setting(self):
    program = parse_source("fun f n = case n in 0 => 0")
    refs = start_evaluators(program, count=1, max_depth=5)
    try:
      with pytest.raises(NoMatchingClause):
        evaluate_with_actors(refs, [("f", [1])], timeout=10)
    finally:
      stop_evaluators(refs)

  def test_invalid_count(self, fib_program):
    with pytest.raises(ValueError):
      start_evaluators(fib_program, count=0)

  def test_no_actors(self):
    with pytest.raises(ValueError):
      evaluate_with_actors([], [("fib", [1])])

  def test_stopped_actors_are_unregistered(self, fib_program):
    refs = start_evaluators(fib_program, count=2)
    stop_evaluators(refs)
    assert not any(ref.is_alive() for ref in refs)
    assert all(ref not in pykka.ActorRegistry.get_all() for ref in refs)
