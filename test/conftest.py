"""
Test configuration for Kona tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from parsing import parse_source


FIXTURES_DIR = Path(__file__).parent / "fixtures"

FIB_SOURCE = "fun fib n = case n in 0 => 0 | 1 => 1 | _ => fib (n - 1) + fib (n - 2)"


@pytest.fixture
def fixtures_dir():
  """Directory holding .kona fixture files"""
  return FIXTURES_DIR


@pytest.fixture
def fib_program():
  """The canonical fib program, parsed"""
  return parse_source(FIB_SOURCE)
