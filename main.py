"""
Kona - Main Entry Point
Load a source file and apply one of its functions to integer arguments
"""

import sys
import argparse
import logging
from typing import List, Optional

from error_handling import KonaError, format_diagnostic
from interpreter import DEFAULT_MAX_DEPTH, evaluate
from lexing import tokenize
from parsing import parse
from syntax import dump_tree, pretty_print


VERSION = "0.1.0"


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='kona',
      description='Kona - evaluate pattern-matched integer functions',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s fib.kona fib 10          # Print fib 10
  %(prog)s --tokens fib.kona        # Show the token stream
  %(prog)s --parse fib.kona         # Show the AST
  %(prog)s --format fib.kona        # Print canonical source
  %(prog)s --debug fib.kona fib 5   # Trace every call
        """
  )

  parser.add_argument('script', help='Kona source file')
  parser.add_argument('entry', nargs='?', default='main',
                      help='Function to apply (default: main)')
  parser.add_argument('args', nargs='*', type=int, metavar='ARG',
                      help='Integer arguments for the entry function')

  mode = parser.add_mutually_exclusive_group()
  mode.add_argument('--tokens', action='store_true', help='Tokenize only and print tokens')
  mode.add_argument('--parse', action='store_true', help='Parse only and print the AST')
  mode.add_argument('--format', action='store_true', help='Parse and print canonical source')

  parser.add_argument('--max-depth', type=int, default=DEFAULT_MAX_DEPTH,
                      help=f'Maximum call depth (default: {DEFAULT_MAX_DEPTH})')
  parser.add_argument('--debug', action='store_true', help='Enable debug output for all stages')
  parser.add_argument('--no-color', action='store_true', help='Disable colored diagnostics')
  parser.add_argument('--version', action='version', version=f'Kona v{VERSION}')

  return parser


def read_source(script_path: str) -> str:
  with open(script_path, 'r', encoding='utf-8') as f:
    return f.read()


def run_script(args: argparse.Namespace, source: str) -> None:
  """Run the requested stage over the source and print its output"""
  if args.tokens:
    for token in tokenize(source, args.script):
      print(f"{token.span.line}:{token.span.col}\t{token}")
    return

  program = parse(tokenize(source, args.script), debug=args.debug)
  if args.parse:
    print(dump_tree(program), end='')
  elif args.format:
    print(pretty_print(program), end='')
  else:
    result = evaluate(program, args.entry, args.args, max_depth=args.max_depth, debug=args.debug)
    print(result)


def main(argv: Optional[List[str]] = None) -> int:
  """Main entry point for Kona; returns the process exit status"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.debug:
    logging.basicConfig(level=logging.DEBUG, format='%(name)s: %(message)s')

  try:
    source = read_source(args.script)
  except OSError as e:
    print(f"Error: cannot read '{args.script}': {e.strerror or e}", file=sys.stderr)
    return 1
  except UnicodeDecodeError as e:
    print(f"Error: cannot decode file '{args.script}': {e}", file=sys.stderr)
    print("  Hint: Make sure the file is a text file with UTF-8 encoding", file=sys.stderr)
    return 1

  color = not args.no_color and sys.stderr.isatty()
  try:
    run_script(args, source)
  except KonaError as e:
    print(format_diagnostic(e, source, color=color), file=sys.stderr)
    return 1

  return 0


if __name__ == "__main__":
  sys.exit(main())
