#!/usr/bin/env python3
"""
Command-line entry point and interactive REPL for gramwalk.

Builds one sentence model per file in a corpus directory, then reads model
names from the prompt and prints a generated sentence for each.

Usage:
    gramwalk N DIRECTORY [--seed S] [--max-words M] [--full-start]
"""

import argparse
import logging
import random
import shlex
import sys
from pathlib import Path
from typing import List, Optional

from prompt_toolkit import prompt
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import InMemoryHistory

from gramwalk.bitops import get_operation, OPERATIONS
from gramwalk.errors import GramwalkError, UsageError
from gramwalk.model import DEFAULT_MAX_WORDS
from gramwalk.registry import ModelRegistry


logger = logging.getLogger(__name__)


def setup_logging(level=logging.WARNING):
    """Configure logging."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    raise ValueError(f"Expected a boolean (on/off), got '{value}'")


class SentenceREPL:
    """Interactive prompt that generates sentences from registered models."""

    def __init__(
        self,
        registry: ModelRegistry,
        max_words: Optional[int] = DEFAULT_MAX_WORDS,
        full_start: bool = False,
        exit_on_unknown: bool = False,
        seed: Optional[int] = None
    ):
        """Initialize REPL."""
        self.registry = registry

        # Configuration
        self.max_words = max_words
        self.full_start = full_start
        self.exit_on_unknown = exit_on_unknown
        self.seed = seed

        self.history = InMemoryHistory()
        self.running = False

        # Commands
        self.commands = {
            # System
            'help': self.cmd_help,
            'quit': self.cmd_quit,
            'exit': self.cmd_quit,

            # Models
            'list': self.cmd_list,
            'ls': self.cmd_list,
            'info': self.cmd_info,

            # Bit operations
            'bitop': self.cmd_bitop,

            # Configuration
            'config': self.cmd_config,
            'set': self.cmd_set,
        }

    def run(self):
        """Run the REPL until exit, EOF, or (optionally) an unknown model name."""
        print("Enter model name to generate sentence using that model,")
        print("list for a list of models, or exit to exit.")
        print()

        self.running = True
        while self.running:
            try:
                user_input = self._read_line("gramwalk> ").strip()
                if not user_input:
                    continue
                self.execute(user_input)

            except KeyboardInterrupt:
                print("\n(Use 'exit' to exit)")
                continue
            except EOFError:
                print("\nGoodbye!")
                break

        self.running = False

    def _read_line(self, prompt_str: str) -> str:
        completer = WordCompleter(self.registry.names() + list(self.commands))
        return prompt(
            prompt_str,
            history=self.history,
            auto_suggest=AutoSuggestFromHistory(),
            completer=completer
        )

    def execute(self, command_line: str):
        """Execute one line of input: a model name or a command."""
        if command_line.lower() in ('exit', 'quit'):
            self.cmd_quit([])
            return

        # Whole line next so model names containing spaces still work
        if self.registry.has_model(command_line):
            self.generate(command_line)
            return

        try:
            parts = shlex.split(command_line)
        except ValueError as e:
            print(f"Parse error: {e}")
            return

        if not parts:
            return

        cmd = parts[0]
        args = parts[1:]

        if cmd.lower() in self.commands:
            try:
                self.commands[cmd.lower()](args)
            except (GramwalkError, ValueError, TypeError) as e:
                print(f"Error: {e}")
        elif self.registry.has_model(cmd):
            if args:
                print(f"Model names take no arguments: {command_line}")
                print(f"Usage: {cmd}")
            else:
                self.generate(cmd)
        else:
            print(f"Unknown model: {command_line}")
            if self.exit_on_unknown:
                self.running = False
            else:
                print("Type 'list' for available models, 'help' for commands.")

    def generate(self, name: str) -> Optional[str]:
        """Print one sentence from the named model and return it."""
        model = self.registry.get_model(name)
        try:
            sentence = model.build_sentence(
                max_words=self.max_words,
                full_start=self.full_start
            )
        except GramwalkError as e:
            print(f"Error: {e}")
            return None

        print()
        print(f"\t{sentence}")
        print()
        return sentence

    # ========================================================================
    # HELP
    # ========================================================================

    def cmd_help(self, args: List[str]):
        """Show help."""
        print("GRAMWALK COMMANDS")
        print("=" * 70)
        print()
        print("Generation:")
        print("  <model>                   Generate a sentence from a model")
        print()
        print("Models:")
        print("  list, ls                  List available models")
        print("  info <model>              Show model statistics")
        print()
        print("Bit operations:")
        print("  bitop <op> <args...>      Evaluate a 32-bit word operation")
        print(f"                            ops: {', '.join(OPERATIONS)}")
        print()
        print("Configuration:")
        print("  config                    Show current settings")
        print("  set max_words <n|none>    Bound sentence length")
        print("  set full_start <on|off>   Include the opening n-1 words")
        print("  set seed <n|none>         Seed the random generator")
        print("  set exit_on_unknown <on|off>")
        print("                            Exit on an unknown model name")
        print()
        print("System:")
        print("  help                      Show this help")
        print("  quit, exit                Exit REPL")
        print()

    def cmd_quit(self, args: List[str]):
        """Exit the REPL."""
        print("Goodbye!")
        self.running = False

    # ========================================================================
    # MODELS
    # ========================================================================

    def cmd_list(self, args: List[str]):
        """List available models."""
        models = self.registry.list_models()
        if not models:
            print("No models loaded")
            return

        print("Available Models:")
        print("-" * 70)
        for meta in models:
            print(f"  {meta['id']}: {meta['sentences']:,} sentences, {meta['nodes']:,} grams")
        print("-" * 70)
        print(f"Total: {len(models)} models")

    def cmd_info(self, args: List[str]):
        """Show model statistics."""
        if not args:
            print("Usage: info <model>")
            return

        model = self.registry.get_model(args[0])
        meta = self.registry.metadata[args[0]]
        print(f"Model: {args[0]}")
        print(f"  Gram size:  {model.n}")
        print(f"  Sentences:  {model.num_sentences:,}")
        print(f"  Grams:      {model.num_nodes:,}")
        print(f"  Edges:      {model.num_edges:,}")
        if meta.get('source'):
            print(f"  Source:     {meta['source']}")

    # ========================================================================
    # BIT OPERATIONS
    # ========================================================================

    def cmd_bitop(self, args: List[str]):
        """Evaluate a bit operation on integer arguments (decimal or 0x hex)."""
        if not args:
            print("Usage: bitop <op> <args...>")
            print(f"Operations: {', '.join(OPERATIONS)}")
            return

        fn, arity = get_operation(args[0])
        values = [int(a, 0) for a in args[1:]]
        if len(values) != arity:
            raise ValueError(f"{args[0]} takes {arity} argument(s), got {len(values)}")

        result = fn(*values)
        print(f"{args[0]}({', '.join(args[1:])}) = {result} (0x{result & 0xFFFFFFFF:08x})")

    # ========================================================================
    # CONFIGURATION
    # ========================================================================

    def cmd_config(self, args: List[str]):
        """Show current configuration."""
        print("Configuration:")
        print("-" * 40)
        print(f"  max_words:       {self.max_words or 'unlimited'}")
        print(f"  full_start:      {self.full_start}")
        print(f"  seed:            {self.seed if self.seed is not None else 'unseeded'}")
        print(f"  exit_on_unknown: {self.exit_on_unknown}")
        print("-" * 40)
        print(f"  models:          {len(self.registry)}")

    def cmd_set(self, args: List[str]):
        """Set configuration value."""
        if len(args) < 2:
            print("Usage: set <parameter> <value>")
            print("Parameters: max_words, full_start, seed, exit_on_unknown")
            return

        param = args[0].lower()
        value = args[1]

        if param == 'max_words':
            max_words = int(value) if value.lower() != 'none' else None
            if max_words is not None and max_words < 1:
                raise ValueError("max_words must be positive")
            self.max_words = max_words
            print(f"max_words = {self.max_words}")
        elif param == 'full_start':
            self.full_start = _parse_bool(value)
            print(f"full_start = {self.full_start}")
        elif param == 'seed':
            self.seed = int(value) if value.lower() != 'none' else None
            random.seed(self.seed)
            print(f"seed = {self.seed}")
        elif param == 'exit_on_unknown':
            self.exit_on_unknown = _parse_bool(value)
            print(f"exit_on_unknown = {self.exit_on_unknown}")
        else:
            print(f"Unknown parameter: {param}")
            print("Parameters: max_words, full_start, seed, exit_on_unknown")


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gramwalk",
        description="Generate random sentences from n-gram models of a corpus directory"
    )
    parser.add_argument('n', type=_positive_int, help="Gram size")
    parser.add_argument('directory', type=Path, help="Directory of corpus files")
    parser.add_argument('--seed', type=int, help="Seed for reproducible sentences")
    parser.add_argument('--max-words', type=_positive_int, default=DEFAULT_MAX_WORDS,
                        help=f"Maximum words per sentence (default: {DEFAULT_MAX_WORDS})")
    parser.add_argument('--full-start', action='store_true',
                        help="Include the opening n-1 words of each sentence")
    parser.add_argument('--exit-on-unknown', action='store_true',
                        help="Exit when an unknown model name is entered")
    parser.add_argument('-v', '--verbose', action='store_true', help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the gramwalk command. Returns the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    if args.seed is not None:
        random.seed(args.seed)

    registry = ModelRegistry()
    try:
        names = registry.load_directory(args.directory, args.n, verbose=True)
        logger.debug("Loaded %d models from %s", len(names), args.directory)
    except UsageError as e:
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: {e}", file=sys.stderr)
        return 2
    print()

    repl = SentenceREPL(
        registry,
        max_words=args.max_words,
        full_start=args.full_start,
        exit_on_unknown=args.exit_on_unknown,
        seed=args.seed
    )
    try:
        repl.run()
    finally:
        registry.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
