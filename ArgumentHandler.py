#################################################################################
# Command line parsing and console prompts.
#
#    Every command works on one workspace (current directory by default) and its
#    sitemap-generator.json settings file.
#    Questions are asked on the terminal; with no terminal attached they get no
#    answer and the command aborts instead of guessing.

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence
from sitemap_config import SETTINGS_FILENAME
from logger_config import get_logger

logger = get_logger(__name__)

class ConsoleHost:
    """Asks the user questions on the terminal."""

    def __init__(self, interactive: Optional[bool] = None):
        self.interactive = sys.stdin.isatty() if interactive is None else interactive

    def prompt(self, message: str, options: Sequence[str]) -> Optional[str]:
        """Let the user pick one of options, None if they don't."""
        if not self.interactive:
            logger.info(f"{message} (no terminal, skipping)")
            return None

        print(f"\n{message}")
        for number, option in enumerate(options, start=1):
            print(f"  {number}) {option}")
        answer = input("Select an option: ").strip()

        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1]
        if answer in options:
            return answer
        return None

    def ask(self, message: str, default: str = "") -> str:
        if not self.interactive:
            return default
        suffix = f" [{default}]" if default else ""
        return input(f"{message}{suffix}: ").strip() or default

    def open_file(self, path: Path):
        print(f"Sitemap: {path}")

class ArgumentHandler:
    @staticmethod
    def build_parser() -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(description='Generate and maintain sitemap.xml files from a website source tree')
        parser.add_argument('--workspace', default='.', help='Workspace root directory (default: current directory)')
        parser.add_argument('--settings', default=None, help=f'Settings file (default: <workspace>/{SETTINGS_FILENAME})')
        subparsers = parser.add_subparsers(dest='command', required=True)

        subparsers.add_parser('new', help='Create a new sitemap and its settings')

        regenerate = subparsers.add_parser('regenerate', help='Regenerate a sitemap from the files on disk')
        regenerate.add_argument('sitemap', nargs='?', help='Workspace-relative sitemap path')
        regenerate.add_argument('--all', action='store_true', help='Regenerate every configured sitemap')

        subparsers.add_parser('watch', help='Keep auto-updating sitemaps in sync with file changes')

        event = subparsers.add_parser('event', help='Apply a single file change to the auto-updating sitemaps')
        event.add_argument('kind', choices=['created', 'deleted', 'saved', 'renamed'])
        event.add_argument('paths', nargs='+', help='Changed file (renamed: old and new file)')

        return parser

    @staticmethod
    def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
        parser = ArgumentHandler.build_parser()
        args = parser.parse_args(argv)

        expected = 2 if getattr(args, 'kind', None) == 'renamed' else 1
        if args.command == 'event' and len(args.paths) != expected:
            parser.error(f"'event {args.kind}' takes {expected} path(s)")

        args.workspace = Path(args.workspace).resolve()
        args.settings = Path(args.settings).resolve() if args.settings else args.workspace / SETTINGS_FILENAME
        return args
