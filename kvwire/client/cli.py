#!/usr/bin/env python3
"""
KV-Wire Client Entry Point

Usage:
    kvwire-client interactive          # Prompt-driven REPL on stdin
    kvwire-client batch <file>         # One command per line from a file
    kvwire-client batch <file> --debug # Enable debug logging (stderr)

Commands (typed at the prompt or listed in the batch file):
    connect <server-ip> <server-port>
    disconnect
    create <key> <value-size> <value-with-spaces-allowed>
    read <key>
    update <key> <value-size> <value-with-spaces-allowed>
    delete <key>
    status
    help
    quit | exit

<value-size> must match the number of bytes (UTF-8) in <value> exactly.
In batch files, blank lines and lines starting with '#' are ignored.
"""

import argparse
import logging
import sys
from typing import Iterable, List, Optional, TextIO

from ..console import ArgumentParser, setup_logging
from .session import ClientSession

# Enable command history with arrow keys (works on Unix systems)
try:
    import readline  # noqa: F401
except ImportError:
    pass  # readline not available on Windows by default

logger = logging.getLogger(__name__)

PROMPT = "kv> "


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = ArgumentParser(
        prog="kvwire-client",
        description="Interactive and batch client for the KV-Wire server",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    modes = parser.add_subparsers(dest="mode", required=True, metavar="{interactive,batch}")
    modes.add_parser("interactive", help="Read commands from standard input")
    batch = modes.add_parser("batch", help="Execute commands from a file")
    batch.add_argument("file", help="Command file, one command per line")

    return parser.parse_args(argv)


def run_interactive(session: ClientSession, stdin: TextIO = None) -> None:
    """Prompt for commands until quit/exit or end of input."""
    while True:
        try:
            if stdin is None:
                line = input(PROMPT)
            else:
                session.out.write(PROMPT)
                session.out.flush()
                line = stdin.readline()
                if not line:
                    raise EOFError
        except EOFError:
            print(file=session.out)
            break
        except KeyboardInterrupt:
            print("\nInterrupted.", file=session.out)
            break

        if not session.handle_line(line):
            break


def batch_lines(lines: Iterable[str]) -> Iterable[str]:
    """Yield command lines, skipping blanks and '#' comments."""
    for lineno, line in enumerate(lines, start=1):
        line = line.rstrip("\n")
        if not line or line.startswith("#"):
            continue
        logger.debug(f"batch line {lineno}: {line!r}")
        yield line


def run_batch(session: ClientSession, lines: Iterable[str]) -> None:
    """Execute every command line in order, stopping early on quit/exit."""
    for line in batch_lines(lines):
        if not session.handle_line(line):
            break


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the client."""
    args = parse_args(argv)

    # stdout carries command output, so logs go to stderr
    setup_logging(debug=args.debug, stream=sys.stderr)

    session = ClientSession()
    try:
        if args.mode == "interactive":
            run_interactive(session)
        else:
            try:
                with open(args.file, encoding="utf-8") as f:
                    run_batch(session, f)
            except OSError as e:
                print(f"cannot read {args.file}: {e}", file=sys.stderr)
                return 1
    finally:
        session.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
