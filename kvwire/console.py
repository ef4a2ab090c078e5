"""
Console Helpers

Argument parsing and logging setup shared by the server and client
entry points.
"""

import argparse
import logging
import sys
from typing import TextIO

from .config.settings import settings


class ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with exit status 1."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def setup_logging(debug: bool = False, stream: TextIO = None) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=level,
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(stream if stream is not None else sys.stdout),
        ]
    )
