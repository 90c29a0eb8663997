# aski: Console I/O and logging behind one small object so the session, dispatcher and aggregator never print directly.

import sys
from typing import Optional, TextIO

from .config import VERBOSE


class Context:
    """
    Thin wrapper around console I/O and logging.

    User-facing text goes to stdout, errors to stderr, and [LOG] lines only
    when verbose is on (ASKI_VERBOSE).
    """

    def __init__(self, verbose: bool = VERBOSE, out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> None:
        self.verbose = verbose
        self.out = out or sys.stdout
        self.err = err or sys.stderr

    def send_to_user(self, message: str) -> None:
        """Send a user-facing line to stdout."""
        print(message, file=self.out)

    def write(self, text: str) -> None:
        """Echo streamed text as-is, without a trailing newline."""
        self.out.write(text)
        self.out.flush()

    def log(self, message: str) -> None:
        """Emit a [LOG] line when verbose logging is enabled."""
        if self.verbose:
            print(f"[LOG] {message}", file=self.err)

    def error_message(self, message: str) -> None:
        """Print an error message to stderr."""
        print(f"Error: {message}", file=self.err)
