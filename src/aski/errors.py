# aski: Error taxonomy shared by the history graph, command dispatcher and transport. Cancellation is a stream outcome, not an error.

from typing import Optional


class AskiError(RuntimeError):
    """Base class for all aski errors."""


class NotFoundError(AskiError):
    """Raised when a hash or hash prefix resolves to no message."""

    def __init__(self, ref: str) -> None:
        super().__init__(f"no message matches {ref!r}")
        self.ref = ref


class AmbiguousPrefixError(AskiError):
    """Raised when a hash prefix matches more than one message. Never auto-resolved."""

    def __init__(self, prefix: str, candidates: list) -> None:
        shown = ", ".join(c[:8] for c in candidates[:5])
        more = "" if len(candidates) <= 5 else f" (+{len(candidates) - 5} more)"
        super().__init__(f"prefix {prefix!r} is ambiguous: {shown}{more}")
        self.prefix = prefix
        self.candidates = candidates


class DuplicateHashError(AskiError):
    """Raised when a hash is already stored with different fields. Integrity fault."""

    def __init__(self, sha1: str) -> None:
        super().__init__(f"hash collision on {sha1}: stored message differs")
        self.sha1 = sha1


class EmptyInputError(AskiError):
    """Raised when a required argument is missing or blank."""


class UnknownCommandError(AskiError):
    """Raised when a command token matches zero or several commands; the message carries the help table."""


class TransportError(AskiError):
    """
    Raised when the remote completion call fails.

    partial holds whatever text was streamed before the failure; it is
    committed only when keep_partial_on_error is enabled.
    """

    def __init__(self, message: str, partial: str = "", status: Optional[int] = None) -> None:
        super().__init__(message)
        self.partial = partial
        self.status = status


class ConfigError(AskiError):
    """Raised when config.yaml cannot be parsed or names an unknown profile."""
