"""Custom exception hierarchy for the emotional profile engine.

Only programmer errors raise.  Empty trade lists, empty registries and
absent compliance data are normal states and produce neutral output.
"""


class EngineError(Exception):
    """Base exception for all engine errors."""


# --- Configuration ---
class ConfigError(EngineError):
    """Invalid or unreadable configuration source."""


# --- Input ---
class InvalidInputError(EngineError, TypeError):
    """Input has the wrong container type (e.g. a dict where a list is required)."""

    def __init__(self, argument: str, expected: str, got: object):
        self.argument = argument
        self.expected = expected
        self.got_type = type(got).__name__
        super().__init__(
            f"{argument}: expected {expected}, got {self.got_type}"
        )
