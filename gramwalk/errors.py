"""
Exception types raised by gramwalk.
"""


class GramwalkError(Exception):
    """Base class for gramwalk errors."""


class UsageError(GramwalkError):
    """Bad command-line arguments or an unreadable corpus directory."""


class EmptyModelError(GramwalkError, ValueError):
    """A model has no sentence starts, so no sentence can be generated."""


class UnknownModelError(GramwalkError, KeyError):
    """No model is registered under the requested name."""

    def __init__(self, name: str, available=None):
        self.name = name
        self.available = sorted(available or [])
        super().__init__(name)

    def __str__(self) -> str:
        msg = f"Model '{self.name}' not found"
        if self.available:
            msg += f". Available: {', '.join(self.available)}"
        return msg
