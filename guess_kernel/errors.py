"""Exceptions raised by the guess kernel."""


class GuessKernelError(Exception):
    """Base class for all guess kernel errors."""
    pass


class InvalidInputError(GuessKernelError, ValueError):
    """Raised when a caller records an answer the belief state cannot accept."""
    pass


class SessionStateError(GuessKernelError):
    """Raised when a session operation is not valid in the current state."""
    pass


class DataLoadError(GuessKernelError):
    """Raised when an entity or trait-matrix file is malformed."""
    pass


class ConfigurationError(GuessKernelError):
    """Raised when a configuration file or override fails validation."""
    pass
