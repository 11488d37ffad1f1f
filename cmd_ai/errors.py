"""
Error types for CMD AI.

Context lookups never raise; everything else the user can see is one of these.
"""


class CmdAIError(Exception):
    """Base class for user-visible errors."""


class ValidationError(CmdAIError):
    """The request was empty or whitespace only."""


class ModelError(CmdAIError):
    """The upstream model call failed. The message is the provider's own."""


class EmptyGenerationError(CmdAIError):
    """The model call succeeded but produced no usable command."""

    def __init__(self, message: str = "No command generated"):
        super().__init__(message)


class BusyError(CmdAIError):
    """A generation is already in flight."""

    def __init__(self, message: str = "A command is already being generated"):
        super().__init__(message)
