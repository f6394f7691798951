# errors.py
# Exception hierarchy for the agent execution core.
#
# Only configuration and transport problems are raised. Tool-level failures
# travel back to the model as {"success": False, "error": ...} envelopes.

from agent_harness.models import FailureReason


class HarnessError(Exception):
    """Base class for every error raised by the harness."""


class ConfigError(HarnessError):
    """Raised when an agent configuration or settings file is malformed."""


class InvalidCategoryError(ConfigError, ValueError):
    """Raised when a context note category is outside the fixed enumeration."""


class DuplicateToolError(HarnessError):
    """Raised when two tool definitions share an id."""


class RegistryFrozenError(HarnessError):
    """Raised when a tool is registered after the registry was frozen."""


class TransportError(HarnessError):
    """Raised when the model provider stream fails. Always fatal to the run."""

    def __init__(self, reason: FailureReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason
