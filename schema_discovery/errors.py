"""Exception hierarchy for the Schema Discovery Agent."""


class SchemaDiscoveryError(Exception):
    """Base class for all errors raised by this package."""


class ConversationError(SchemaDiscoveryError):
    """Raised when a conversation would violate its ordering or pairing rules."""


class PendingHumanRequestError(ConversationError):
    """Raised when the pending human request state does not allow the operation.

    Either the loop was invoked while a human answer is still outstanding,
    or a resolution was attempted with nothing pending.
    """


class ToolExecutionError(SchemaDiscoveryError):
    """Raised by a tool handler for an expected, reportable failure."""


class PathOutsideRootError(ToolExecutionError):
    """Raised when a requested file path escapes the sample files directory."""
