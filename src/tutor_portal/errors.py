"""Exception types raised by the portal."""


class PortalError(Exception):
    """Base class for portal errors."""


class StoreError(PortalError):
    """A read or write against the tabular store was rejected."""


class DataFetchError(StoreError):
    """A read needed to build a view failed."""


class MutationError(PortalError):
    """A progress change could not be saved and was rolled back locally."""

    def __init__(self, topic_id: str, field: str, reason: str = ""):
        self.topic_id = topic_id
        self.field = field
        self.reason = reason
        message = f"Could not save {field} for topic {topic_id}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ValidationError(PortalError):
    """Input rejected before it reached the store."""


class AccessDenied(PortalError):
    """The current identity may not open the requested view."""
