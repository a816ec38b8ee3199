"""Domain exceptions shared by the service layer.

The API layer maps these to HTTP responses in ``main.py``; services never
build responses themselves.
"""


class TrackerError(Exception):
    """Base exception for work tracker operations."""
    pass


class NotFoundError(TrackerError):
    """Requested row does not exist."""
    pass


class WorkItemNotFoundError(NotFoundError):
    """Work item does not exist."""

    def __init__(self, work_item_id):
        super().__init__(f"Work item {work_item_id} not found")
        self.work_item_id = work_item_id


class GateValidationError(TrackerError):
    """A status transition precondition is not met.

    ``errors`` lists every unmet condition, in a stable order.
    """

    def __init__(self, gate: str, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.gate = gate
        self.message = message
        self.errors = errors or [message]


class InvalidOperationError(TrackerError):
    """Operation not allowed in current state."""
    pass


class ConcurrencyError(TrackerError):
    """Concurrent modification detected."""
    pass
