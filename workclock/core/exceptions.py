"""
Work Clock Exceptions - Typed failures of the event log operations

All of them extend the atams exception hierarchy so the global
handlers render them as {"success": false, "message": ..., "details": ...}
with the matching HTTP status code.
"""
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

from atams.exceptions import (
    ConflictException,
    InternalServerException,
    NotFoundException,
    UnprocessableEntityException,
)
from atams.logging import get_logger

logger = get_logger(__name__)


def kind_name(clock_in: bool) -> str:
    return "clock in" if clock_in else "clock out"


class SequenceValidationError(UnprocessableEntityException):
    """422 - Operation would break the clock in / clock out alternation"""

    def __init__(
        self,
        message: str,
        event_id: Optional[int] = None,
        neighbor_id: Optional[int] = None,
        expected_kind: Optional[str] = None,
    ):
        details: Dict[str, Any] = {}
        if event_id is not None:
            details["event_id"] = event_id
        if neighbor_id is not None:
            details["neighbor_id"] = neighbor_id
        if expected_kind is not None:
            details["expected_kind"] = expected_kind
        super().__init__(message, details)
        self.event_id = event_id
        self.neighbor_id = neighbor_id
        self.expected_kind = expected_kind


class EventNotFoundError(NotFoundException):
    """404 - Referenced work clock event does not exist"""

    def __init__(self, event_id: Any):
        super().__init__(
            f"Work clock event with id '{event_id}' not found",
            {"event_id": event_id},
        )
        self.event_id = event_id


class AlreadyInStateError(ConflictException):
    """409 - Clock in/out requested while already in that state"""

    def __init__(self, clock_in: bool):
        super().__init__(
            f"Already clocked {'in' if clock_in else 'out'}",
            {"clock_in": clock_in},
        )
        self.clock_in = clock_in


class StorageError(InternalServerException):
    """500 - Persistence layer failed; carries the operation context"""

    def __init__(self, operation: str, params: Optional[Dict[str, Any]] = None, error: str = ""):
        super().__init__(
            f"Storage failure during '{operation}'",
            {"operation": operation, "params": params or {}, "error": error},
        )
        self.operation = operation
        self.params = params or {}


@contextmanager
def storage_errors(operation: str, **params: Any) -> Iterator[None]:
    """Re-raise SQLAlchemy failures as StorageError with operation context"""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(
            f"Storage failure during {operation}: {str(e)}",
            exc_info=True,
            extra={'extra_data': {'operation': operation, 'params': {k: str(v) for k, v in params.items()}}}
        )
        raise StorageError(
            operation,
            {k: str(v) for k, v in params.items()},
            str(e.orig) if hasattr(e, 'orig') else str(e),
        ) from e
