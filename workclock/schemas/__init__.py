from atams.schemas import DataResponse, PaginationResponse

from .work_clock import (
    WorkClockEvent,
    WorkClockEventCreate,
    EntryPair,
    DailyRecord,
    ClockInOutAtRequest,
    ClockInOutPairRequest,
    ClockInOutPairResponse,
    ModifyTimestampRequest,
    DeletePairResponse,
    ImportEventsRequest,
    ImportEventsResponse,
    ClockStatusResponse
)

__all__ = [
    # Work clock schemas
    "WorkClockEvent",
    "WorkClockEventCreate",
    "EntryPair",
    "DailyRecord",
    "ClockInOutAtRequest",
    "ClockInOutPairRequest",
    "ClockInOutPairResponse",
    "ModifyTimestampRequest",
    "DeletePairResponse",
    "ImportEventsRequest",
    "ImportEventsResponse",
    "ClockStatusResponse",
    # Common schemas
    "DataResponse",
    "PaginationResponse"
]
