"""
Work Clock Schemas for events, reconstructed daily records and API payloads
"""
from typing import List, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _fix_datetime_timezone(v):
    """
    Fix datetime timezone format coming from the database
    PostgreSQL returns: '2025-10-01 09:17:39.587802+00'
    Pydantic expects: '2025-10-01 09:17:39.587802+00:00'
    SQLite returns naive values which are stored as UTC.
    """
    if v == '' or v is None:
        return None

    if isinstance(v, str):
        import re
        pattern = r'([+-]\d{2})$'
        match = re.search(pattern, v)
        if match:
            v = v + ':00'

    if isinstance(v, datetime) and v.tzinfo is None:
        v = v.replace(tzinfo=timezone.utc)

    return v


class WorkClockEventBase(BaseModel):
    wc_timestamp: datetime
    wc_clock_in: bool


class WorkClockEventCreate(WorkClockEventBase):
    pass


class WorkClockEventInDB(WorkClockEventBase):
    model_config = ConfigDict(from_attributes=True)

    wc_id: int
    wc_created_at: Optional[datetime] = None
    wc_updated_at: Optional[datetime] = None

    @field_validator('wc_timestamp', 'wc_created_at', 'wc_updated_at', mode='before')
    @classmethod
    def fix_datetime_timezone(cls, v):
        return _fix_datetime_timezone(v)


class WorkClockEvent(WorkClockEventInDB):
    pass


class EntryPair(BaseModel):
    """One reconstructed, possibly incomplete, work session"""
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    duration: int = 0  # milliseconds
    day_boundary: bool = False
    missing_entry: bool = False


class DailyRecord(BaseModel):
    """All sessions whose clock-in falls on one local calendar day"""
    date: str  # YYYY-MM-DD in the viewer's zone
    entry_pairs: List[EntryPair] = Field(default_factory=list)
    total_time: int = 0  # milliseconds
    formatted_total: str = "00:00:00"
    has_missing_entries: bool = False
    is_active: bool = False


# Request/Response schemas for API endpoints
class ClockInOutAtRequest(BaseModel):
    """Request schema for a historical single clock in/out"""
    wc_clock_in: bool
    wc_timestamp: datetime


class ClockInOutPairRequest(BaseModel):
    """Request schema for a historical clock in/out pair"""
    clock_in_timestamp: datetime
    clock_out_timestamp: datetime


class ClockInOutPairResponse(BaseModel):
    clock_in: WorkClockEvent
    clock_out: WorkClockEvent


class ModifyTimestampRequest(BaseModel):
    """Request schema for correcting an event's timestamp"""
    new_timestamp: datetime


class DeletePairResponse(BaseModel):
    deleted_ids: List[int]


class ImportEventsRequest(BaseModel):
    """Request schema for a bulk import of historical events"""
    events: List[WorkClockEventCreate]


class ImportEventsResponse(BaseModel):
    imported_count: int


class ClockStatusResponse(BaseModel):
    """Response schema for the current clock status"""
    is_clocked_in: bool = False
    last_action: Optional[datetime] = None
    current_session: int = 0  # milliseconds
    formatted_current_session: str = "00:00:00"
    today_total: int = 0  # milliseconds
    formatted_today_total: str = "00:00:00"
