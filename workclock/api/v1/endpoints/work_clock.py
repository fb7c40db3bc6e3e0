"""
Work Clock Endpoints - Clocking, historical corrections, history and daily records
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime

from workclock.db.session import get_db
from workclock.core.clock import offset_timezone, to_utc
from workclock.core.config import settings
from workclock.services.work_clock_service import WorkClockService
from workclock.schemas import (
    WorkClockEvent,
    DailyRecord,
    ClockInOutAtRequest,
    ClockInOutPairRequest,
    ClockInOutPairResponse,
    ModifyTimestampRequest,
    DeletePairResponse,
    ImportEventsRequest,
    ImportEventsResponse,
    ClockStatusResponse,
    DataResponse,
    PaginationResponse
)
from atams.encryption import encrypt_response_data
from atams.exceptions import BadRequestException

router = APIRouter()
work_clock_service = WorkClockService()


def _check_window(date_from: Optional[datetime], date_to: Optional[datetime]) -> None:
    if date_from and date_to and to_utc(date_from) >= to_utc(date_to):
        raise BadRequestException("date_from must be before date_to")


def _viewer_timezone(tz_offset_minutes: Optional[int]):
    if tz_offset_minutes is None:
        tz_offset_minutes = settings.DEFAULT_TZ_OFFSET_MINUTES
    return offset_timezone(tz_offset_minutes)


@router.post(
    "/clock-in",
    response_model=DataResponse[WorkClockEvent],
    status_code=status.HTTP_201_CREATED
)
def clock_in(db: Session = Depends(get_db)):
    """
    Clock in at the current time

    **Errors:**
    - 409: Already clocked in
    """
    event = work_clock_service.clock_in(db)

    return DataResponse(
        success=True,
        message="Clocked in successfully",
        data=event
    )


@router.post(
    "/clock-out",
    response_model=DataResponse[WorkClockEvent],
    status_code=status.HTTP_201_CREATED
)
def clock_out(db: Session = Depends(get_db)):
    """
    Clock out at the current time

    **Errors:**
    - 409: Already clocked out
    """
    event = work_clock_service.clock_out(db)

    return DataResponse(
        success=True,
        message="Clocked out successfully",
        data=event
    )


@router.post(
    "/toggle",
    response_model=DataResponse[WorkClockEvent],
    status_code=status.HTTP_201_CREATED
)
def toggle(db: Session = Depends(get_db)):
    """Clock in when clocked out, clock out when clocked in"""
    event = work_clock_service.toggle(db)

    return DataResponse(
        success=True,
        message=f"Clocked {'in' if event.wc_clock_in else 'out'} successfully",
        data=event
    )


@router.post(
    "/clock-in-out-at",
    response_model=DataResponse[WorkClockEvent],
    status_code=status.HTTP_201_CREATED
)
def clock_in_out_at(request: ClockInOutAtRequest, db: Session = Depends(get_db)):
    """
    Insert a clock in or clock out at a specific (past) timestamp

    **Errors:**
    - 422: A neighboring event has the same kind, or the timestamp is taken
    """
    event = work_clock_service.clock_in_out_at(db, request.wc_clock_in, request.wc_timestamp)

    return DataResponse(
        success=True,
        message="Work clock event added successfully",
        data=event
    )


@router.post(
    "/pairs",
    response_model=DataResponse[ClockInOutPairResponse],
    status_code=status.HTTP_201_CREATED
)
def add_clock_in_out_pair(request: ClockInOutPairRequest, db: Session = Depends(get_db)):
    """
    Insert a clock in/out pair with explicit timestamps

    **Errors:**
    - 422: Either event breaks the alternation (nothing is stored)
    """
    pair = work_clock_service.add_clock_in_out_pair(
        db, request.clock_in_timestamp, request.clock_out_timestamp
    )

    return DataResponse(
        success=True,
        message="Clock in/out pair added successfully",
        data=pair
    )


@router.delete(
    "/pairs/{clock_in_id}",
    response_model=DataResponse[DeletePairResponse],
    status_code=status.HTTP_200_OK
)
def delete_pair(clock_in_id: int, db: Session = Depends(get_db)):
    """
    Delete a clock in and its following clock out

    **Errors:**
    - 404: Clock in not found
    - 422: Id is not a clock in, or the following event is not a clock out
    """
    deleted_ids = work_clock_service.delete_pair(db, clock_in_id)

    return DataResponse(
        success=True,
        message="Clock in/out pair deleted successfully",
        data=DeletePairResponse(deleted_ids=deleted_ids)
    )


@router.put(
    "/events/{wc_id}",
    response_model=DataResponse[WorkClockEvent],
    status_code=status.HTTP_200_OK
)
def modify_timestamp(wc_id: int, request: ModifyTimestampRequest, db: Session = Depends(get_db)):
    """
    Correct the timestamp of an event

    **Errors:**
    - 404: Event not found
    - 422: The moved event breaks the alternation (change rolled back)
    """
    event = work_clock_service.modify_timestamp(db, wc_id, request.new_timestamp)

    return DataResponse(
        success=True,
        message="Work clock timestamp modified successfully",
        data=event
    )


@router.get(
    "/events",
    status_code=status.HTTP_200_OK
)
def list_events(
    date_from: Optional[datetime] = Query(None, description="Inclusive lower bound (ISO 8601)"),
    date_to: Optional[datetime] = Query(None, description="Exclusive upper bound (ISO 8601)"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum records to return"),
    offset: int = Query(0, ge=0, description="Number of records to skip"),
    db: Session = Depends(get_db)
):
    """
    Get work clock events, newest first

    **Query Parameters:**
    - date_from/date_to: Half-open window [date_from, date_to)
    - limit: Max records (1-1000, default 100)
    - offset: Skip records (default 0)
    """
    _check_window(date_from, date_to)

    events = work_clock_service.list_events(db, date_from, date_to, offset, limit)
    total = work_clock_service.count_events(db, date_from, date_to)

    response = PaginationResponse[WorkClockEvent](
        success=True,
        message="Events retrieved successfully",
        data=events,
        total=total,
        page=offset // limit + 1,
        size=limit,
        pages=(total + limit - 1) // limit
    )

    return encrypt_response_data(response, settings)


@router.post(
    "/events/import",
    response_model=DataResponse[ImportEventsResponse],
    status_code=status.HTTP_201_CREATED
)
def import_events(request: ImportEventsRequest, db: Session = Depends(get_db)):
    """
    Import historical events in one transaction

    **Errors:**
    - 400: Too many events in one request
    - 422: Any event breaks the alternation (nothing is stored)
    """
    imported_count = work_clock_service.import_events(db, request.events)

    return DataResponse(
        success=True,
        message=f"Imported {imported_count} work clock events",
        data=ImportEventsResponse(imported_count=imported_count)
    )


@router.get(
    "/daily-records",
    status_code=status.HTTP_200_OK
)
def get_daily_records(
    date_from: Optional[datetime] = Query(None, description="Inclusive lower bound (ISO 8601)"),
    date_to: Optional[datetime] = Query(None, description="Exclusive upper bound (ISO 8601)"),
    tz_offset_minutes: Optional[int] = Query(
        None, ge=-14 * 60, le=14 * 60, description="Viewer offset east of UTC in minutes"
    ),
    db: Session = Depends(get_db)
):
    """
    Get work sessions grouped by local calendar day, most recent day first

    The running session's duration grows with every call; poll this
    endpoint to refresh it.
    """
    _check_window(date_from, date_to)

    records = work_clock_service.get_daily_records(
        db, date_from, date_to, tz=_viewer_timezone(tz_offset_minutes)
    )

    response = DataResponse[List[DailyRecord]](
        success=True,
        message="Daily records retrieved successfully",
        data=records
    )

    return encrypt_response_data(response, settings)


@router.get(
    "/status",
    status_code=status.HTTP_200_OK
)
def get_clock_status(
    tz_offset_minutes: Optional[int] = Query(
        None, ge=-14 * 60, le=14 * 60, description="Viewer offset east of UTC in minutes"
    ),
    db: Session = Depends(get_db)
):
    """Get the current clock state, running session and today's total"""
    clock_status = work_clock_service.get_clock_status(db, tz=_viewer_timezone(tz_offset_minutes))

    response = DataResponse[ClockStatusResponse](
        success=True,
        message="Clock status retrieved successfully",
        data=clock_status
    )

    return encrypt_response_data(response, settings)
