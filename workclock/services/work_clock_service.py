"""
Work Clock Service - Clock in/out operations and event sequence validation

Every mutation holds the process-wide work clock lock for its whole
read -> write -> validate -> commit-or-rollback sequence, and runs inside a
single database transaction.
"""
import threading
from typing import List, Optional
from datetime import datetime, tzinfo
from sqlalchemy.orm import Session

from atams.exceptions import BadRequestException
from atams.logging import get_logger
from atams.transaction import transaction

from workclock.core.clock import local_day, millis_between, to_utc, utc_now
from workclock.core.config import settings
from workclock.core.exceptions import (
    AlreadyInStateError,
    EventNotFoundError,
    SequenceValidationError,
    kind_name,
    storage_errors,
)
from workclock.models.work_clock_event import WorkClockEvent as WorkClockEventModel
from workclock.repositories.work_clock_event_repository import WorkClockEventRepository
from workclock.schemas.work_clock import (
    ClockInOutPairResponse,
    ClockStatusResponse,
    DailyRecord,
    WorkClockEvent,
    WorkClockEventCreate,
)
from workclock.services.daily_record_service import format_duration, reconstruct_daily_records

logger = get_logger(__name__)

work_clock_lock = threading.Lock()


class WorkClockService:
    def __init__(self) -> None:
        self.event_repo = WorkClockEventRepository()

    # ==================== READS ====================

    def _latest_event(self, db: Session) -> Optional[WorkClockEventModel]:
        latest = self.event_repo.find_latest(db, 1)
        return latest[0] if latest else None

    def is_currently_clocked_in(self, db: Session) -> bool:
        """Clock state derived from the kind of the single latest event (empty log = clocked out)"""
        with storage_errors("is_currently_clocked_in"):
            latest = self._latest_event(db)
        return bool(latest.wc_clock_in) if latest else False

    def list_events(
        self,
        db: Session,
        date_from: datetime = None,
        date_to: datetime = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[WorkClockEvent]:
        """Get events in [date_from, date_to), newest first"""
        with storage_errors("list_events", date_from=date_from, date_to=date_to, skip=skip, limit=limit):
            events = self.event_repo.get_events(db, date_from, date_to, skip, limit)
        return [WorkClockEvent.model_validate(e) for e in events]

    def count_events(self, db: Session, date_from: datetime = None, date_to: datetime = None) -> int:
        with storage_errors("count_events", date_from=date_from, date_to=date_to):
            return self.event_repo.count_events(db, date_from, date_to)

    def get_daily_records(
        self,
        db: Session,
        date_from: datetime = None,
        date_to: datetime = None,
        tz: Optional[tzinfo] = None,
        now: Optional[datetime] = None
    ) -> List[DailyRecord]:
        """Reconstruct daily records from the (optionally windowed) event log"""
        with storage_errors("get_daily_records", date_from=date_from, date_to=date_to):
            events = self.event_repo.get_events(db, date_from, date_to, sort="asc")
        return reconstruct_daily_records(events, now=now, tz=tz)

    def get_clock_status(
        self,
        db: Session,
        tz: Optional[tzinfo] = None,
        now: Optional[datetime] = None
    ) -> ClockStatusResponse:
        """Current state, running session length and today's total"""
        now = to_utc(now) if now is not None else utc_now()

        with storage_errors("get_clock_status"):
            latest = self._latest_event(db)
            events = self.event_repo.get_events(db, sort="asc")

        if latest is None:
            return ClockStatusResponse()

        is_clocked_in = bool(latest.wc_clock_in)
        current_session = millis_between(latest.wc_timestamp, now) if is_clocked_in else 0

        today = local_day(now, tz)
        records = reconstruct_daily_records(events, now=now, tz=tz)
        today_total = next((r.total_time for r in records if r.date == today), 0)

        return ClockStatusResponse(
            is_clocked_in=is_clocked_in,
            last_action=to_utc(latest.wc_timestamp),
            current_session=current_session,
            formatted_current_session=format_duration(current_session),
            today_total=today_total,
            formatted_today_total=format_duration(today_total)
        )

    # ==================== VALIDATION ====================

    def check_validity(self, db: Session, wc_id: int) -> None:
        """
        Verify that an event alternates in kind with its neighbors

        Looks at the nearest event strictly after and strictly before the
        event's timestamp (against the current, possibly uncommitted, state)
        and rejects a neighbor of the same kind. An event sharing its exact
        timestamp with another event is rejected as well, since their order
        would be arbitrary.

        Raises:
            EventNotFoundError: If the event does not exist
            SequenceValidationError: If the alternation would be broken
        """
        event = self.event_repo.get(db, wc_id)
        if event is None:
            raise EventNotFoundError(wc_id)

        clock_in = bool(event.wc_clock_in)
        expected = kind_name(not clock_in)

        colliding = self.event_repo.find_at(db, event.wc_timestamp, exclude_id=event.wc_id)
        if colliding is not None:
            raise SequenceValidationError(
                f"work clock event with id '{colliding.wc_id}' has the same timestamp as event '{event.wc_id}'",
                event_id=event.wc_id,
                neighbor_id=colliding.wc_id
            )

        succeeding = self.event_repo.find_neighbor(db, event.wc_timestamp, "after")
        if succeeding is not None and bool(succeeding.wc_clock_in) == clock_in:
            raise SequenceValidationError(
                f"expected the succeeding work clock event with id '{succeeding.wc_id}' to be a {expected} event",
                event_id=event.wc_id,
                neighbor_id=succeeding.wc_id,
                expected_kind=expected
            )

        preceding = self.event_repo.find_neighbor(db, event.wc_timestamp, "before")
        if preceding is not None and bool(preceding.wc_clock_in) == clock_in:
            raise SequenceValidationError(
                f"expected the preceding work clock event with id '{preceding.wc_id}' to be a {expected} event",
                event_id=event.wc_id,
                neighbor_id=preceding.wc_id,
                expected_kind=expected
            )

    # ==================== MUTATIONS ====================

    def _clock_in_out_now(self, db: Session, clock_in: bool, now: Optional[datetime]) -> WorkClockEvent:
        """Append at the current time; caller holds the lock"""
        now = to_utc(now) if now is not None else utc_now()

        latest = self._latest_event(db)
        is_clocked_in = bool(latest.wc_clock_in) if latest else False
        if is_clocked_in == clock_in:
            logger.warning(f"Rejected {kind_name(clock_in)}: already clocked {'in' if clock_in else 'out'}")
            raise AlreadyInStateError(clock_in)

        with transaction(db):
            event = self.event_repo.add_event(db, clock_in, now)
            self.check_validity(db, event.wc_id)

        logger.info(
            f"Clocked {'in' if clock_in else 'out'}",
            extra={'extra_data': {'wc_id': event.wc_id, 'wc_timestamp': now.isoformat()}}
        )
        return WorkClockEvent.model_validate(event)

    def clock_in(self, db: Session, now: Optional[datetime] = None) -> WorkClockEvent:
        """
        Clock in at the current time

        Raises:
            AlreadyInStateError: If the latest event is already a clock-in
        """
        with work_clock_lock, storage_errors("clock_in"):
            return self._clock_in_out_now(db, True, now)

    def clock_out(self, db: Session, now: Optional[datetime] = None) -> WorkClockEvent:
        """
        Clock out at the current time

        Raises:
            AlreadyInStateError: If the latest event is a clock-out or the log is empty
        """
        with work_clock_lock, storage_errors("clock_out"):
            return self._clock_in_out_now(db, False, now)

    def toggle(self, db: Session, now: Optional[datetime] = None) -> WorkClockEvent:
        """Clock in when clocked out and vice versa"""
        with work_clock_lock, storage_errors("toggle"):
            latest = self._latest_event(db)
            is_clocked_in = bool(latest.wc_clock_in) if latest else False
            return self._clock_in_out_now(db, not is_clocked_in, now)

    def clock_in_out_at(self, db: Session, clock_in: bool, timestamp: datetime) -> WorkClockEvent:
        """
        Insert a historical clock in/out anywhere in the timeline

        Raises:
            SequenceValidationError: If the new event breaks the alternation (nothing is written)
        """
        timestamp = to_utc(timestamp)

        with work_clock_lock, storage_errors("clock_in_out_at", clock_in=clock_in, timestamp=timestamp):
            try:
                with transaction(db):
                    event = self.event_repo.add_event(db, clock_in, timestamp)
                    self.check_validity(db, event.wc_id)
            except SequenceValidationError as e:
                logger.warning(f"Rejected {kind_name(clock_in)} at {timestamp.isoformat()}: {e.message}")
                raise

        logger.info(
            f"Inserted {kind_name(clock_in)} event",
            extra={'extra_data': {'wc_id': event.wc_id, 'wc_timestamp': timestamp.isoformat()}}
        )
        return WorkClockEvent.model_validate(event)

    def add_clock_in_out_pair(
        self,
        db: Session,
        clock_in_timestamp: datetime,
        clock_out_timestamp: datetime
    ) -> ClockInOutPairResponse:
        """
        Insert a historical clock-in and clock-out together

        No ordering between the two timestamps is enforced, so a pair can
        also split an existing session. Both events are validated and both
        are rolled back if either one is invalid.
        """
        clock_in_timestamp = to_utc(clock_in_timestamp)
        clock_out_timestamp = to_utc(clock_out_timestamp)

        with work_clock_lock, storage_errors(
            "add_clock_in_out_pair",
            clock_in_timestamp=clock_in_timestamp,
            clock_out_timestamp=clock_out_timestamp
        ):
            try:
                with transaction(db):
                    clock_in_event = self.event_repo.add_event(db, True, clock_in_timestamp)
                    clock_out_event = self.event_repo.add_event(db, False, clock_out_timestamp)
                    self.check_validity(db, clock_in_event.wc_id)
                    self.check_validity(db, clock_out_event.wc_id)
            except SequenceValidationError as e:
                logger.warning(f"Rejected clock in/out pair: {e.message}")
                raise

        logger.info(
            "Inserted clock in/out pair",
            extra={'extra_data': {'clock_in_id': clock_in_event.wc_id, 'clock_out_id': clock_out_event.wc_id}}
        )
        return ClockInOutPairResponse(
            clock_in=WorkClockEvent.model_validate(clock_in_event),
            clock_out=WorkClockEvent.model_validate(clock_out_event)
        )

    def modify_timestamp(self, db: Session, wc_id: int, new_timestamp: datetime) -> WorkClockEvent:
        """
        Move an event to a new timestamp and re-validate it in its new place

        Raises:
            EventNotFoundError: If the event does not exist
            SequenceValidationError: If the moved event breaks the alternation (change rolled back)
        """
        new_timestamp = to_utc(new_timestamp)

        with work_clock_lock, storage_errors("modify_timestamp", wc_id=wc_id, new_timestamp=new_timestamp):
            event = self.event_repo.get(db, wc_id)
            if event is None:
                raise EventNotFoundError(wc_id)

            try:
                with transaction(db):
                    self.event_repo.set_timestamp(db, event, new_timestamp)
                    self.check_validity(db, wc_id)
            except SequenceValidationError as e:
                logger.warning(f"Rejected timestamp change of event {wc_id}: {e.message}")
                raise

        logger.info(
            "Modified work clock timestamp",
            extra={'extra_data': {'wc_id': wc_id, 'wc_timestamp': new_timestamp.isoformat()}}
        )
        return WorkClockEvent.model_validate(event)

    def delete_pair(self, db: Session, clock_in_id: int) -> List[int]:
        """
        Delete a clock-in together with the clock-out that follows it

        Returns:
            List[int]: Ids of the deleted events

        Raises:
            EventNotFoundError: If the clock-in does not exist
            SequenceValidationError: If the id is not a clock-in, or the next
                event is not a clock-out (nothing is deleted)
        """
        with work_clock_lock, storage_errors("delete_pair", clock_in_id=clock_in_id):
            record = self.event_repo.get(db, clock_in_id)
            if record is None:
                raise EventNotFoundError(clock_in_id)

            if not record.wc_clock_in:
                logger.warning(f"Rejected pair deletion: event {clock_in_id} is not a clock in")
                raise SequenceValidationError(
                    f"work clock event with id '{clock_in_id}' is not a clock in event",
                    event_id=clock_in_id,
                    expected_kind=kind_name(True)
                )

            succeeding = self.event_repo.find_neighbor(db, record.wc_timestamp, "after")
            if succeeding is not None and succeeding.wc_clock_in:
                logger.warning(f"Rejected pair deletion: event {succeeding.wc_id} follows clock in {clock_in_id}")
                raise SequenceValidationError(
                    f"succeeding work clock event with id '{succeeding.wc_id}' is not a clock out event",
                    event_id=clock_in_id,
                    neighbor_id=succeeding.wc_id,
                    expected_kind=kind_name(False)
                )

            deleted_ids = [record.wc_id]
            if succeeding is not None:
                deleted_ids.append(succeeding.wc_id)

            with transaction(db):
                self.event_repo.remove_event(db, record)
                if succeeding is not None:
                    self.event_repo.remove_event(db, succeeding)

        logger.info("Deleted clock in/out pair", extra={'extra_data': {'deleted_ids': deleted_ids}})
        return deleted_ids

    def import_events(self, db: Session, events: List[WorkClockEventCreate]) -> int:
        """
        Import a batch of historical events atomically

        All events are staged first and then each one is validated against
        the combined log, so a batch may fill gaps in the existing timeline.
        Any invalid event rolls back the whole batch.

        Returns:
            int: Number of imported events
        """
        if len(events) > settings.IMPORT_MAX_EVENTS:
            raise BadRequestException(
                f"Too many events in one import (max {settings.IMPORT_MAX_EVENTS})",
                {"count": len(events)}
            )

        with work_clock_lock, storage_errors("import_events", count=len(events)):
            try:
                with transaction(db):
                    staged = [
                        self.event_repo.add_event(db, e.wc_clock_in, e.wc_timestamp)
                        for e in events
                    ]
                    for event in staged:
                        self.check_validity(db, event.wc_id)
            except SequenceValidationError as e:
                logger.warning(f"Rejected import of {len(events)} events: {e.message}")
                raise

        logger.info("Imported work clock events", extra={'extra_data': {'count': len(staged)}})
        return len(staged)
