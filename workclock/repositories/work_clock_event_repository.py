"""
Work Clock Event Repository - Data access layer for the event log

Write helpers only flush; committing belongs to the caller's transaction so
multi-step mutations can be rolled back as a whole.
"""
from typing import List, Optional
from datetime import datetime
from sqlalchemy.orm import Session

from atams.db import BaseRepository
from workclock.core.clock import to_utc
from workclock.models.work_clock_event import WorkClockEvent


class WorkClockEventRepository(BaseRepository[WorkClockEvent]):
    def __init__(self):
        super().__init__(WorkClockEvent)

    def find_latest(self, db: Session, n: int = 1) -> List[WorkClockEvent]:
        """Get the n most recent events, newest first"""
        return db.query(WorkClockEvent).order_by(
            WorkClockEvent.wc_timestamp.desc(),
            WorkClockEvent.wc_id.desc()
        ).limit(n).all()

    def find_neighbor(
        self,
        db: Session,
        timestamp: datetime,
        direction: str
    ) -> Optional[WorkClockEvent]:
        """Nearest event strictly before ("before") or strictly after ("after") a timestamp"""
        timestamp = to_utc(timestamp)
        query = db.query(WorkClockEvent)

        if direction == "after":
            query = query.filter(WorkClockEvent.wc_timestamp > timestamp).order_by(
                WorkClockEvent.wc_timestamp.asc(),
                WorkClockEvent.wc_id.asc()
            )
        elif direction == "before":
            query = query.filter(WorkClockEvent.wc_timestamp < timestamp).order_by(
                WorkClockEvent.wc_timestamp.desc(),
                WorkClockEvent.wc_id.desc()
            )
        else:
            raise ValueError(f"Unknown neighbor direction: {direction}")

        return query.first()

    def find_at(self, db: Session, timestamp: datetime, exclude_id: Optional[int] = None) -> Optional[WorkClockEvent]:
        """Event stamped at exactly the given instant (other than exclude_id)"""
        query = db.query(WorkClockEvent).filter(WorkClockEvent.wc_timestamp == to_utc(timestamp))

        if exclude_id is not None:
            query = query.filter(WorkClockEvent.wc_id != exclude_id)

        return query.order_by(WorkClockEvent.wc_id.asc()).first()

    def _window(self, query, date_from: Optional[datetime], date_to: Optional[datetime]):
        if date_from:
            query = query.filter(WorkClockEvent.wc_timestamp >= to_utc(date_from))
        if date_to:
            query = query.filter(WorkClockEvent.wc_timestamp < to_utc(date_to))
        return query

    def get_events(
        self,
        db: Session,
        date_from: datetime = None,
        date_to: datetime = None,
        skip: int = 0,
        limit: Optional[int] = None,
        sort: str = "desc"
    ) -> List[WorkClockEvent]:
        """Get events in the half-open window [date_from, date_to)"""
        query = self._window(db.query(WorkClockEvent), date_from, date_to)

        # Sorting
        if sort.lower() == "asc":
            query = query.order_by(WorkClockEvent.wc_timestamp.asc(), WorkClockEvent.wc_id.asc())
        else:
            query = query.order_by(WorkClockEvent.wc_timestamp.desc(), WorkClockEvent.wc_id.desc())

        query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count_events(self, db: Session, date_from: datetime = None, date_to: datetime = None) -> int:
        """Count events in the half-open window [date_from, date_to)"""
        return self._window(db.query(WorkClockEvent), date_from, date_to).count()

    def add_event(self, db: Session, clock_in: bool, timestamp: datetime) -> WorkClockEvent:
        """Stage a new event and assign its id (no commit)"""
        db_event = WorkClockEvent(wc_clock_in=clock_in, wc_timestamp=to_utc(timestamp))
        db.add(db_event)
        db.flush()
        return db_event

    def set_timestamp(self, db: Session, event: WorkClockEvent, timestamp: datetime) -> WorkClockEvent:
        """Stage a timestamp correction (no commit)"""
        event.wc_timestamp = to_utc(timestamp)
        db.add(event)
        db.flush()
        return event

    def remove_event(self, db: Session, event: WorkClockEvent) -> None:
        """Stage a deletion (no commit)"""
        db.delete(event)
        db.flush()
