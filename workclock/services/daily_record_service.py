"""
Daily Record Reconstruction - Turns the raw event log into per-day sessions

Pure and read-only: no database access, no locking, no hidden state. Safe to
call on every log change or once per second while a session is running.
"""
from datetime import datetime, tzinfo
from typing import Any, Dict, Iterable, List, Optional

from workclock.core.clock import local_day, millis_between, to_utc, utc_now
from workclock.schemas.work_clock import DailyRecord, EntryPair


def format_duration(milliseconds: int) -> str:
    """Format milliseconds as HH:MM:SS (sub-second remainder truncated)"""
    total_seconds = max(0, int(milliseconds)) // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def _sort_key(event: Any):
    # Unsaved events (no id) sort after saved ones stamped at the same instant
    event_id = getattr(event, "wc_id", None)
    return (to_utc(event.wc_timestamp), event_id is None, event_id or 0)


def _record_for(records: Dict[str, DailyRecord], day: str) -> DailyRecord:
    if day not in records:
        records[day] = DailyRecord(date=day)
    return records[day]


def _demote_stale_record(record: DailyRecord) -> None:
    """A record that is not the most recent one cannot hold the running session"""
    if not record.is_active:
        return

    record.has_missing_entries = True
    record.is_active = False
    record.total_time = 0
    for pair in record.entry_pairs:
        if pair.clock_in is None or pair.clock_out is None:
            pair.missing_entry = True
            pair.duration = 0
            pair.day_boundary = False
        else:
            record.total_time += pair.duration
    record.formatted_total = format_duration(record.total_time)


def reconstruct_daily_records(
    events: Iterable[Any],
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None
) -> List[DailyRecord]:
    """
    Group events into daily records, most recent day first

    Args:
        events: Objects exposing wc_timestamp, wc_clock_in and optionally wc_id
                (ORM rows or WorkClockEvent schemas), in any order
        now: Reference instant for the running session (default: current time)
        tz: Viewer zone used for calendar days (default: server local zone)

    Returns:
        List[DailyRecord]: Never raises; empty input yields an empty list
    """
    now = to_utc(now) if now is not None else utc_now()
    ordered = sorted(
        (e for e in events if getattr(e, "wc_timestamp", None) is not None),
        key=_sort_key
    )
    last_index = len(ordered) - 1
    records: Dict[str, DailyRecord] = {}

    i = 0
    while i < len(ordered):
        event = ordered[i]
        timestamp = to_utc(event.wc_timestamp)

        if bool(event.wc_clock_in):
            day = local_day(timestamp, tz)
            record = _record_for(records, day)
            following = ordered[i + 1] if i < last_index else None

            if following is not None and not bool(following.wc_clock_in):
                clock_out = to_utc(following.wc_timestamp)
                pair = EntryPair(
                    clock_in=timestamp,
                    clock_out=clock_out,
                    duration=millis_between(timestamp, clock_out),
                    day_boundary=local_day(clock_out, tz) != day,
                    missing_entry=False
                )
                record.total_time += pair.duration
                i += 2
            else:
                # Unterminated: running session if nothing newer exists, otherwise a missing clock-out
                is_active = i == last_index
                pair = EntryPair(
                    clock_in=timestamp,
                    clock_out=None,
                    duration=millis_between(timestamp, now),
                    day_boundary=False,
                    missing_entry=not is_active
                )
                if is_active:
                    record.is_active = True
                    record.total_time += pair.duration
                else:
                    record.has_missing_entries = True
                i += 1
        else:
            # Orphan clock-out
            record = _record_for(records, local_day(timestamp, tz))
            pair = EntryPair(
                clock_in=None,
                clock_out=timestamp,
                duration=0,
                day_boundary=False,
                missing_entry=True
            )
            record.has_missing_entries = True
            i += 1

        record.entry_pairs.append(pair)

    daily_records = sorted(records.values(), key=lambda r: r.date, reverse=True)
    for record in daily_records:
        record.formatted_total = format_duration(record.total_time)

    for record in daily_records[1:]:
        _demote_stale_record(record)

    if daily_records and daily_records[0].is_active and daily_records[0].entry_pairs:
        last_pair = daily_records[0].entry_pairs[-1]
        if last_pair.clock_in is not None:
            reference = last_pair.clock_out if last_pair.clock_out is not None else now
            last_pair.day_boundary = local_day(last_pair.clock_in, tz) != local_day(reference, tz)

    return daily_records
