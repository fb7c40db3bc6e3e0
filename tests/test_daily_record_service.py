"""Tests for daily record reconstruction.

Covers:
- Pairing of clock-ins with the immediately following clock-out
- Day boundary detection in the viewer's zone
- Orphan clock-outs and unterminated clock-ins
- The single active session and its running duration
- Duration formatting
"""

from datetime import timedelta, timezone

from workclock.schemas import WorkClockEventCreate
from workclock.services.daily_record_service import format_duration, reconstruct_daily_records
from tests.conftest import event, utc

UTC = timezone.utc


class TestPairing:
    """Completed clock in / clock out pairs."""

    def test_same_day_pair(self):
        """Test a single session within one day."""
        records = reconstruct_daily_records(
            [event(1, utc(2025, 1, 6, 9), True), event(2, utc(2025, 1, 6, 17), False)],
            now=utc(2025, 1, 7, 12),
            tz=UTC,
        )
        assert len(records) == 1
        record = records[0]
        assert record.date == "2025-01-06"
        assert len(record.entry_pairs) == 1
        pair = record.entry_pairs[0]
        assert pair.clock_in == utc(2025, 1, 6, 9)
        assert pair.clock_out == utc(2025, 1, 6, 17)
        assert pair.duration == 8 * 3600 * 1000
        assert pair.day_boundary is False
        assert pair.missing_entry is False
        assert record.total_time == 8 * 3600 * 1000
        assert record.formatted_total == "08:00:00"
        assert record.has_missing_entries is False
        assert record.is_active is False

    def test_day_boundary_pair(self):
        """Test a session crossing midnight is bucketed by its clock-in day."""
        records = reconstruct_daily_records(
            [event(1, utc(2025, 1, 1, 23, 30), True), event(2, utc(2025, 1, 2, 0, 30), False)],
            now=utc(2025, 1, 3),
            tz=UTC,
        )
        assert [r.date for r in records] == ["2025-01-01"]
        pair = records[0].entry_pairs[0]
        assert pair.day_boundary is True
        assert pair.duration == 3_600_000

    def test_day_boundary_uses_viewer_zone(self):
        """Test that calendar days follow the requested offset, not UTC."""
        events = [event(1, utc(2025, 1, 1, 22, 30), True), event(2, utc(2025, 1, 1, 23, 30), False)]
        plus_one = timezone(timedelta(hours=1))

        in_utc = reconstruct_daily_records(events, now=utc(2025, 1, 3), tz=UTC)
        in_plus_one = reconstruct_daily_records(events, now=utc(2025, 1, 3), tz=plus_one)

        assert in_utc[0].entry_pairs[0].day_boundary is False
        assert in_plus_one[0].date == "2025-01-01"
        assert in_plus_one[0].entry_pairs[0].day_boundary is True

    def test_unsorted_input(self):
        """Test that input order does not matter."""
        events = [
            event(1, utc(2025, 1, 6, 9), True),
            event(2, utc(2025, 1, 6, 12), False),
            event(3, utc(2025, 1, 7, 9), True),
            event(4, utc(2025, 1, 7, 17), False),
        ]
        now = utc(2025, 1, 8)
        assert reconstruct_daily_records(list(reversed(events)), now=now, tz=UTC) == \
            reconstruct_daily_records(events, now=now, tz=UTC)

    def test_records_most_recent_first(self):
        """Test that records are ordered by date, newest first."""
        records = reconstruct_daily_records(
            [
                event(1, utc(2025, 1, 6, 9), True),
                event(2, utc(2025, 1, 6, 12), False),
                event(3, utc(2025, 1, 8, 9), True),
                event(4, utc(2025, 1, 8, 10), False),
            ],
            now=utc(2025, 1, 9),
            tz=UTC,
        )
        assert [r.date for r in records] == ["2025-01-08", "2025-01-06"]
        assert records[0].total_time == 3_600_000
        assert records[1].total_time == 3 * 3_600_000

    def test_unsaved_events(self):
        """Test that events without an id are accepted."""
        records = reconstruct_daily_records(
            [
                WorkClockEventCreate(wc_timestamp=utc(2025, 1, 6, 9), wc_clock_in=True),
                WorkClockEventCreate(wc_timestamp=utc(2025, 1, 6, 10), wc_clock_in=False),
            ],
            now=utc(2025, 1, 7),
            tz=UTC,
        )
        assert records[0].total_time == 3_600_000


class TestMissingEntries:
    """Orphan clock-outs and unterminated clock-ins."""

    def test_orphan_clock_out(self):
        """Test a lone clock-out becomes a zero-duration missing pair."""
        records = reconstruct_daily_records([event(1, utc(2025, 1, 6, 17), False)], now=utc(2025, 1, 7), tz=UTC)
        assert len(records) == 1
        record = records[0]
        assert record.date == "2025-01-06"
        assert len(record.entry_pairs) == 1
        pair = record.entry_pairs[0]
        assert pair.clock_in is None
        assert pair.clock_out == utc(2025, 1, 6, 17)
        assert pair.duration == 0
        assert pair.missing_entry is True
        assert pair.day_boundary is False
        assert record.has_missing_entries is True
        assert record.total_time == 0

    def test_orphan_before_pair_is_not_counted(self):
        """Test that an orphan does not affect the total of a following pair."""
        records = reconstruct_daily_records(
            [
                event(1, utc(2025, 1, 6, 8), False),
                event(2, utc(2025, 1, 6, 9), True),
                event(3, utc(2025, 1, 6, 17), False),
            ],
            now=utc(2025, 1, 7),
            tz=UTC,
        )
        record = records[0]
        assert len(record.entry_pairs) == 2
        assert record.entry_pairs[0].missing_entry is True
        assert record.entry_pairs[1].missing_entry is False
        assert record.total_time == 8 * 3_600_000
        assert record.has_missing_entries is True

    def test_stale_unterminated_entry(self):
        """Test an unterminated clock-in followed by a newer clock-in is missing."""
        records = reconstruct_daily_records(
            [event(1, utc(2025, 1, 1, 9), True), event(2, utc(2025, 1, 2, 9), True)],
            now=utc(2025, 1, 2, 10),
            tz=UTC,
        )
        assert [r.date for r in records] == ["2025-01-02", "2025-01-01"]

        active, stale = records
        assert active.is_active is True
        assert active.total_time == 3_600_000
        assert active.entry_pairs[0].missing_entry is False
        assert active.entry_pairs[0].clock_out is None

        assert stale.is_active is False
        assert stale.has_missing_entries is True
        assert stale.total_time == 0
        assert stale.entry_pairs[0].missing_entry is True

    def test_only_clock_ins(self):
        """Test that all clock-ins but the last are missing."""
        records = reconstruct_daily_records(
            [event(1, utc(2025, 1, 6, 9), True), event(2, utc(2025, 1, 6, 10), True)],
            now=utc(2025, 1, 6, 11),
            tz=UTC,
        )
        assert len(records) == 1
        record = records[0]
        assert [p.missing_entry for p in record.entry_pairs] == [True, False]
        assert record.is_active is True
        assert record.has_missing_entries is True
        assert record.total_time == 3_600_000

    def test_only_clock_outs(self):
        """Test that clock-outs alone are all orphans."""
        records = reconstruct_daily_records(
            [event(1, utc(2025, 1, 6, 9), False), event(2, utc(2025, 1, 6, 10), False)],
            now=utc(2025, 1, 7),
            tz=UTC,
        )
        assert len(records[0].entry_pairs) == 2
        assert all(p.missing_entry and p.duration == 0 for p in records[0].entry_pairs)
        assert records[0].total_time == 0

    def test_empty_input(self):
        assert reconstruct_daily_records([], tz=UTC) == []


class TestActiveSession:
    """The running, still unterminated session."""

    def test_running_duration(self):
        """Test the active session counts up to now."""
        records = reconstruct_daily_records(
            [event(1, utc(2025, 1, 6, 9), True)],
            now=utc(2025, 1, 6, 9, 30),
            tz=UTC,
        )
        record = records[0]
        assert record.is_active is True
        assert record.entry_pairs[0].duration == 30 * 60 * 1000
        assert record.formatted_total == "00:30:00"
        assert record.entry_pairs[0].day_boundary is False

    def test_running_session_across_midnight(self):
        """Test day boundary of the active session is computed against now."""
        events = [event(1, utc(2025, 1, 1, 23), True)]

        before_midnight = reconstruct_daily_records(events, now=utc(2025, 1, 1, 23, 59), tz=UTC)
        after_midnight = reconstruct_daily_records(events, now=utc(2025, 1, 2, 1), tz=UTC)

        assert before_midnight[0].entry_pairs[0].day_boundary is False
        assert after_midnight[0].date == "2025-01-01"
        assert after_midnight[0].entry_pairs[0].day_boundary is True
        assert after_midnight[0].total_time == 2 * 3_600_000

    def test_at_most_one_active_record(self):
        """Test only the most recent record may be active."""
        records = reconstruct_daily_records(
            [
                event(1, utc(2025, 1, 1, 9), True),
                event(2, utc(2025, 1, 2, 9), True),
                event(3, utc(2025, 1, 3, 8), False),
                event(4, utc(2025, 1, 4, 9), True),
            ],
            now=utc(2025, 1, 4, 12),
            tz=UTC,
        )
        active = [i for i, r in enumerate(records) if r.is_active]
        assert active == [0]
        assert records[0].date == "2025-01-04"

    def test_idempotent(self):
        """Test that reconstructing twice yields the same records."""
        events = [
            event(1, utc(2025, 1, 6, 9), True),
            event(2, utc(2025, 1, 6, 12), False),
            event(3, utc(2025, 1, 6, 13), True),
        ]
        now = utc(2025, 1, 6, 15)
        assert reconstruct_daily_records(events, now=now, tz=UTC) == \
            reconstruct_daily_records(events, now=now, tz=UTC)


class TestFormatDuration:
    def test_zero(self):
        assert format_duration(0) == "00:00:00"

    def test_truncates_sub_seconds(self):
        assert format_duration(3_661_999) == "01:01:01"

    def test_more_than_a_day(self):
        assert format_duration(100 * 3_600_000) == "100:00:00"

    def test_negative_is_zero(self):
        assert format_duration(-5000) == "00:00:00"
