from .daily_record_service import reconstruct_daily_records, format_duration
from .work_clock_service import WorkClockService

__all__ = [
    "reconstruct_daily_records",
    "format_duration",
    "WorkClockService"
]
