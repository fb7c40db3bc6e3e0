from .work_clock_event_repository import WorkClockEventRepository

__all__ = [
    "WorkClockEventRepository"
]
