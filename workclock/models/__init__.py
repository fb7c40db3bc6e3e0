from .work_clock_event import WorkClockEvent

__all__ = [
    "WorkClockEvent"
]
