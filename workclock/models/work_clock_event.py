"""
Work Clock Event Model - Single clock-in or clock-out stamp
"""
from sqlalchemy import Column, BigInteger, Integer, Boolean, DateTime
from sqlalchemy.sql import func
from atams.db import Base


class WorkClockEvent(Base):
    """Work clock event model - Table: work_clock_events"""
    __tablename__ = "work_clock_events"

    # SQLite only autoincrements INTEGER primary keys
    wc_id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True, autoincrement=True)
    wc_timestamp = Column(DateTime(timezone=True), nullable=False, index=True)  # Stored in UTC
    wc_clock_in = Column(Boolean, nullable=False)  # True = clock-in, False = clock-out
    wc_created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    wc_updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
