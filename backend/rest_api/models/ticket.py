"""
Ticket Models: DailyTicketCounter.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Date, Integer
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class DailyTicketCounter(Base):
    """
    Last ticket number handed out on a business day.

    One row per day; the row is locked while the next number is taken so
    two counters never hand out the same number.
    """

    __tablename__ = "daily_ticket_counter"

    business_date: Mapped[date] = mapped_column(Date, primary_key=True)
    last_number: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<DailyTicketCounter(date={self.business_date}, last={self.last_number})>"
