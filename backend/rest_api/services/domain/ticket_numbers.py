"""
Ticket Number Allocator.

Hands out the daily sequential number customers see on the display
("senha"). Numbering restarts at 1 every business day, and the business
day is taken in the store's timezone, not UTC.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from shared.config.settings import settings
from rest_api.models import DailyTicketCounter


def business_timezone() -> ZoneInfo:
    return ZoneInfo(settings.business_timezone)


def business_date_for(moment: datetime | None = None) -> date:
    """Business day of a moment (now by default) in the store's timezone."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(business_timezone()).date()


def _ensure_counter_row(tx: Session, business_date: date) -> None:
    """Create the day's counter row unless it exists, tolerating a concurrent insert."""
    dialect = tx.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(DailyTicketCounter)
    elif dialect == "sqlite":
        stmt = sqlite.insert(DailyTicketCounter)
    else:
        raise RuntimeError(f"Unsupported database dialect for ticket counters: {dialect}")

    tx.execute(
        stmt.values(business_date=business_date, last_number=0).on_conflict_do_nothing(
            index_elements=[DailyTicketCounter.business_date]
        )
    )


def next_ticket_number(tx: Session, business_date: date) -> int:
    """
    Allocate the next ticket number for business_date.

    Runs inside the caller's transaction: the counter row stays locked
    until the order that uses the number is committed, so two orders of
    the same day never share a number.
    """
    _ensure_counter_row(tx, business_date)
    counter = tx.scalar(
        select(DailyTicketCounter)
        .where(DailyTicketCounter.business_date == business_date)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    counter.last_number += 1
    tx.flush()
    return counter.last_number
