# Overview: Service-layer operations for generated document numbers.

from __future__ import annotations

from datetime import date

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DocumentSequence


ORDER_PREFIX = "ORD"


def _allocate(sequence_key: str) -> int:
    """
    Reserve the next number for sequence_key inside the caller's transaction.

    Relative UPDATE first; if the row does not exist yet, insert it inside a
    savepoint. A concurrent insert of the same key loses on the unique
    constraint, rolls back only the savepoint and retries the UPDATE.
    """
    stmt = (
        update(DocumentSequence)
        .where(DocumentSequence.sequence_key == sequence_key)
        .values(next_number=DocumentSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if not result.rowcount:
        try:
            with db.session.begin_nested():
                db.session.add(DocumentSequence(sequence_key=sequence_key, next_number=2))
            return 1
        except IntegrityError:
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise

    current = (
        db.session.query(DocumentSequence.next_number)
        .filter_by(sequence_key=sequence_key)
        .scalar()
    )
    return current - 1


def next_order_number(business_day: date, *, pad: int = 4) -> str:
    """
    Allocate the next order number for a business day, e.g. "ORD-20260115-0007".

    Unique across all orders: the day is part of the number and the counter
    per day only moves forward. Does not commit.
    """
    day_code = business_day.strftime("%Y%m%d")
    number = _allocate(f"{ORDER_PREFIX}-{day_code}")
    return f"{ORDER_PREFIX}-{day_code}-{number:0{pad}d}"
