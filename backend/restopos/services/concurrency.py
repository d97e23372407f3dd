# Overview: Transaction boundaries for multi-row writes (orders, ledger entries).

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..validation import PersistenceError


def begin_write() -> None:
    """
    Open the write transaction up front.

    NOTE: SQLite uses deferred transactions by default. Two writers that both
    read before writing would deadlock and one would fail with "database is
    locked". BEGIN IMMEDIATE takes the write lock first, so concurrent units
    queue on the busy timeout instead. Other DBs start the transaction on the
    first statement and serialize row updates themselves.
    """
    if db.engine.dialect.name != "sqlite":
        return
    dbapi_conn = db.session.connection().connection.dbapi_connection
    if not dbapi_conn.in_transaction:
        db.session.execute(text("BEGIN IMMEDIATE"))


@contextmanager
def unit_of_work():
    """
    All-or-nothing block: commit on success, roll back on any exception.

    Domain errors (ValidationError, NotFoundError, ...) propagate unchanged.
    Store failures are re-raised as PersistenceError after the rollback.
    """
    try:
        begin_write()
        yield db.session
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceError("Database write failed") from exc
    except Exception:
        db.session.rollback()
        raise
