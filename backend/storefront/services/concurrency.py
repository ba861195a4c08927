# Overview: Service-layer helpers for transactions, row locking and retry on store contention.

from __future__ import annotations

import time
from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..validation import StoreUnavailableError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    Stock changes additionally go through single-statement increments so the
    read value is never written back.
    """
    return query.with_for_update()


@contextmanager
def atomic():
    """
    One unit of work on the session.

    Commits when the block finishes, rolls back on any exception and
    re-raises it. Nothing written inside the block survives a failure.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float | None = None):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). When retries are exhausted the failure
    surfaces as StoreUnavailableError without store-internal detail.
    """
    if attempts is None:
        attempts = current_app.config.get("DB_RETRY_ATTEMPTS", 3)
    if backoff_base is None:
        backoff_base = current_app.config.get("DB_RETRY_BACKOFF", 0.1)

    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                current_app.logger.error("Store operation failed after %d attempts: %s", attempts, exc)
                raise StoreUnavailableError("Database is temporarily unavailable") from exc
            current_app.logger.warning("Store contention, retrying (attempt %d): %s", attempt + 1, exc)
            time.sleep(backoff_base * (2 ** attempt))
    raise StoreUnavailableError("Database is temporarily unavailable")
