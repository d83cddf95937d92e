"""Transaction boundary shared by every write path.

``run_in_transaction`` runs a unit of work against a session, commits it, and
on an optimistic-concurrency conflict rolls back and runs it again from
scratch. The unit of work must therefore load everything it needs by id.
"""
import logging
from typing import Any, Callable, TypeVar

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from boxoffice.config import settings
from boxoffice.errors import ConcurrencyConflict

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryableConflict(Exception):
    """Raised inside a unit of work when a rerun may succeed."""


def run_in_transaction(
    db: Session,
    operation: str,
    work: Callable[..., T],
    *args: Any,
    **kwargs: Any,
) -> T:
    """Run ``work(db, *args, **kwargs)`` and commit, retrying on conflicts.

    Domain errors and unexpected failures roll back and propagate untouched.
    After MAX_CONFLICT_RETRIES lost races a ConcurrencyConflict is raised.
    """
    attempts = max(settings.MAX_CONFLICT_RETRIES, 1)
    for attempt in range(1, attempts + 1):
        try:
            result = work(db, *args, **kwargs)
            db.commit()
        except (StaleDataError, RetryableConflict) as exc:
            db.rollback()
            logger.warning(
                "%s lost a concurrent update (attempt %d/%d): %s", operation, attempt, attempts, exc,
            )
            continue
        except Exception:
            db.rollback()
            raise
        return result

    logger.error("%s gave up after %d conflicting attempts", operation, attempts)
    raise ConcurrencyConflict(operation, attempts)
