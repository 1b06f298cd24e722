"""Translate driver-level failures into TransientError.

Every repository call that talks to PostgreSQL runs inside `storage_errors()`
so a dropped connection, a pool timeout or a statement_timeout cancel reaches
the caller as a retryable StorageUnavailableError instead of a raw driver
exception.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError, TimeoutError as PoolTimeoutError

from src.mp_common.errors import StorageUnavailableError

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except PoolTimeoutError as exc:
        logger.warning("Connection pool exhausted during %s: %s", operation, exc)
        raise StorageUnavailableError(f"Storage busy during {operation}") from exc
    except DBAPIError as exc:
        # IntegrityError is a programming/data error, not a transient one
        if exc.connection_invalidated or _is_transient(exc):
            logger.warning("Transient storage failure during %s: %s", operation, exc)
            raise StorageUnavailableError(f"Storage unavailable during {operation}") from exc
        raise


def _is_transient(exc: DBAPIError) -> bool:
    # asyncpg reports statement_timeout as QueryCanceledError (SQLSTATE 57014);
    # connection failures are class 08.
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    if sqlstate is None:
        return exc.__class__.__name__ == "OperationalError"
    return sqlstate == "57014" or sqlstate.startswith("08") or sqlstate.startswith("40")
