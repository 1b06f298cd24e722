"""Tests for driver-error translation in mp_common.storage."""

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError, TimeoutError as PoolTimeoutError

from src.mp_common.errors import StorageUnavailableError, TransientError
from src.mp_common.storage import storage_errors


class _DriverError(Exception):
    def __init__(self, sqlstate: str | None) -> None:
        super().__init__(f"sqlstate={sqlstate}")
        self.sqlstate = sqlstate


def _dbapi_error(sqlstate: str | None, connection_invalidated: bool = False) -> DBAPIError:
    return DBAPIError("SELECT 1", {}, _DriverError(sqlstate), connection_invalidated=connection_invalidated)


class TestStorageErrors:
    def test_statement_timeout_is_transient(self) -> None:
        with pytest.raises(StorageUnavailableError) as exc_info:
            with storage_errors("get_product"):
                raise _dbapi_error("57014")
        assert isinstance(exc_info.value, TransientError)
        assert "get_product" in exc_info.value.message

    def test_connection_failure_is_transient(self) -> None:
        with pytest.raises(StorageUnavailableError):
            with storage_errors("op"):
                raise _dbapi_error("08006")

    def test_serialization_failure_is_transient(self) -> None:
        with pytest.raises(StorageUnavailableError):
            with storage_errors("op"):
                raise _dbapi_error("40001")

    def test_invalidated_connection_is_transient(self) -> None:
        with pytest.raises(StorageUnavailableError):
            with storage_errors("op"):
                raise _dbapi_error(None, connection_invalidated=True)

    def test_pool_timeout_is_transient(self) -> None:
        with pytest.raises(StorageUnavailableError):
            with storage_errors("op"):
                raise PoolTimeoutError("QueuePool limit reached")

    def test_integrity_error_propagates(self) -> None:
        err = IntegrityError("INSERT", {}, _DriverError("23505"))
        with pytest.raises(IntegrityError):
            with storage_errors("op"):
                raise err

    def test_app_errors_pass_through(self) -> None:
        with pytest.raises(KeyError):
            with storage_errors("op"):
                raise KeyError("x")
