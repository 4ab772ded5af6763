"""Record store interface shared by the relational and legacy backends.

Services depend only on ``RecordStore``. The concrete backend is chosen once
from ``settings.data_backend`` and handed to request handlers through the
``get_record_store`` dependency.
"""

import logging
from functools import lru_cache
from typing import Any, Protocol

from portal.core.config import settings


logger = logging.getLogger(__name__)


class RecordNotFoundError(KeyError):
    """Raised when a record id does not exist in a collection."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Record not found"


class DatabaseError(RuntimeError):
    """Raised for any other record store failure."""


class RecordStore(Protocol):
    """Async CRUD over named collections of flat records."""

    async def init(self) -> None:
        """Prepare the backend (create tables, open connections)."""
        ...

    async def close(self) -> None:
        """Release backend resources."""
        ...

    async def create_record(self, *, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a record and return it with its assigned ``id`` and ``created_at``."""
        ...

    async def get_record(self, *, collection: str, record_id: str) -> dict[str, Any]:
        """Fetch a record by id, raising ``RecordNotFoundError`` when absent."""
        ...

    async def update_record(self, *, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Apply a partial update and return the updated record."""
        ...

    async def delete_record(self, *, collection: str, record_id: str) -> None:
        """Delete a record by id, raising ``RecordNotFoundError`` when absent."""
        ...

    async def list_records(
        self,
        *,
        collection: str,
        page: int = 1,
        per_page: int = 50,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]:
        """List one page of records matching the filter."""
        ...

    async def list_all_records(
        self,
        *,
        collection: str,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]:
        """List every record matching the filter."""
        ...

    async def get_first_record(self, *, collection: str, filter_query: str) -> dict[str, Any] | None:
        """Return the first record matching the filter, or None."""
        ...


def build_record_store(backend: str) -> RecordStore:
    """Construct the store for the configured backend name.

    Raises:
        ValueError: If the backend name is unknown
    """
    if backend == "sqlite":
        from portal.core.sqlite_store import SQLiteRecordStore  # noqa: PLC0415

        return SQLiteRecordStore()
    if backend == "airtable":
        from portal.core.airtable_store import AirtableRecordStore  # noqa: PLC0415

        return AirtableRecordStore()

    msg = f"Unknown data backend: {backend}"
    raise ValueError(msg)


@lru_cache(maxsize=1)
def get_record_store() -> RecordStore:
    """Return the process-wide record store for the configured backend."""
    store = build_record_store(settings.data_backend)
    logger.info("Record store selected", extra={"backend": settings.data_backend})
    return store
