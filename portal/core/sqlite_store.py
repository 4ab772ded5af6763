"""SQLite record store (relational backend) built on aiosqlite."""

import asyncio
import json
import logging
import re
import threading
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from portal.core import schema
from portal.core.config import settings
from portal.core.filters import parse_filter, to_sql
from portal.core.store import DatabaseError, RecordNotFoundError


logger = logging.getLogger(__name__)

_SORT_RE = re.compile(r"^-?[A-Za-z_][A-Za-z0-9_]*$")


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection is declared in the schema."""
    if collection not in schema.COLLECTIONS:
        msg = f"Invalid collection name: {collection}"
        raise ValueError(msg)


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict | list):
        return json.dumps(value)
    if isinstance(value, bool):
        return int(value)
    return value


def _decode_row(collection: str, columns: list[str], row: tuple[Any, ...]) -> dict[str, Any]:
    """Turn a result row into a record, restoring booleans and JSON values."""
    record = dict(zip(columns, row, strict=True))
    for column in schema.columns_of_type(collection, "BOOLEAN"):
        if record.get(column) is not None:
            record[column] = bool(record[column])
    for column in schema.columns_of_type(collection, "JSON"):
        if isinstance(record.get(column), str):
            record[column] = json.loads(record[column])
    return record


def _order_by(sort: str) -> str:
    """Translate ``field,-other`` sort syntax into a safe ORDER BY clause."""
    clauses = []
    for raw in sort.split(","):
        term = raw.strip()
        if not term:
            continue
        if not _SORT_RE.match(term):
            logger.warning("Invalid sort parameter, using default", extra={"sort": sort})
            return "created_at ASC"
        clauses.append(f"{term[1:]} DESC" if term.startswith("-") else f"{term} ASC")
    return ", ".join(clauses) if clauses else "created_at ASC"


_db_connections: dict[tuple[int, int, str], aiosqlite.Connection] = {}
_db_lock = asyncio.Lock()


class SQLiteRecordStore:
    """Record store backed by a local SQLite file."""

    def __init__(self, db_path: str | None = None) -> None:
        self._path = Path(db_path or settings.sqlite_db_path).resolve()

    def _cache_key(self) -> tuple[int, int, str]:
        return (threading.get_ident(), id(asyncio.get_running_loop()), str(self._path))

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create a cached connection for the current thread, loop, and db path."""
        cache_key = self._cache_key()
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        async with _db_lock:
            # Double-check after acquiring lock
            if cache_key in _db_connections:
                return _db_connections[cache_key]

            self._path.parent.mkdir(parents=True, exist_ok=True)

            conn = await aiosqlite.connect(str(self._path))
            await conn.execute("PRAGMA journal_mode = WAL")
            _db_connections[cache_key] = conn

            logger.info("Created new SQLite connection", extra={"db_path": str(self._path)})
            return conn

    async def init(self) -> None:
        conn = await self._get_connection()
        await schema.init_db(conn)

    async def close(self) -> None:
        cache_key = self._cache_key()
        async with _db_lock:
            conn = _db_connections.pop(cache_key, None)
        if conn is not None:
            await conn.close()
            logger.info("Closed SQLite connection", extra={"db_path": str(self._path)})

    async def create_record(self, *, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a new record and return it with its assigned id."""
        try:
            _validate_collection_name(collection)
            conn = await self._get_connection()

            row = {"id": uuid.uuid4().hex, "created_at": datetime.now(UTC).isoformat(), **data}
            columns = list(row.keys())
            placeholders = ", ".join("?" for _ in columns)

            query = f"INSERT INTO {collection} ({', '.join(columns)}) VALUES ({placeholders})"  # noqa: S608 - collection is validated
            await conn.execute(query, [_encode_value(row[c]) for c in columns])
            await conn.commit()

            logger.info("Created record", extra={"collection": collection, "record_id": row["id"]})
            return await self.get_record(collection=collection, record_id=row["id"])
        except RecordNotFoundError:
            raise
        except Exception as e:
            logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to create record in {collection}: {e}"
            raise DatabaseError(msg) from e

    async def get_record(self, *, collection: str, record_id: str) -> dict[str, Any]:
        """Fetch a single record by ID, raising RecordNotFoundError if not found."""
        try:
            _validate_collection_name(collection)
            conn = await self._get_connection()

            cursor = await conn.execute(f"SELECT * FROM {collection} WHERE id = ?", (record_id,))  # noqa: S608 - collection is validated
            row = await cursor.fetchone()
            columns = [description[0] for description in cursor.description]
        except Exception as e:
            logger.error("get_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
            msg = f"Failed to get record from {collection}: {e}"
            raise DatabaseError(msg) from e

        if row is None:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        return _decode_row(collection, columns, row)

    async def update_record(self, *, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Update a record by ID and return the updated record."""
        if not data:
            msg = "Empty update payload"
            raise ValueError(msg)

        try:
            _validate_collection_name(collection)
            conn = await self._get_connection()

            changes = dict(data)
            changes.pop("id", None)
            if schema.has_column(collection, "updated_at"):
                changes.setdefault("updated_at", datetime.now(UTC).isoformat())

            set_clause = ", ".join(f"{key} = ?" for key in changes)
            values = [_encode_value(v) for v in changes.values()]
            values.append(record_id)

            query = f"UPDATE {collection} SET {set_clause} WHERE id = ?"  # noqa: S608 - collection is validated
            cursor = await conn.execute(query, values)
            await conn.commit()
        except Exception as e:
            logger.error(
                "update_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)}
            )
            msg = f"Failed to update record in {collection}: {e}"
            raise DatabaseError(msg) from e

        if cursor.rowcount == 0:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
        return await self.get_record(collection=collection, record_id=record_id)

    async def delete_record(self, *, collection: str, record_id: str) -> None:
        """Delete a record by ID, raising RecordNotFoundError if not found."""
        try:
            _validate_collection_name(collection)
            conn = await self._get_connection()

            cursor = await conn.execute(f"DELETE FROM {collection} WHERE id = ?", (record_id,))  # noqa: S608 - collection is validated
            await conn.commit()
        except Exception as e:
            logger.error(
                "delete_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)}
            )
            msg = f"Failed to delete record from {collection}: {e}"
            raise DatabaseError(msg) from e

        if cursor.rowcount == 0:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})

    async def _select(
        self, *, collection: str, filter_query: str, sort: str, limit: int | None, offset: int
    ) -> list[dict[str, Any]]:
        try:
            _validate_collection_name(collection)
            conn = await self._get_connection()

            where_clause, params = to_sql(parse_filter(filter_query))
            where_sql = f"WHERE {where_clause}" if where_clause else ""
            query = f"SELECT * FROM {collection} {where_sql} ORDER BY {_order_by(sort)}"  # noqa: S608 - collection is validated
            if limit is not None:
                query += " LIMIT ? OFFSET ?"
                params.extend([limit, offset])

            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            columns = [description[0] for description in cursor.description]
        except Exception as e:
            logger.error("list_records_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to list records from {collection}: {e}"
            raise DatabaseError(msg) from e

        return [_decode_row(collection, columns, row) for row in rows]

    async def list_records(
        self,
        *,
        collection: str,
        page: int = 1,
        per_page: int = 50,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]:
        """List records with optional filtering, sorting, and pagination."""
        records = await self._select(
            collection=collection,
            filter_query=filter_query,
            sort=sort,
            limit=per_page,
            offset=(page - 1) * per_page,
        )
        logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
        return records

    async def list_all_records(
        self,
        *,
        collection: str,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]:
        """List every record matching the filter."""
        return await self._select(collection=collection, filter_query=filter_query, sort=sort, limit=None, offset=0)

    async def get_first_record(self, *, collection: str, filter_query: str) -> dict[str, Any] | None:
        """Return the first record matching the filter, or None."""
        records = await self.list_records(collection=collection, per_page=1, filter_query=filter_query)
        return records[0] if records else None
