"""Airtable record store (legacy spreadsheet backend) over the Airtable REST API.

Collections map one-to-one onto Airtable tables of the same name and field
names pass through unchanged, so the base must use the relational column
names. Airtable omits empty fields and unchecked boxes from responses: unchecked
boxes are restored as False, other missing fields fall back to model defaults.
"""

import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from portal.core import schema
from portal.core.config import constants, settings
from portal.core.filters import parse_filter, to_airtable_formula
from portal.core.store import DatabaseError, RecordNotFoundError


logger = logging.getLogger(__name__)


def _flatten(collection: str, record: dict[str, Any]) -> dict[str, Any]:
    """Turn an Airtable ``{id, createdTime, fields}`` object into a flat record."""
    fields = dict(record.get("fields", {}))
    for column in schema.columns_of_type(collection, "BOOLEAN"):
        fields.setdefault(column, False)
    fields.setdefault("created_at", record.get("createdTime"))
    return {"id": record["id"], **fields}


def _encode_fields(data: dict[str, Any]) -> dict[str, Any]:
    fields = {}
    for key, value in data.items():
        if key == "id":
            continue
        fields[key] = value.isoformat() if isinstance(value, datetime) else value
    return fields


def _sort_params(sort: str) -> dict[str, str]:
    params: dict[str, str] = {}
    terms = [t.strip() for t in sort.split(",") if t.strip()]
    for index, term in enumerate(terms):
        descending = term.startswith("-")
        params[f"sort[{index}][field]"] = term[1:] if descending else term
        params[f"sort[{index}][direction]"] = "desc" if descending else "asc"
    return params


class AirtableRecordStore:
    """Record store backed by an Airtable base."""

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        token = settings.require_credential("airtable_personal_token", "Airtable")
        base_id = settings.require_credential("airtable_base_id", "Airtable")
        return httpx.AsyncClient(
            base_url=f"{settings.airtable_api_url}/{base_id}",
            headers={"Authorization": f"Bearer {token}"},
            timeout=constants.API_TIMEOUT_SECONDS,
            transport=self._transport,
        )

    async def init(self) -> None:
        settings.require_credential("airtable_personal_token", "Airtable")
        settings.require_credential("airtable_base_id", "Airtable")
        logger.info("Airtable record store ready", extra={"base_id": settings.airtable_base_id})

    async def close(self) -> None:
        return None

    async def create_record(self, *, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        """Create a record and return it flattened."""
        fields = _encode_fields(data)
        fields.setdefault("created_at", datetime.now(UTC).isoformat())
        try:
            async with self._client() as client:
                response = await client.post(f"/{collection}", json={"fields": fields, "typecast": True})
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to create record in {collection}: {e}"
            raise DatabaseError(msg) from e

        record = _flatten(collection, response.json())
        logger.info("Created record", extra={"collection": collection, "record_id": record["id"]})
        return record

    async def get_record(self, *, collection: str, record_id: str) -> dict[str, Any]:
        """Fetch a record by ID, raising RecordNotFoundError on 404."""
        try:
            async with self._client() as client:
                response = await client.get(f"/{collection}/{record_id}")
        except httpx.HTTPError as e:
            logger.error("get_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
            msg = f"Failed to get record from {collection}: {e}"
            raise DatabaseError(msg) from e

        if response.status_code == httpx.codes.NOT_FOUND:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)
        if response.is_error:
            msg = f"Failed to get record from {collection}: HTTP {response.status_code}"
            raise DatabaseError(msg)

        return _flatten(collection, response.json())

    async def update_record(self, *, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """PATCH the given fields and return the updated record."""
        if not data:
            msg = "Empty update payload"
            raise ValueError(msg)

        try:
            async with self._client() as client:
                response = await client.patch(
                    f"/{collection}/{record_id}", json={"fields": _encode_fields(data), "typecast": True}
                )
        except httpx.HTTPError as e:
            logger.error(
                "update_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)}
            )
            msg = f"Failed to update record in {collection}: {e}"
            raise DatabaseError(msg) from e

        if response.status_code == httpx.codes.NOT_FOUND:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)
        if response.is_error:
            msg = f"Failed to update record in {collection}: HTTP {response.status_code}"
            raise DatabaseError(msg)

        logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
        return _flatten(collection, response.json())

    async def delete_record(self, *, collection: str, record_id: str) -> None:
        """Delete a record, raising RecordNotFoundError on 404."""
        try:
            async with self._client() as client:
                response = await client.delete(f"/{collection}/{record_id}")
        except httpx.HTTPError as e:
            msg = f"Failed to delete record from {collection}: {e}"
            raise DatabaseError(msg) from e

        if response.status_code == httpx.codes.NOT_FOUND:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)
        if response.is_error:
            msg = f"Failed to delete record from {collection}: HTTP {response.status_code}"
            raise DatabaseError(msg)

        logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})

    async def _fetch_pages(
        self,
        *,
        collection: str,
        filter_query: str,
        sort: str,
        page_size: int,
        max_pages: int | None,
    ) -> list[list[dict[str, Any]]]:
        """Follow Airtable's offset cursor, returning each page of flattened records."""
        params: dict[str, str] = {"pageSize": str(min(page_size, constants.AIRTABLE_MAX_PAGE_SIZE))}
        formula = to_airtable_formula(parse_filter(filter_query))
        if formula:
            params["filterByFormula"] = formula
        params.update(_sort_params(sort))

        pages: list[list[dict[str, Any]]] = []
        try:
            async with self._client() as client:
                while True:
                    response = await client.get(f"/{collection}", params=params)
                    response.raise_for_status()
                    body = response.json()
                    pages.append([_flatten(collection, r) for r in body.get("records", [])])

                    offset = body.get("offset")
                    if not offset or (max_pages is not None and len(pages) >= max_pages):
                        break
                    params["offset"] = offset
        except httpx.HTTPError as e:
            logger.error("list_records_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to list records from {collection}: {e}"
            raise DatabaseError(msg) from e

        return pages

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
        pages = await self._fetch_pages(
            collection=collection, filter_query=filter_query, sort=sort, page_size=per_page, max_pages=page
        )
        return pages[page - 1] if len(pages) >= page else []

    async def list_all_records(
        self,
        *,
        collection: str,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]:
        """List every record matching the filter."""
        pages = await self._fetch_pages(
            collection=collection,
            filter_query=filter_query,
            sort=sort,
            page_size=constants.AIRTABLE_MAX_PAGE_SIZE,
            max_pages=None,
        )
        return [record for records in pages for record in records]

    async def get_first_record(self, *, collection: str, filter_query: str) -> dict[str, Any] | None:
        """Return the first record matching the filter, or None."""
        records = await self.list_records(collection=collection, per_page=1, filter_query=filter_query)
        return records[0] if records else None
