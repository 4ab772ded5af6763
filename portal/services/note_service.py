"""Command-center notes owned by one user."""

import logging
from datetime import UTC, datetime

from portal.core import schema
from portal.core.errors import OwnershipError
from portal.core.filters import sanitize_param
from portal.core.logging import span
from portal.core.store import RecordStore
from portal.domain.note import Note, NoteCreate, NoteUpdate


logger = logging.getLogger(__name__)


def _owner_filter(user_email: str) -> str:
    return f'user_email = "{sanitize_param(user_email)}"'


async def list_notes(*, store: RecordStore, user_email: str, pinned_only: bool = False) -> list[Note]:
    """A user's notes, pinned first, then most recently edited."""
    with span("note_service.list_notes"):
        filter_query = _owner_filter(user_email)
        if pinned_only:
            filter_query += " && is_pinned = true"
        records = await store.list_all_records(
            collection=schema.NOTES, filter_query=filter_query, sort="-is_pinned,-updated_at"
        )
        return [Note.model_validate(r) for r in records]


async def get_owned_note(*, store: RecordStore, user_email: str, note_id: str) -> Note:
    """Fetch a note and verify the caller owns it.

    Raises:
        RecordNotFoundError: If the note does not exist
        OwnershipError: If the note belongs to someone else
    """
    note = Note.model_validate(await store.get_record(collection=schema.NOTES, record_id=note_id))
    if note.user_email != user_email:
        logger.warning("Note ownership mismatch", extra={"note_id": note_id, "caller": user_email})
        msg = f"Note {note_id} does not belong to {user_email}"
        raise OwnershipError(msg)
    return note


async def create_note(*, store: RecordStore, user_email: str, data: NoteCreate) -> Note:
    with span("note_service.create_note"):
        record = await store.create_record(
            collection=schema.NOTES,
            data={
                **data.model_dump(mode="json"),
                "user_email": user_email,
                "updated_at": datetime.now(UTC).isoformat(),
            },
        )
        logger.info("Created note", extra={"note_id": record["id"], "user_email": user_email})
        return Note.model_validate(record)


async def update_note(*, store: RecordStore, user_email: str, note_id: str, changes: NoteUpdate) -> Note:
    """Apply a partial update to a note the caller owns."""
    with span("note_service.update_note"):
        current = await get_owned_note(store=store, user_email=user_email, note_id=note_id)
        payload = changes.model_dump(mode="json", exclude_unset=True)
        if not payload:
            return current

        payload["updated_at"] = datetime.now(UTC).isoformat()
        record = await store.update_record(collection=schema.NOTES, record_id=note_id, data=payload)
        logger.info("Updated note", extra={"note_id": note_id, "fields": sorted(payload)})
        return Note.model_validate(record)


async def toggle_pin(*, store: RecordStore, user_email: str, note_id: str) -> Note:
    """Flip a note between pinned and unpinned."""
    with span("note_service.toggle_pin"):
        current = await get_owned_note(store=store, user_email=user_email, note_id=note_id)
        record = await store.update_record(
            collection=schema.NOTES,
            record_id=note_id,
            data={"is_pinned": not current.is_pinned, "updated_at": datetime.now(UTC).isoformat()},
        )
        logger.info("Toggled note pin", extra={"note_id": note_id, "pinned": not current.is_pinned})
        return Note.model_validate(record)


async def delete_note(*, store: RecordStore, user_email: str, note_id: str) -> None:
    with span("note_service.delete_note"):
        await get_owned_note(store=store, user_email=user_email, note_id=note_id)
        await store.delete_record(collection=schema.NOTES, record_id=note_id)
        logger.info("Deleted note", extra={"note_id": note_id, "user_email": user_email})
