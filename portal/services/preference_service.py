"""User preference lookups and updates."""

import logging

from portal.core import schema
from portal.core.filters import sanitize_param
from portal.core.logging import span
from portal.core.store import RecordStore
from portal.domain.preferences import UserPreferences, UserPreferencesUpdate


logger = logging.getLogger(__name__)


async def get_preferences(*, store: RecordStore, user_email: str) -> UserPreferences:
    """Return a user's preferences, creating the default row on first access."""
    with span("preference_service.get_preferences"):
        record = await store.get_first_record(
            collection=schema.USER_PREFERENCES,
            filter_query=f'user_email = "{sanitize_param(user_email)}"',
        )
        if record is not None:
            return UserPreferences.model_validate(record)

        defaults = UserPreferences(user_email=user_email).model_dump(exclude={"id"})
        created = await store.create_record(collection=schema.USER_PREFERENCES, data=defaults)
        logger.info("Created default preferences", extra={"user_email": user_email})
        return UserPreferences.model_validate(created)


async def update_preferences(
    *,
    store: RecordStore,
    user_email: str,
    changes: UserPreferencesUpdate,
) -> UserPreferences:
    """Apply a partial update to a user's preferences."""
    with span("preference_service.update_preferences"):
        current = await get_preferences(store=store, user_email=user_email)
        payload = changes.model_dump(exclude_unset=True)
        if not payload or current.id is None:
            return current

        record = await store.update_record(collection=schema.USER_PREFERENCES, record_id=current.id, data=payload)
        logger.info("Updated preferences", extra={"user_email": user_email, "fields": sorted(payload)})
        return UserPreferences.model_validate(record)


async def get_users_with_digest_enabled(*, store: RecordStore) -> list[UserPreferences]:
    """Everyone who has opted into the daily digest."""
    with span("preference_service.get_users_with_digest_enabled"):
        records = await store.list_all_records(
            collection=schema.USER_PREFERENCES,
            filter_query="daily_digest_enabled = true",
            sort="user_email",
        )
        return [UserPreferences.model_validate(r) for r in records]
