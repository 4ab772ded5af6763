"""Social media drafts: storage, editing, and AI generation."""

import logging
import re

from pydantic_ai import Agent

from portal.agents.social_agent import get_social_agent
from portal.core import schema
from portal.core.errors import DownstreamServiceError, OwnershipError
from portal.core.filters import sanitize_param
from portal.core.logging import span
from portal.core.store import RecordStore
from portal.domain.social import (
    CONTENT_TYPE_BRIEFS,
    PLATFORM_PROFILES,
    ContentStatus,
    ContentType,
    Platform,
    SocialContent,
    SocialContentCreate,
    SocialContentUpdate,
    SocialGenerateRequest,
)


logger = logging.getLogger(__name__)

_HASHTAG_RE = re.compile(r"#\w+")


async def list_content(
    *,
    store: RecordStore,
    user_email: str,
    platform: Platform | None = None,
    content_type: ContentType | None = None,
    status: ContentStatus | None = None,
    limit: int | None = None,
) -> list[SocialContent]:
    """A user's drafts, newest first, optionally narrowed by platform, type, or status."""
    with span("social_service.list_content"):
        conditions = [f'user_email = "{sanitize_param(user_email)}"']
        if platform:
            conditions.append(f'platform = "{platform}"')
        if content_type:
            conditions.append(f'content_type = "{content_type}"')
        if status:
            conditions.append(f'status = "{status}"')

        if limit:
            records = await store.list_records(
                collection=schema.SOCIAL_CONTENT,
                per_page=limit,
                filter_query=" && ".join(conditions),
                sort="-created_at",
            )
        else:
            records = await store.list_all_records(
                collection=schema.SOCIAL_CONTENT, filter_query=" && ".join(conditions), sort="-created_at"
            )
        return [SocialContent.model_validate(r) for r in records]


async def get_owned_content(*, store: RecordStore, user_email: str, content_id: str) -> SocialContent:
    """Fetch a draft and verify the caller owns it.

    Raises:
        RecordNotFoundError: If the draft does not exist
        OwnershipError: If the draft belongs to someone else
    """
    content = SocialContent.model_validate(
        await store.get_record(collection=schema.SOCIAL_CONTENT, record_id=content_id)
    )
    if content.user_email != user_email:
        logger.warning("Social content ownership mismatch", extra={"content_id": content_id, "caller": user_email})
        msg = f"Content {content_id} does not belong to {user_email}"
        raise OwnershipError(msg)
    return content


async def create_content(*, store: RecordStore, user_email: str, data: SocialContentCreate) -> SocialContent:
    """Store a new draft."""
    with span("social_service.create_content"):
        record = await store.create_record(
            collection=schema.SOCIAL_CONTENT,
            data={**data.model_dump(mode="json"), "user_email": user_email, "status": str(ContentStatus.DRAFT)},
        )
        logger.info(
            "Created social content",
            extra={"content_id": record["id"], "platform": str(data.platform), "user_email": user_email},
        )
        return SocialContent.model_validate(record)


async def update_content(
    *, store: RecordStore, user_email: str, content_id: str, changes: SocialContentUpdate
) -> SocialContent:
    """Edit a draft or move it to posted or archived."""
    with span("social_service.update_content"):
        current = await get_owned_content(store=store, user_email=user_email, content_id=content_id)
        payload = changes.model_dump(mode="json", exclude_unset=True)
        if not payload:
            return current

        record = await store.update_record(collection=schema.SOCIAL_CONTENT, record_id=content_id, data=payload)
        logger.info("Updated social content", extra={"content_id": content_id, "fields": sorted(payload)})
        return SocialContent.model_validate(record)


async def delete_content(*, store: RecordStore, user_email: str, content_id: str) -> None:
    with span("social_service.delete_content"):
        await get_owned_content(store=store, user_email=user_email, content_id=content_id)
        await store.delete_record(collection=schema.SOCIAL_CONTENT, record_id=content_id)
        logger.info("Deleted social content", extra={"content_id": content_id, "user_email": user_email})


def build_generation_prompt(request: SocialGenerateRequest) -> str:
    """Prompt describing the platform rules, the content brief, and any source material."""
    profile = PLATFORM_PROFILES[request.platform]
    lines = [
        f"Platform: {request.platform.upper()}",
        f"- Maximum length: {profile.max_length} characters for the main text, not counting hashtags",
        f"- Hashtags: include {profile.hashtag_count} relevant hashtags",
        f"- Tone: {profile.tone}",
        "",
        f"Content type: {request.content_type.label}",
        CONTENT_TYPE_BRIEFS[request.content_type],
        "",
    ]
    if request.source_content:
        lines.extend([f"Based on this source material, create a {request.platform} post:", "", request.source_content])
    else:
        lines.append(f"Create an original {request.content_type.label} post for {request.platform}.")
    if request.event_details:
        lines.extend(["", "Event details:", request.event_details])
    return "\n".join(lines)


def split_hashtags(text: str) -> tuple[str, str | None]:
    """Separate generated copy into ``(body, hashtags)``."""
    tags = _HASHTAG_RE.findall(text)
    body = _HASHTAG_RE.sub("", text).strip()
    return body, " ".join(tags) or None


async def generate_content(
    *,
    store: RecordStore,
    user_email: str,
    request: SocialGenerateRequest,
    agent: Agent[None, str] | None = None,
) -> SocialContent:
    """Ask the AI agent for a post and save it as a draft.

    Raises:
        DownstreamServiceError: If the agent call fails or returns no text
    """
    with span("social_service.generate_content"):
        try:
            social_agent = agent or get_social_agent()
            result = await social_agent.run(build_generation_prompt(request))
        except Exception as e:
            logger.error(
                "Social content agent failed",
                extra={"error": str(e), "platform": str(request.platform), "content_type": str(request.content_type)},
            )
            raise DownstreamServiceError("AI content generation", str(e)) from e

        body, hashtags = split_hashtags(result.output)
        if not body:
            raise DownstreamServiceError("AI content generation", "No text content generated")

        return await create_content(
            store=store,
            user_email=user_email,
            data=SocialContentCreate(
                platform=request.platform,
                content_type=request.content_type,
                content=body,
                hashtags=hashtags,
                suggested_date=request.suggested_date,
                source_record_id=request.source_record_id,
                source_record_type=request.source_record_type,
            ),
        )
