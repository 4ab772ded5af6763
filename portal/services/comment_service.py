"""Comments on request records, including public replies from submitters."""

import logging
from typing import Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from portal.core import schema
from portal.core.config import constants, settings
from portal.core.errors import OwnershipError
from portal.core.filters import sanitize_param
from portal.core.logging import span
from portal.core.store import RecordStore
from portal.domain.comment import Comment, CommentCreate, PublicCommentCreate
from portal.domain.requests import RequestType
from portal.interface.email_templates import render_email
from portal.interface.graph_mailer import Mailer, send_or_raise


logger = logging.getLogger(__name__)

_TOKEN_SALT = "public-comment"


class InvalidReplyTokenError(ValueError):
    """The public reply link is malformed, tampered with, or expired."""


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(settings.secret_key, salt=_TOKEN_SALT)


def make_reply_token(*, record_id: str, table: RequestType) -> str:
    """Sign a link token that lets the submitter reply to one record."""
    return _serializer().dumps({"recordId": record_id, "table": str(table)})


def read_reply_token(token: str) -> tuple[str, RequestType]:
    """Decode a reply token into ``(record_id, request_type)``.

    Raises:
        InvalidReplyTokenError: If the signature is bad or the link has expired
    """
    try:
        payload = _serializer().loads(token, max_age=constants.PUBLIC_COMMENT_LINK_MAX_AGE_SECONDS)
        return payload["recordId"], RequestType(payload["table"])
    except (BadSignature, KeyError, TypeError, ValueError) as e:
        raise InvalidReplyTokenError("Invalid or expired reply link") from e


def _record_title(record: dict[str, Any]) -> str:
    for key in ("event_name", "page_to_update", "project_type", "announcement_body", "sms_message"):
        value = record.get(key)
        if value:
            return str(value)[:80]
    return "your request"


async def list_comments(*, store: RecordStore, record_id: str, table: RequestType) -> list[Comment]:
    """Comments on one record, oldest first."""
    records = await store.list_all_records(
        collection=schema.COMMENTS,
        filter_query=f'record_id = "{sanitize_param(record_id)}" && table_name = "{table}"',
        sort="created_at",
    )
    return [Comment(**r) for r in records]


async def add_comment(
    *, store: RecordStore, mailer: Mailer, comment: CommentCreate, admin_email: str
) -> Comment:
    """Store a staff comment; public ones are emailed to the requester.

    Raises:
        RecordNotFoundError: If the commented record does not exist
        DownstreamServiceError: If the requester notification cannot be sent
    """
    with span("comment_service.add_comment"):
        record = await store.get_record(collection=comment.table.collection, record_id=comment.record_id)
        created = await store.create_record(
            collection=schema.COMMENTS,
            data={
                "record_id": comment.record_id,
                "table_name": str(comment.table),
                "message": comment.message,
                "is_public": comment.is_public,
                "admin_user": admin_email,
            },
        )
        logger.info(
            "Comment added",
            extra={"record_id": comment.record_id, "table": str(comment.table), "public": comment.is_public},
        )

        if comment.is_public and record.get("email"):
            token = make_reply_token(record_id=comment.record_id, table=comment.table)
            html = render_email(
                "comment_notification.html",
                request_label=comment.table.label,
                name=record.get("name", ""),
                title=_record_title(record),
                message=comment.message,
                reply_url=f"{settings.portal_base_url}/comments/reply?token={token}",
            )
            await send_or_raise(
                mailer,
                to=record["email"],
                subject=f"New comment on your {comment.table.label}",
                html=html,
            )

        return Comment(**created)


async def add_public_reply(*, store: RecordStore, mailer: Mailer, reply: PublicCommentCreate) -> Comment:
    """Store a reply from the original submitter and notify the staff inbox.

    Raises:
        InvalidReplyTokenError: If the token is invalid or expired
        RecordNotFoundError: If the record no longer exists
        OwnershipError: If the email does not match the submitter's
        DownstreamServiceError: If the staff notification cannot be sent
    """
    with span("comment_service.add_public_reply"):
        record_id, table = read_reply_token(reply.token)
        record = await store.get_record(collection=table.collection, record_id=record_id)

        if str(record.get("email", "")).strip().lower() != reply.email.lower():
            logger.warning("Public reply email mismatch", extra={"record_id": record_id})
            raise OwnershipError("Email does not match the original submitter")

        created = await store.create_record(
            collection=schema.COMMENTS,
            data={
                "record_id": record_id,
                "table_name": str(table),
                "message": reply.message,
                "is_public": True,
                "public_name": reply.name,
                "public_email": reply.email,
            },
        )
        logger.info("Public reply added", extra={"record_id": record_id, "table": str(table)})

        inbox = settings.summary_recipient_email or settings.mailbox_to_send_from
        if inbox:
            html = render_email(
                "public_reply.html",
                title=_record_title(record),
                name=reply.name,
                email=reply.email,
                request_label=table.label,
                message=reply.message,
                request_type=str(table),
                record_id=record_id,
            )
            await send_or_raise(mailer, to=inbox, subject=f"Reply from {reply.name} on {table.label}", html=html)
        else:
            logger.warning("No staff inbox configured for public replies", extra={"record_id": record_id})

        return Comment(**created)
