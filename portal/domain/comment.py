"""Comments attached to request records."""

from pydantic import Field, field_validator

from portal.domain.base import PortalModel
from portal.domain.requests import RequestType, validate_email_address


class Comment(PortalModel):
    """A note on a request record, written by staff or by the submitter."""

    id: str
    record_id: str
    table_name: RequestType
    message: str
    is_public: bool = False
    public_name: str | None = None
    public_email: str | None = None
    admin_user: str | None = None
    created_at: str | None = None


class CommentCreate(PortalModel):
    """Staff comment; public comments are shared with the requester."""

    record_id: str = Field(..., min_length=1)
    table: RequestType
    message: str = Field(..., min_length=1)
    is_public: bool = False


class PublicCommentCreate(PortalModel):
    """Reply posted by the original submitter through a tokened link."""

    token: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    email: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate the replier's email address."""
        return validate_email_address(v)
