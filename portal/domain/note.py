"""Command-center quick notes."""

from enum import StrEnum

from pydantic import Field, model_validator

from portal.domain.base import PortalModel, explicitly_nulled


class NoteColor(StrEnum):
    YELLOW = "yellow"
    BLUE = "blue"
    GREEN = "green"
    PINK = "pink"
    PURPLE = "purple"


class Note(PortalModel):
    """A sticky note on a user's command center."""

    id: str = Field(..., description="Unique note ID")
    user_email: str = Field(..., description="Owner's email address")
    content: str = Field(..., description="Note text")
    color: NoteColor = Field(default=NoteColor.YELLOW, description="Display colour")
    is_pinned: bool = Field(default=False, description="Pinned notes are listed first")
    created_at: str | None = Field(default=None, description="Creation timestamp (ISO format)")
    updated_at: str | None = Field(default=None, description="Last update timestamp (ISO format)")


class NoteCreate(PortalModel):
    content: str = Field(..., min_length=1)
    color: NoteColor = NoteColor.YELLOW
    is_pinned: bool = False


class NoteUpdate(PortalModel):
    """Partial update of a note; unset fields are left unchanged."""

    content: str | None = Field(default=None, min_length=1)
    color: NoteColor | None = None
    is_pinned: bool | None = None

    @model_validator(mode="after")
    def required_fields_not_cleared(self) -> "NoteUpdate":
        cleared = explicitly_nulled(self, ("content", "color", "is_pinned"))
        if cleared:
            msg = f"{', '.join(cleared)} cannot be null"
            raise ValueError(msg)
        return self
