"""AI-assisted social media drafts and the per-platform writing rules."""

from dataclasses import dataclass
from enum import StrEnum

from pydantic import Field, model_validator

from portal.domain.base import PortalModel, explicitly_nulled


class Platform(StrEnum):
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
    X = "x"
    LINKEDIN = "linkedin"
    GMB = "gmb"
    THREADS = "threads"
    TIKTOK = "tiktok"


class ContentType(StrEnum):
    EVENT_PROMO = "event_promo"
    EVENT_RECAP = "event_recap"
    INSPIRATIONAL = "inspirational"
    SERMON_CLIP = "sermon_clip"
    HOMILY_CLIP = "homily_clip"
    MINISTRY_SPOTLIGHT = "ministry_spotlight"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class ContentStatus(StrEnum):
    DRAFT = "draft"
    POSTED = "posted"
    ARCHIVED = "archived"


@dataclass(frozen=True)
class PlatformProfile:
    """How generated copy should be shaped for one platform."""

    max_length: int
    hashtag_count: int
    tone: str


PLATFORM_PROFILES: dict[Platform, PlatformProfile] = {
    Platform.FACEBOOK: PlatformProfile(500, 3, "warm and community-focused"),
    Platform.INSTAGRAM: PlatformProfile(2000, 15, "visual and engaging with emojis"),
    Platform.X: PlatformProfile(250, 3, "concise and punchy"),
    Platform.LINKEDIN: PlatformProfile(700, 5, "professional yet warm"),
    Platform.THREADS: PlatformProfile(450, 5, "conversational and authentic"),
    Platform.TIKTOK: PlatformProfile(300, 5, "trendy with a hook"),
    Platform.GMB: PlatformProfile(750, 0, "informative and local SEO focused"),
}

CONTENT_TYPE_BRIEFS: dict[ContentType, str] = {
    ContentType.EVENT_PROMO: (
        "Create a promotional post for an upcoming parish event. Make it exciting and encourage participation."
    ),
    ContentType.EVENT_RECAP: (
        "Create a post celebrating a recent parish event. Highlight community togetherness and memorable moments."
    ),
    ContentType.INSPIRATIONAL: (
        "Create an inspirational faith-based post. Scripture, a saint quote, or encouragement for daily life all fit."
    ),
    ContentType.SERMON_CLIP: (
        "Create a post to accompany a video clip from Sunday Mass. Include a teaser of the message."
    ),
    ContentType.HOMILY_CLIP: (
        "Create a post to accompany a daily Mass homily clip. Keep it reflective and accessible."
    ),
    ContentType.MINISTRY_SPOTLIGHT: (
        "Create a post highlighting a parish ministry or volunteer group. Celebrate their service."
    ),
}


class SocialContent(PortalModel):
    """A stored social media post draft."""

    id: str
    user_email: str
    platform: Platform
    content_type: ContentType
    content: str
    hashtags: str | None = None
    suggested_date: str | None = None
    source_record_id: str | None = None
    source_record_type: str | None = None
    status: ContentStatus = ContentStatus.DRAFT
    created_at: str | None = None
    updated_at: str | None = None


class SocialContentCreate(PortalModel):
    platform: Platform
    content_type: ContentType
    content: str = Field(..., min_length=1)
    hashtags: str | None = None
    suggested_date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    source_record_id: str | None = None
    source_record_type: str | None = None


class SocialContentUpdate(PortalModel):
    """Partial update of a draft; unset fields are left unchanged."""

    content: str | None = Field(default=None, min_length=1)
    hashtags: str | None = None
    suggested_date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    status: ContentStatus | None = None

    @model_validator(mode="after")
    def required_fields_not_cleared(self) -> "SocialContentUpdate":
        cleared = explicitly_nulled(self, ("content", "status"))
        if cleared:
            msg = f"{', '.join(cleared)} cannot be null"
            raise ValueError(msg)
        return self


class SocialGenerateRequest(PortalModel):
    """Input for an AI-written draft."""

    platform: Platform = Platform.INSTAGRAM
    content_type: ContentType = ContentType.INSPIRATIONAL
    source_content: str | None = None
    event_details: str | None = None
    suggested_date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    source_record_id: str | None = None
    source_record_type: str | None = None
