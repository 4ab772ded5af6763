"""Parish ministry catalogue and approval routing."""

from pydantic import Field

from portal.core.config import settings
from portal.domain.base import PortalModel


ADULT_DISCIPLESHIP = "adult-discipleship"


class Ministry(PortalModel):
    """A parish ministry that can submit announcements."""

    id: str = Field(..., description="Stable slug")
    name: str = Field(..., description="Display name")
    requires_approval: bool = Field(default=False, description="Announcements need coordinator approval")
    approval_coordinator: str | None = Field(default=None, description="Coordinator key when approval is required")
    description: str | None = None


class ApprovalCoordinator(PortalModel):
    """Person who approves announcements for a group of ministries."""

    name: str
    email: str | None


def _approval_ministry(slug: str, name: str, description: str) -> Ministry:
    return Ministry(
        id=slug,
        name=name,
        requires_approval=True,
        approval_coordinator=ADULT_DISCIPLESHIP,
        description=description,
    )


MINISTRIES: list[Ministry] = [
    _approval_ministry("adult-bible-study", "Adult Bible Study", "Weekly adult Bible study groups"),
    _approval_ministry("adult-faith-formation", "Adult Faith Formation", "Adult faith formation programs"),
    _approval_ministry("adult-discipleship-retreat", "Adult Discipleship Retreat", "Retreats for adults"),
    _approval_ministry("mens-ministry", "Men's Ministry", "Men's fellowship and formation"),
    _approval_ministry("womens-ministry", "Women's Ministry", "Women's fellowship and formation"),
    _approval_ministry("small-groups", "Small Groups", "Adult small group communities"),
    _approval_ministry("adult-education", "Adult Education", "Classes and speaker series for adults"),
    Ministry(id="youth-ministry", name="Youth Ministry", description="Middle and high school programs"),
    Ministry(id="childrens-ministry", name="Children's Ministry", description="Programs for children"),
    Ministry(id="music-ministry", name="Music Ministry", description="Choirs and liturgical music"),
    Ministry(id="outreach-ministry", name="Outreach Ministry", description="Community outreach"),
    Ministry(id="missions", name="Missions", description="Mission trips and partnerships"),
    Ministry(id="hospitality", name="Hospitality", description="Welcome and hospitality teams"),
    Ministry(id="prayer-ministry", name="Prayer Ministry", description="Prayer groups and chains"),
    Ministry(id="facilities", name="Facilities", description="Buildings and grounds"),
    Ministry(id="stewardship", name="Stewardship", description="Time, talent, and treasure"),
    Ministry(id="senior-ministry", name="Senior Ministry", description="Programs for seniors"),
    Ministry(id="communications", name="Communications", description="Parish communications office"),
    Ministry(id="pastoral-care", name="Pastoral Care", description="Visits to the sick and homebound"),
]


def get_approval_coordinator(coordinator_id: str) -> ApprovalCoordinator | None:
    """Resolve a coordinator key to its name and configured email."""
    if coordinator_id == ADULT_DISCIPLESHIP:
        return ApprovalCoordinator(
            name="Coordinator of Adult Discipleship",
            email=settings.adult_discipleship_coordinator_email,
        )
    return None


def find_ministry(name: str | None) -> Ministry | None:
    """Case-insensitive lookup by ministry name."""
    if not name:
        return None
    wanted = name.strip().lower()
    return next((m for m in MINISTRIES if m.name.lower() == wanted), None)


def requires_approval(name: str | None) -> bool:
    """True when announcements from this ministry must be approved before publishing."""
    ministry = find_ministry(name)
    return ministry is not None and ministry.requires_approval


def search_ministries(query: str) -> list[Ministry]:
    """Substring search over names and descriptions, prefix matches first."""
    if not query:
        return list(MINISTRIES)

    lowered = query.lower()
    found = [
        m for m in MINISTRIES if lowered in m.name.lower() or (m.description and lowered in m.description.lower())
    ]
    return sorted(found, key=lambda m: (not m.name.lower().startswith(lowered), m.name))
