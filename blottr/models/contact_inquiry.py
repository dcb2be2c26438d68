"""Contact inquiry domain model.

An inquiry is a message from a prospective client to an artist (or to the
platform) about a tattoo project.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from blottr.models.user import utcnow


class InquiryStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    REPLIED = "replied"
    CLOSED = "closed"
    SPAM = "spam"


class ProjectType(str, Enum):
    CONSULTATION = "consultation"
    QUOTE = "quote"
    APPOINTMENT = "appointment"
    QUESTION = "question"


class InquirySource(str, Enum):
    WEBSITE = "website"
    QUICK_FORM = "quick_form"
    SOCIAL_MEDIA = "social_media"
    REFERRAL = "referral"


class TattooSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    FULL_SLEEVE = "full-sleeve"
    FULL_BACK = "full-back"


@dataclass
class ContactInquiry:
    """A stored contact request. ``id`` is assigned by the repository."""

    full_name: str
    email: str
    subject: str
    message: str
    project_type: ProjectType
    id: str | None = None
    phone: str | None = None
    budget: str | None = None
    preferred_date: str | None = None
    location: str | None = None
    size: TattooSize | None = None
    placement: str | None = None
    has_existing_tattoos: bool = False
    tattoo_styles: list[str] | None = None
    artist_id: str | None = None
    tattoo_id: str | None = None
    status: InquiryStatus = InquiryStatus.PENDING
    priority: int | None = None
    source: InquirySource = InquirySource.WEBSITE
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.priority is None:
            self.priority = DEFAULT_PRIORITY_BY_PROJECT_TYPE.get(self.project_type, 3)
        self.priority = clamp_priority(self.priority)

    @property
    def is_pending(self) -> bool:
        return self.status == InquiryStatus.PENDING

    @property
    def is_urgent(self) -> bool:
        return (self.priority or 0) >= 8 or self.project_type == ProjectType.APPOINTMENT

    @property
    def priority_label(self) -> str:
        priority = self.priority or 0
        if priority >= 9:
            return "Critique"
        if priority >= 7:
            return "Élevée"
        if priority >= 5:
            return "Normale"
        if priority >= 3:
            return "Faible"
        return "Très faible"


DEFAULT_PRIORITY_BY_PROJECT_TYPE = {
    ProjectType.APPOINTMENT: 8,
    ProjectType.QUOTE: 6,
    ProjectType.CONSULTATION: 5,
}


def clamp_priority(priority: int) -> int:
    return max(1, min(10, priority))
