"""Pydantic schemas for contact inquiries.

Field limits mirror what the web forms enforce client-side, so anything
rejected here was tampered with or sent by a script.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field

from blottr.models.contact_inquiry import (
    InquiryStatus,
    ProjectType,
    TattooSize,
)
from blottr.schemas.common import CamelModel

# French phone numbers: +33 / 0033 / 0 prefix followed by nine digits
FRENCH_PHONE_PATTERN = r"^(?:(?:\+|00)33|0)\s*[1-9](?:[\s.-]*\d{2}){4}$"


class ContactInquiryRequest(CamelModel):
    """Full contact form submitted to an artist."""

    full_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    subject: str = Field(..., min_length=5, max_length=200)
    message: str = Field(..., min_length=10, max_length=2000)
    project_type: ProjectType

    phone: str | None = Field(None, pattern=FRENCH_PHONE_PATTERN)

    budget: str | None = Field(None, max_length=50)
    preferred_date: str | None = Field(None, max_length=100)
    location: str | None = Field(None, max_length=200)
    size: TattooSize | None = None
    placement: str | None = Field(None, max_length=100)
    has_existing_tattoos: bool | None = None

    tattoo_styles: list[str] | None = None

    artist_id: UUID | None = None
    tattoo_id: UUID | None = None

    # Files are uploaded separately; only the count is declared here
    reference_image_count: int | None = Field(None, ge=0, le=5)


class QuickInquiryRequest(CamelModel):
    """Short message form shown on artist and tattoo cards."""

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    message: str = Field(..., min_length=10, max_length=1000)
    artist_id: UUID | None = None
    tattoo_id: UUID | None = None


class InquiryStatusUpdateRequest(CamelModel):
    status: InquiryStatus
    priority: int | None = Field(None, ge=1, le=10)


class InquiryCreatedResponse(CamelModel):
    success: bool = True
    message: str
    inquiry_id: str


class InquirySummary(CamelModel):
    id: str
    status: InquiryStatus
    created_at: datetime
    subject: str
    full_name: str
    email: str
    project_type: ProjectType
    priority: int
    priority_label: str
    is_urgent: bool


class InquiryResponse(CamelModel):
    success: bool = True
    inquiry: InquirySummary
