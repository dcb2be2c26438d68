"""Contact inquiry workflows: submit, look up and triage inquiries."""

from __future__ import annotations

import logging

from blottr.adapters.repositories.base import AbstractContactInquiryRepository
from blottr.core.errors import NotFoundAppError
from blottr.core.messages import INQUIRY_ERRORS
from blottr.models.contact_inquiry import (
    ContactInquiry,
    InquirySource,
    InquiryStatus,
    ProjectType,
    clamp_priority,
)
from blottr.schemas.contact_inquiry import (
    ContactInquiryRequest,
    InquiryStatusUpdateRequest,
    QuickInquiryRequest,
)

logger = logging.getLogger(__name__)

QUICK_INQUIRY_SUBJECT = "Demande rapide"


class ContactInquiryService:
    """Creates and updates inquiries on behalf of the HTTP layer."""

    def __init__(self, inquiries: AbstractContactInquiryRepository) -> None:
        self._inquiries = inquiries

    def create(
        self,
        payload: ContactInquiryRequest,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> ContactInquiry:
        """Store a full contact form submission as a pending website inquiry."""

        inquiry = self._inquiries.add(
            ContactInquiry(
                full_name=payload.full_name.strip(),
                email=str(payload.email),
                subject=payload.subject.strip(),
                message=payload.message.strip(),
                project_type=payload.project_type,
                phone=payload.phone,
                budget=payload.budget,
                preferred_date=payload.preferred_date,
                location=payload.location,
                size=payload.size,
                placement=payload.placement,
                has_existing_tattoos=bool(payload.has_existing_tattoos),
                tattoo_styles=payload.tattoo_styles,
                artist_id=str(payload.artist_id) if payload.artist_id else None,
                tattoo_id=str(payload.tattoo_id) if payload.tattoo_id else None,
                status=InquiryStatus.PENDING,
                source=InquirySource.WEBSITE,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )

        logger.info(
            "inquiry.created",
            extra={
                "inquiry_id": inquiry.id,
                "project_type": inquiry.project_type.value,
                "source": inquiry.source.value,
                "priority": inquiry.priority,
            },
        )
        return inquiry

    def create_quick(
        self,
        payload: QuickInquiryRequest,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> ContactInquiry:
        """Store a quick-form message as a general question."""

        inquiry = self._inquiries.add(
            ContactInquiry(
                full_name=payload.name.strip(),
                email=str(payload.email),
                subject=QUICK_INQUIRY_SUBJECT,
                message=payload.message.strip(),
                project_type=ProjectType.QUESTION,
                artist_id=str(payload.artist_id) if payload.artist_id else None,
                tattoo_id=str(payload.tattoo_id) if payload.tattoo_id else None,
                status=InquiryStatus.PENDING,
                source=InquirySource.QUICK_FORM,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )

        logger.info(
            "inquiry.created",
            extra={"inquiry_id": inquiry.id, "source": inquiry.source.value},
        )
        return inquiry

    def get(self, inquiry_id: str) -> ContactInquiry:
        """Fetch an inquiry.

        Raises:
            NotFoundAppError: If no inquiry has this id.
        """

        inquiry = self._inquiries.get(inquiry_id)
        if inquiry is None:
            raise NotFoundAppError(
                code="contact_inquiry_not_found",
                message=INQUIRY_ERRORS["NOT_FOUND"].format(inquiry_id=inquiry_id),
                details={"inquiry_id": inquiry_id},
            )
        return inquiry

    def update_status(self, inquiry_id: str, update: InquiryStatusUpdateRequest) -> ContactInquiry:
        inquiry = self.get(inquiry_id)
        previous = inquiry.status

        inquiry.status = update.status
        if update.priority is not None:
            inquiry.priority = clamp_priority(update.priority)
        inquiry = self._inquiries.save(inquiry)

        logger.info(
            "inquiry.status_updated",
            extra={
                "inquiry_id": inquiry.id,
                "from_status": previous.value,
                "to_status": inquiry.status.value,
                "priority": inquiry.priority,
            },
        )
        return inquiry
