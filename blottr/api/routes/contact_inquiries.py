from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from blottr.api.deps import get_client_ip, get_contact_inquiry_service
from blottr.core.messages import SUCCESS_MESSAGES
from blottr.core.rate_limit import RateLimitedRoute, rate_limit
from blottr.core.security import require_staff_api_key
from blottr.models.contact_inquiry import ContactInquiry
from blottr.schemas.contact_inquiry import (
    ContactInquiryRequest,
    InquiryCreatedResponse,
    InquiryResponse,
    InquiryStatusUpdateRequest,
    InquirySummary,
    QuickInquiryRequest,
)
from blottr.services.contact_inquiry_service import ContactInquiryService

router = APIRouter(
    prefix="/api", tags=["Contact inquiries"], route_class=RateLimitedRoute
)

InquiryServiceDep = Annotated[ContactInquiryService, Depends(get_contact_inquiry_service)]


def _summary(inquiry: ContactInquiry) -> InquirySummary:
    return InquirySummary(
        id=inquiry.id,
        status=inquiry.status,
        created_at=inquiry.created_at,
        subject=inquiry.subject,
        full_name=inquiry.full_name,
        email=inquiry.email,
        project_type=inquiry.project_type,
        priority=inquiry.priority,
        priority_label=inquiry.priority_label,
        is_urgent=inquiry.is_urgent,
    )


@router.post(
    "/contact-inquiries",
    status_code=status.HTTP_201_CREATED,
    response_model=InquiryCreatedResponse,
    dependencies=[Depends(rate_limit("5", "3600000"))],
)
async def create_inquiry(
    payload: ContactInquiryRequest,
    request: Request,
    service: InquiryServiceDep,
) -> InquiryCreatedResponse:
    """Submit the full contact form to an artist."""
    inquiry = service.create(
        payload,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return InquiryCreatedResponse(
        message=SUCCESS_MESSAGES["INQUIRY_CREATED"],
        inquiry_id=inquiry.id,
    )


@router.post(
    "/contact-inquiries/quick",
    status_code=status.HTTP_201_CREATED,
    response_model=InquiryCreatedResponse,
    dependencies=[Depends(rate_limit("10", "3600000"))],
)
async def create_quick_inquiry(
    payload: QuickInquiryRequest,
    request: Request,
    service: InquiryServiceDep,
) -> InquiryCreatedResponse:
    """Submit the short message form."""
    inquiry = service.create_quick(
        payload,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return InquiryCreatedResponse(
        message=SUCCESS_MESSAGES["QUICK_INQUIRY_CREATED"],
        inquiry_id=inquiry.id,
    )


@router.get("/contact-inquiries/{inquiry_id}", response_model=InquiryResponse)
async def get_inquiry(inquiry_id: str, service: InquiryServiceDep) -> InquiryResponse:
    """Fetch an inquiry for the confirmation page.

    Raises:
        NotFoundAppError: 404 when the inquiry does not exist.
    """
    return InquiryResponse(inquiry=_summary(service.get(inquiry_id)))


@router.patch(
    "/contact-inquiries/{inquiry_id}/status",
    response_model=InquiryResponse,
    dependencies=[Depends(require_staff_api_key)],
)
async def update_inquiry_status(
    inquiry_id: str,
    payload: InquiryStatusUpdateRequest,
    service: InquiryServiceDep,
) -> InquiryResponse:
    """Triage an inquiry (staff only, X-API-Key required).

    Raises:
        AuthenticationAppError: 401 without a valid staff key.
        NotFoundAppError: 404 when the inquiry does not exist.
    """
    return InquiryResponse(inquiry=_summary(service.update_status(inquiry_id, payload)))
