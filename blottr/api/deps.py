"""FastAPI dependencies resolving per-app services.

Services are built once in the app factory and stored on ``app.state``, so
every app instance (and every test) has its own repositories and counters.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from blottr.adapters.repositories.base import AbstractUserRepository
from blottr.services.auth_use_cases import LoginUserUseCase, RegisterUserUseCase
from blottr.services.contact_inquiry_service import ContactInquiryService
from blottr.services.monitoring_service import MonitoringService


def get_user_repository(request: Request) -> AbstractUserRepository:
    return request.app.state.users


def get_register_user_use_case(
    users: Annotated[AbstractUserRepository, Depends(get_user_repository)],
) -> RegisterUserUseCase:
    return RegisterUserUseCase(users)


def get_login_user_use_case(
    users: Annotated[AbstractUserRepository, Depends(get_user_repository)],
) -> LoginUserUseCase:
    return LoginUserUseCase(users)


def get_contact_inquiry_service(request: Request) -> ContactInquiryService:
    return request.app.state.contact_inquiries


def get_monitoring_service(request: Request) -> MonitoringService:
    return request.app.state.monitoring


def get_client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None
