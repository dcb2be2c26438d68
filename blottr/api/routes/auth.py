from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from blottr.api.deps import get_login_user_use_case, get_register_user_use_case
from blottr.core.messages import SUCCESS_MESSAGES
from blottr.core.rate_limit import RateLimitedRoute, rate_limit
from blottr.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserSummary
from blottr.services.auth_use_cases import (
    LoginUserInput,
    LoginUserUseCase,
    RegisterUserInput,
    RegisterUserUseCase,
    role_name,
)

router = APIRouter(prefix="/api", tags=["Auth"], route_class=RateLimitedRoute)


@router.post(
    "/auth/register",
    status_code=status.HTTP_201_CREATED,
    response_model=AuthResponse,
    dependencies=[Depends(rate_limit("5", "900000"))],
)
async def register(
    payload: RegisterRequest,
    use_case: Annotated[RegisterUserUseCase, Depends(get_register_user_use_case)],
) -> AuthResponse:
    """Create a client or artist account.

    Limited to 5 attempts per 15 minutes per client address.

    Raises:
        ConflictAppError: 409 when the email is already registered.
    """
    result = await use_case.execute(
        RegisterUserInput(email=str(payload.email), password=payload.password, role=payload.role)
    )
    return AuthResponse(
        message=SUCCESS_MESSAGES["REGISTRATION_SUCCESS"],
        user=UserSummary(user_id=result.user_id, email=result.email, role=role_name(result.role)),
    )


# Only failed attempts count, so a user logging in normally is never throttled.
@router.post(
    "/auth/login",
    response_model=AuthResponse,
    dependencies=[Depends(rate_limit("10", "900000", skip_successful_requests=True))],
)
async def login(
    payload: LoginRequest,
    use_case: Annotated[LoginUserUseCase, Depends(get_login_user_use_case)],
) -> AuthResponse:
    """Check credentials and return the account summary.

    Raises:
        AuthenticationAppError: 400 for invalid credentials, 403 for a
            deactivated account.
    """
    result = await use_case.execute(
        LoginUserInput(email=str(payload.email), password=payload.password)
    )
    return AuthResponse(
        message=SUCCESS_MESSAGES["LOGIN_SUCCESS"],
        user=UserSummary(
            user_id=result.user_id,
            email=result.email,
            role=role_name(result.role),
            last_login_at=result.last_login_at,
        ),
    )
