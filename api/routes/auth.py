from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import Role
from app.schemas.auth import (
    AdminUserResponse,
    EmployeeUserResponse,
    LoginRequest,
    TokenResponse,
)
from app.services.auth_service import AuthService
from core.db import get_db
from core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login")
async def login(
    data: LoginRequest,
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    """
    Authenticate an admin or an employee with email and password.

    The shape of `user` depends on which kind of account matched.
    Employees must be active to log in.
    """
    logger.info(f"Login attempt for email: {data.email}")
    service = AuthService(db_session)
    result = await service.login(data.email, data.password)

    if result.kind == Role.ADMIN:
        user = AdminUserResponse.model_validate(result.account)
    else:
        user = EmployeeUserResponse.model_validate(result.account)

    logger.info(f"{result.kind.value.capitalize()} logged in successfully: {result.account.id}")
    return {
        "success": True,
        "data": {
            "token": result.token,
            "user": user,
        },
    }


@router.post("/token", response_model=TokenResponse)
async def login_for_swagger(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db_session: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """
    OAuth2 compatible token endpoint for Swagger UI.

    Use this endpoint with the "Authorize" button in Swagger.
    Username field expects email address.
    """
    logger.info(f"OAuth2 login attempt for email: {form_data.username}")
    service = AuthService(db_session)
    result = await service.login(form_data.username, form_data.password)
    return TokenResponse(access_token=result.token)
