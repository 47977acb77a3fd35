from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.auth import AdminUserResponse
from app.schemas.organization import OrganizationResponse, SetupRequest
from app.services.setup_service import SetupService
from core.db import get_db
from core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/setup", tags=["Setup"])


@router.post("/initialize", status_code=status.HTTP_201_CREATED)
async def initialize_setup(
    data: SetupRequest,
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    """
    Create an organization and its super admin.

    Returns a session token so the new admin is logged in right away.
    """
    logger.info(f"Setup request for organization: {data.organization.name}")
    service = SetupService(db_session)
    organization, admin, token = await service.initialize(data)
    return {
        "success": True,
        "message": "Organization and Super Admin initialized successfully.",
        "data": {
            "token": token,
            "user": AdminUserResponse.model_validate(admin),
            "organization": OrganizationResponse.model_validate(organization),
        },
    }
