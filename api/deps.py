from dataclasses import dataclass
from typing import Callable, Optional, Union

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.employee import Employee
from app.models.user import Role, User
from app.utils.security import decode_session_token
from core.db import get_db
from core.exceptions.base import ForbiddenException, UnauthorizedException

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


@dataclass
class Principal:
    """Authenticated caller resolved from a session token."""

    id: str
    organization_id: str
    role: Role
    email: str
    account: Union[User, Employee]


async def get_current_principal(
    token: Optional[str] = Depends(oauth2_scheme),
    db_session: AsyncSession = Depends(get_db),
) -> Principal:
    """
    Resolve the caller from the bearer session token.

    The token role decides which identity store is consulted, and the
    stored account must still belong to the organization in the token.
    """
    if not token:
        raise UnauthorizedException()

    claims = decode_session_token(token)

    if claims.role == Role.ADMIN:
        account = await User.get_by_id(db_session, claims.principal_id)
    else:
        account = await Employee.get_by_id(db_session, claims.principal_id)

    if not account or account.organization_id != claims.organization_id:
        raise UnauthorizedException(message="User not found")

    return Principal(
        id=account.id,
        organization_id=account.organization_id,
        role=claims.role,
        email=account.email,
        account=account,
    )


def require_roles(*roles: Role) -> Callable:
    """Build a dependency that admits only the given token roles."""

    async def dependency(
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        if principal.role not in roles:
            raise ForbiddenException(
                message=f"User role {principal.role.value} is not authorized to access this route"
            )
        return principal

    return dependency


async def get_current_admin(
    principal: Principal = Depends(require_roles(Role.ADMIN)),
) -> User:
    """Get the current caller if they are an admin."""
    return principal.account


async def get_current_employee(
    principal: Principal = Depends(require_roles(Role.EMPLOYEE)),
) -> Employee:
    """Get the current caller if they are an employee."""
    return principal.account
