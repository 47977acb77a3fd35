from dataclasses import dataclass
from typing import Union

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.employee import Employee, EmployeeStatus
from app.models.user import Role, User
from app.utils.security import create_session_token, verify_password
from core.exceptions.base import (
    InvalidCredentialsException,
    UnauthorizedException,
)
from core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class LoginResult:
    """Outcome of a login, tagged with the identity space that matched."""

    kind: Role
    account: Union[User, Employee]
    token: str


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def login(self, email: str, password: str) -> LoginResult:
        """
        Authenticate an admin or an employee with email and password.

        Admins are looked up first. Only when no admin holds the email is
        the employee store consulted, and employees must be active.
        """
        user = await User.get_by_email(self.db_session, email)
        if user:
            if not verify_password(password, user.hashed_password):
                raise InvalidCredentialsException()
            token = create_session_token(
                user.id, user.email, user.organization_id, Role.ADMIN
            )
            return LoginResult(kind=Role.ADMIN, account=user, token=token)

        employee = await Employee.get_by_email(self.db_session, email)
        if not employee or not employee.hashed_password:
            raise InvalidCredentialsException()

        if not verify_password(password, employee.hashed_password):
            raise InvalidCredentialsException()

        if employee.is_deleted or employee.status != EmployeeStatus.ACTIVE:
            logger.info(f"Login refused for non-active employee: {employee.id}")
            raise UnauthorizedException(
                message="Your account is not active. Please contact your administrator."
            )

        token = create_session_token(
            employee.id, employee.email, employee.organization_id, Role.EMPLOYEE
        )
        return LoginResult(kind=Role.EMPLOYEE, account=employee, token=token)
