"""Employee lifecycle: invitation, registration, status, archive and delete."""

import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence, Tuple
from urllib.parse import urlencode

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.employee import (
    Employee,
    EmployeeStatus,
    EmploymentStatus,
    InvitationStatus,
)
from app.models.organization import Organization
from app.models.user import User
from app.schemas.employee import (
    EmployeeAdminRegistration,
    EmployeeAdminUpdate,
    EmployeeArchive,
    EmployeeInvite,
    EmployeeListResponse,
    EmployeeProfileUpdate,
    EmployeeRegistration,
    EmployeeResponse,
    EmployeeStatusUpdate,
    check_type_specific_fields,
)
from app.utils.security import (
    generate_invitation_secret,
    hash_password,
    verify_password,
)
from core.config import config
from core.db import utcnow
from core.exceptions.base import (
    AlreadyArchivedException,
    AlreadyRegisteredException,
    BadRequestException,
    ConflictException,
    ForbiddenException,
    InvalidInvitationException,
    InvitationAlreadySentException,
    InvitationExpiredException,
    NotFoundException,
    ValidationException,
)
from core.logging import get_logger

logger = get_logger(__name__)

SORT_FIELDS = {
    "createdAt": Employee.created_at,
    "updatedAt": Employee.updated_at,
    "firstName": Employee.first_name,
    "lastName": Employee.last_name,
    "email": Employee.email,
    "salary": Employee.salary,
    "status": Employee.status,
}
SORT_ORDERS = ("asc", "desc")
MAX_PAGE_SIZE = 100

SEARCH_COLUMNS = (
    Employee.first_name,
    Employee.last_name,
    Employee.email,
    Employee.department,
    Employee.position,
)

PROFILE_FIELDS = (
    "phone",
    "address",
    "gender",
    "date_of_birth",
    "age",
    "national_id",
    "employee_type",
    "advocate_license_number",
    "intern_year",
    "department",
    "position",
    "start_date",
    "emergency_contact_name",
    "emergency_contact_phone",
    "emergency_contact_relation",
)

DEACTIVATED_MESSAGE = "Your account has been deactivated. Please contact your administrator."


@dataclass
class Invitation:
    """A freshly issued invitation and everything needed to deliver it."""

    employee: Employee
    secret: str
    link: str
    organization_name: str
    admin_name: str


def calculate_age(date_of_birth: date, today: date) -> int:
    """Whole years between a birth date and today."""
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def build_invitation_link(
    secret: str,
    employee: Employee,
    organization_name: str,
    admin: User,
) -> str:
    """Frontend registration link carrying the invitation secret."""
    params = {
        "token": secret,
        "employeeName": employee.full_name,
        "organizationName": organization_name,
        "adminName": admin.full_name,
        "adminId": admin.id,
        "employeeEmail": employee.email,
    }
    if employee.salary:
        params["salary"] = str(employee.salary)
    base_url = config.FRONTEND_URL.rstrip("/")
    return f"{base_url}{config.INVITATION_PATH}?{urlencode(params)}"


def status_change_message(
    previous: EmployeeStatus, new: EmployeeStatus
) -> str:
    if new == EmployeeStatus.ACTIVE and previous == EmployeeStatus.PENDING:
        return "Employee activated successfully. They can now login to the system."
    if new == EmployeeStatus.INACTIVE and previous == EmployeeStatus.ACTIVE:
        return "Employee deactivated. They can no longer login to the system."
    if new == EmployeeStatus.TERMINATED:
        return "Employee terminated. They can no longer access the system."
    return "Employee status updated successfully"


def parse_status(value: str) -> EmployeeStatus:
    try:
        return EmployeeStatus(value)
    except ValueError:
        valid = ", ".join(s.value for s in EmployeeStatus)
        raise BadRequestException(message=f"Invalid status. Must be one of: {valid}")


def _conflict_field(error: IntegrityError) -> str:
    message = str(error.orig).lower()
    for field in ("national_id", "email", "invitation_token"):
        if field in message:
            return field
    return "record"


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class EmployeeService:
    """Service for the employee lifecycle, scoped to one organization per call."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _commit(self, employee: Employee) -> Employee:
        """Commit the pending mutation, mapping uniqueness errors to 409."""
        try:
            await self.db_session.commit()
        except IntegrityError as e:
            await self.db_session.rollback()
            field = _conflict_field(e)
            logger.warning(f"Uniqueness conflict on employee {field}: {e.orig}")
            raise ConflictException(field=field)
        await self.db_session.refresh(employee)
        return employee

    async def _get_employee(
        self,
        organization_id: str,
        employee_id: str,
        *conditions,
        not_found_message: str = "Employee not found",
        for_update: bool = False,
    ) -> Employee:
        employee = await Employee.get_for_organization(
            self.db_session,
            employee_id,
            organization_id,
            *conditions,
            for_update=for_update,
        )
        if not employee:
            raise NotFoundException(message=not_found_message)
        if employee.expire_invitation_if_due():
            await self._persist_expiry(employee, relock=for_update)
        return employee

    async def _persist_expiry(self, employee: Employee, relock: bool = False) -> None:
        """Save an expiry as soon as it is observed, before any later check can fail."""
        logger.info(f"Invitation for employee {employee.id} expired")
        await self.db_session.commit()
        if relock:
            # The commit released the row lock
            await self.db_session.refresh(employee, with_for_update=True)

    async def _expire_stale_invitations(self, organization_id: str) -> None:
        """Flip every overdue pending invitation of an organization at once."""
        result = await self.db_session.execute(
            update(Employee)
            .where(
                Employee.organization_id == organization_id,
                Employee.invitation_status == InvitationStatus.PENDING,
                Employee.invitation_expires < utcnow(),
            )
            .values(invitation_status=InvitationStatus.EXPIRED, invitation_token=None)
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount:
            logger.info(
                f"Expired {result.rowcount} stale invitation(s) in organization {organization_id}"
            )
            await self.db_session.commit()

    async def _apply_registration(
        self, employee: Employee, data: EmployeeRegistration
    ) -> None:
        """Validate and copy a registration onto an invited employee."""
        if calculate_age(data.date_of_birth, utcnow().date()) != data.age:
            raise ValidationException(
                message="Age does not match the calculated age from date of birth"
            )

        if await self._national_id_taken(data.national_id, exclude_id=employee.id):
            raise ConflictException(field="national_id")

        for field in PROFILE_FIELDS:
            setattr(employee, field, getattr(data, field))

        if data.salary is not None:
            employee.salary = data.salary

        employee.hashed_password = hash_password(data.password)
        employee.invitation_status = InvitationStatus.COMPLETED
        employee.invitation_token = None
        employee.status = EmployeeStatus.PENDING

    # ------------------------------------------------------------------
    # Invitation
    # ------------------------------------------------------------------

    async def invite(self, admin: User, data: EmployeeInvite) -> Invitation:
        """
        Invite an employee, or re-invite one whose invitation expired.

        Raises:
            BadRequestException: The employee is archived or deleted.
            AlreadyRegisteredException: The employee finished registration.
            InvitationAlreadySentException: A live invitation is pending.
        """
        email = Employee.normalize_email(data.email)
        salary = data.salary if data.salary is not None else Decimal("0")

        organization = await Organization.get_by_id(
            self.db_session, admin.organization_id
        )
        if not organization:
            raise NotFoundException(message="Organization not found")

        employee = await Employee.get_by_email_for_organization(
            self.db_session, email, admin.organization_id, for_update=True
        )
        secret = generate_invitation_secret()

        if employee:
            if employee.expire_invitation_if_due():
                await self._persist_expiry(employee, relock=True)

            # Archived and deleted records must stay terminated
            if employee.is_deleted:
                raise BadRequestException(
                    message="This employee has been deleted. Restore them before sending a new invitation"
                )
            if employee.is_archived:
                raise BadRequestException(
                    message="This employee is archived. Unarchive them before sending a new invitation"
                )
            if employee.invitation_status == InvitationStatus.COMPLETED:
                raise AlreadyRegisteredException()
            if employee.invitation_status == InvitationStatus.PENDING:
                raise InvitationAlreadySentException()

            logger.info(f"Re-inviting employee {employee.id}")
            employee.first_name = data.first_name
            employee.last_name = data.last_name
            employee.salary = salary
            employee.invited_by_id = admin.id
            employee.status = EmployeeStatus.PENDING
            employee.issue_invitation(secret, config.INVITATION_EXPIRE_DAYS)

            # A stale national ID from an abandoned registration must not
            # block the re-invite. Only reachable if the unique index on
            # national_id is relaxed.
            if employee.national_id and await self._national_id_taken(
                employee.national_id, exclude_id=employee.id
            ):
                logger.warning(
                    f"Clearing duplicate national ID on re-invited employee {employee.id}"
                )
                employee.national_id = None
        else:
            employee = Employee(
                organization_id=admin.organization_id,
                invited_by_id=admin.id,
                first_name=data.first_name,
                last_name=data.last_name,
                email=email,
                salary=salary,
                status=EmployeeStatus.PENDING,
                employment_status=EmploymentStatus.EMPLOYED,
            )
            employee.issue_invitation(secret, config.INVITATION_EXPIRE_DAYS)
            self.db_session.add(employee)

        await self._commit(employee)
        logger.info(f"Invitation issued for employee {employee.id}")

        return Invitation(
            employee=employee,
            secret=secret,
            link=build_invitation_link(secret, employee, organization.name, admin),
            organization_name=organization.name,
            admin_name=admin.full_name,
        )

    async def _national_id_taken(
        self, national_id: str, exclude_id: Optional[str] = None
    ) -> bool:
        return await Employee.national_id_taken(
            self.db_session, national_id, exclude_id=exclude_id
        )

    async def get_invitation(
        self, secret: str
    ) -> Tuple[Employee, Optional[Organization], Optional[User]]:
        """
        Resolve a pending invitation from its secret.

        Returns the employee with its organization and inviting admin.
        """
        employee = await Employee.get_by_invitation_token(
            self.db_session, secret, for_update=True
        )
        if not employee:
            raise InvalidInvitationException()

        if employee.expire_invitation_if_due():
            await self._persist_expiry(employee)
            raise InvitationExpiredException()

        if employee.is_deleted or employee.is_archived:
            raise InvalidInvitationException()

        organization = await Organization.get_by_id(
            self.db_session, employee.organization_id
        )
        inviter = await User.get_by_id(self.db_session, employee.invited_by_id)
        return employee, organization, inviter

    async def complete_registration(
        self, secret: str, data: EmployeeRegistration
    ) -> Employee:
        """Finish self-registration. The employee then awaits activation."""
        employee = await Employee.get_by_invitation_token(
            self.db_session, secret, for_update=True
        )
        if not employee:
            raise InvalidInvitationException()

        if employee.expire_invitation_if_due():
            await self._persist_expiry(employee)
            raise InvitationExpiredException()

        if employee.is_deleted or employee.is_archived:
            raise InvalidInvitationException()

        await self._apply_registration(employee, data)
        await self._commit(employee)
        logger.info(f"Employee {employee.id} completed registration")
        return employee

    async def register_invited_employee(
        self, admin: User, data: EmployeeAdminRegistration
    ) -> Employee:
        """Complete registration for an invited employee on their behalf."""
        employee = await Employee.get_by_email_for_organization(
            self.db_session, data.email, admin.organization_id, for_update=True
        )
        if not employee:
            raise BadRequestException(
                message="No invitation found for this email address. "
                "Please send an invitation first."
            )

        if employee.expire_invitation_if_due():
            await self._persist_expiry(employee, relock=True)

        if employee.is_deleted or employee.is_archived:
            raise InvalidInvitationException()
        if employee.invitation_status == InvitationStatus.COMPLETED:
            raise AlreadyRegisteredException(
                message="This employee has already completed registration"
            )
        if employee.invitation_status == InvitationStatus.EXPIRED:
            raise InvitationExpiredException(
                message="The invitation has expired. Please send a new invitation."
            )

        employee.first_name = data.first_name
        employee.last_name = data.last_name
        await self._apply_registration(employee, data)
        await self._commit(employee)
        logger.info(f"Admin {admin.id} registered employee {employee.id}")
        return employee

    # ------------------------------------------------------------------
    # Admin lifecycle
    # ------------------------------------------------------------------

    async def get_employee(self, admin: User, employee_id: str) -> Employee:
        return await self._get_employee(admin.organization_id, employee_id)

    async def update_status(
        self, admin: User, employee_id: str, data: EmployeeStatusUpdate
    ) -> Tuple[Employee, EmployeeStatus, str]:
        """
        Move an employee to any of the four statuses.

        Returns the employee, its previous status and a message describing
        the change.
        """
        employee = await self._get_employee(
            admin.organization_id, employee_id, for_update=True
        )
        if employee.is_deleted and data.status != EmployeeStatus.TERMINATED:
            raise BadRequestException(
                message="Deleted employees must be restored before changing status"
            )
        if employee.is_archived and data.status != EmployeeStatus.TERMINATED:
            raise BadRequestException(
                message="Archived employees must be unarchived before changing status"
            )

        previous = employee.record_status_change(
            data.status, admin.id, reason=data.reason, notes=data.notes
        )
        await self._commit(employee)
        logger.info(
            f"Employee {employee.id} status changed {previous.value} -> {data.status.value} by {admin.id}"
        )
        return employee, previous, status_change_message(previous, data.status)

    async def archive(
        self, admin: User, employee_id: str, data: EmployeeArchive
    ) -> Employee:
        employee = await self._get_employee(
            admin.organization_id,
            employee_id,
            Employee.is_deleted == False,  # noqa: E712
            for_update=True,
        )
        if employee.is_archived:
            raise AlreadyArchivedException()

        employee.archive(admin.id, reason=data.reason, notes=data.notes)
        await self._commit(employee)
        logger.info(f"Employee {employee.id} archived by {admin.id}")
        return employee

    async def unarchive(
        self, admin: User, employee_id: str, notes: Optional[str] = None
    ) -> Tuple[Employee, Dict[str, Any]]:
        """Unarchive an employee. Returns the cleared archive info too."""
        employee = await self._get_employee(
            admin.organization_id,
            employee_id,
            Employee.is_deleted == False,  # noqa: E712
            Employee.employment_status == EmploymentStatus.ARCHIVED,
            not_found_message="Archived employee not found",
            for_update=True,
        )
        previous = employee.unarchive(admin.id, notes=notes)
        await self._commit(employee)
        logger.info(f"Employee {employee.id} unarchived by {admin.id}")
        return employee, previous

    async def soft_delete(self, admin: User, employee_id: str) -> Employee:
        employee = await self._get_employee(
            admin.organization_id,
            employee_id,
            Employee.is_deleted == False,  # noqa: E712
            for_update=True,
        )
        employee.soft_delete()
        await self._commit(employee)
        logger.info(f"Employee {employee.id} soft-deleted by {admin.id}")
        return employee

    async def restore(self, admin: User, employee_id: str) -> Employee:
        employee = await self._get_employee(
            admin.organization_id,
            employee_id,
            Employee.is_deleted == True,  # noqa: E712
            not_found_message="Deleted employee not found",
            for_update=True,
        )
        employee.restore()
        await self._commit(employee)
        logger.info(f"Employee {employee.id} restored by {admin.id}")
        return employee

    async def update_by_admin(
        self, admin: User, employee_id: str, data: EmployeeAdminUpdate
    ) -> Employee:
        """Partially update identity, profile and salary fields."""
        employee = await self._get_employee(
            admin.organization_id,
            employee_id,
            Employee.is_deleted == False,  # noqa: E712
            for_update=True,
        )
        changes = data.model_dump(exclude_unset=True)

        for field in ("first_name", "last_name", "email", "salary"):
            if field in changes and changes[field] is None:
                raise ValidationException(message=f"{field} cannot be empty")

        if "email" in changes:
            changes["email"] = Employee.normalize_email(changes["email"])
            if await Employee.email_taken(
                self.db_session, changes["email"], exclude_id=employee.id
            ):
                raise ConflictException(field="email")

        if changes.get("national_id") and await self._national_id_taken(
            changes["national_id"], exclude_id=employee.id
        ):
            raise ConflictException(field="national_id")

        try:
            check_type_specific_fields(
                changes.get("employee_type", employee.employee_type),
                changes.get("advocate_license_number", employee.advocate_license_number),
                changes.get("intern_year", employee.intern_year),
            )
        except ValueError as e:
            raise ValidationException(message=str(e))

        for field, value in changes.items():
            setattr(employee, field, value)

        await self._commit(employee)
        logger.info(f"Employee {employee.id} updated by admin {admin.id}")
        return employee

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_all(self, admin: User) -> Sequence[Employee]:
        await self._expire_stale_invitations(admin.organization_id)
        return await Employee.get_all_for_organization(
            self.db_session, admin.organization_id
        )

    async def list_by_status(self, admin: User, status: str) -> Sequence[Employee]:
        employee_status = parse_status(status)
        await self._expire_stale_invitations(admin.organization_id)
        return await Employee.get_all_for_organization(
            self.db_session, admin.organization_id, status=employee_status
        )

    async def list_employees(
        self,
        admin: User,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
        status: Optional[str] = None,
        search: Optional[str] = None,
        include_deleted: bool = False,
        include_archived: bool = False,
    ) -> EmployeeListResponse:
        """
        Paginated, sorted and filtered employees of the admin's organization.

        Soft-deleted and archived employees are hidden unless asked for.
        Arguments are validated before any query runs.
        """
        if page < 1:
            raise BadRequestException(message="Page number must be greater than 0")
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise BadRequestException(
                message=f"Limit must be between 1 and {MAX_PAGE_SIZE}"
            )
        if sort_by not in SORT_FIELDS:
            raise BadRequestException(
                message=f"Invalid sort field. Must be one of: {', '.join(SORT_FIELDS)}"
            )
        if sort_order not in SORT_ORDERS:
            raise BadRequestException(
                message=f"Invalid sort order. Must be one of: {', '.join(SORT_ORDERS)}"
            )
        employee_status = parse_status(status) if status else None

        await self._expire_stale_invitations(admin.organization_id)

        conditions = [Employee.organization_id == admin.organization_id]
        if not include_deleted:
            conditions.append(Employee.is_deleted == False)  # noqa: E712
        if not include_archived:
            conditions.append(Employee.employment_status == EmploymentStatus.EMPLOYED)
        if employee_status:
            conditions.append(Employee.status == employee_status)
        if search and search.strip():
            search_term = f"%{_escape_like(search.strip().lower())}%"
            conditions.append(
                or_(
                    *[
                        func.lower(column).like(search_term, escape="\\")
                        for column in SEARCH_COLUMNS
                    ]
                )
            )

        total_result = await self.db_session.execute(
            select(func.count()).select_from(Employee).where(*conditions)
        )
        total_count = total_result.scalar() or 0

        sort_column = SORT_FIELDS[sort_by]
        order = sort_column.asc() if sort_order == "asc" else sort_column.desc()
        result = await self.db_session.execute(
            select(Employee)
            .where(*conditions)
            .order_by(order, Employee.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        employees = result.scalars().all()

        total_pages = math.ceil(total_count / limit) if total_count else 0
        has_next_page = page < total_pages
        has_prev_page = page > 1

        logger.info(
            f"Listed {len(employees)} employees (total: {total_count}) for organization {admin.organization_id}"
        )
        return EmployeeListResponse(
            items=[EmployeeResponse.model_validate(e) for e in employees],
            count=len(employees),
            total_count=total_count,
            total_pages=total_pages,
            current_page=page,
            has_next_page=has_next_page,
            has_prev_page=has_prev_page,
            next_page=page + 1 if has_next_page else None,
            prev_page=page - 1 if has_prev_page else None,
            filters={
                "status": status,
                "search": search,
                "include_deleted": include_deleted,
                "include_archived": include_archived,
            },
            pagination={
                "page": page,
                "limit": limit,
                "sort_by": sort_by,
                "sort_order": sort_order,
            },
        )

    # ------------------------------------------------------------------
    # Employee self-service
    # ------------------------------------------------------------------

    async def _get_own_record(
        self, employee_id: str, organization_id: str, for_update: bool = False
    ) -> Employee:
        employee = await Employee.get_for_organization(
            self.db_session, employee_id, organization_id, for_update=for_update
        )
        if not employee:
            raise NotFoundException(message="Employee profile not found")
        if employee.is_deleted:
            raise ForbiddenException(message=DEACTIVATED_MESSAGE)
        return employee

    async def get_profile(self, employee_id: str, organization_id: str) -> Employee:
        return await self._get_own_record(employee_id, organization_id)

    async def update_profile(
        self, employee_id: str, organization_id: str, data: EmployeeProfileUpdate
    ) -> Employee:
        """Update the contact fields an employee may edit themselves."""
        employee = await self._get_own_record(
            employee_id, organization_id, for_update=True
        )
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(employee, field, value)
        await self._commit(employee)
        logger.info(f"Employee {employee.id} updated their profile")
        return employee

    async def change_password(
        self,
        employee_id: str,
        organization_id: str,
        current_password: str,
        new_password: str,
    ) -> Employee:
        employee = await self._get_own_record(
            employee_id, organization_id, for_update=True
        )
        if not verify_password(current_password, employee.hashed_password):
            raise BadRequestException(message="Current password is incorrect")

        employee.hashed_password = hash_password(new_password)
        await self._commit(employee)
        logger.info(f"Employee {employee.id} changed their password")
        return employee
