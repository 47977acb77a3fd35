from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_admin, get_current_employee
from app.models.employee import Employee
from app.models.user import Role, User
from app.schemas.employee import (
    EmployeeAdminRegistration,
    EmployeeAdminUpdate,
    EmployeeArchive,
    EmployeeDetailResponse,
    EmployeeInvite,
    EmployeeProfileUpdate,
    EmployeeRegistration,
    EmployeeResponse,
    EmployeeStatusUpdate,
    EmployeeSummary,
    EmployeeUnarchive,
    InvitationResponse,
    PasswordChange,
)
from app.services.employee_service import EmployeeService
from app.tasks.email_tasks import send_employee_invitation_email
from app.utils.security import create_session_token
from core.db import get_db
from core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/employees", tags=["Employees"])


# ============== Invitation & registration ==============


@router.post("/invite", status_code=status.HTTP_201_CREATED)
async def invite_employee(
    data: EmployeeInvite,
    current_admin: User = Depends(get_current_admin),
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    """
    Invite an employee by email.

    A missing or blank salary is stored as 0. An expired invitation for
    the same email is re-issued with a new secret.
    """
    logger.info(f"Invite request for {data.email} by admin: {current_admin.id}")
    service = EmployeeService(db_session)
    invitation = await service.invite(current_admin, data)
    employee = invitation.employee

    # Email delivery must not fail the invite (e.g., Redis down)
    try:
        send_employee_invitation_email.delay(
            employee_email=employee.email,
            employee_name=employee.full_name,
            organization_name=invitation.organization_name,
            admin_name=invitation.admin_name,
            invitation_link=invitation.link,
            expires_at=employee.invitation_expires.isoformat()
            if employee.invitation_expires
            else None,
        )
    except Exception as email_error:
        logger.warning(f"Failed to queue invitation email: {email_error}")

    return {
        "success": True,
        "message": "Employee invitation sent successfully",
        "data": {
            "employee": EmployeeSummary.model_validate(employee),
            "invitation_link": invitation.link,
        },
    }


@router.get("/register/{token}")
async def get_invitation(
    token: str,
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    """Look up a pending invitation by its secret. Public."""
    service = EmployeeService(db_session)
    employee, organization, inviter = await service.get_invitation(token)
    invitation = InvitationResponse(
        id=employee.id,
        first_name=employee.first_name,
        last_name=employee.last_name,
        email=employee.email,
        salary=employee.salary,
        invitation_expires=employee.invitation_expires,
        organization_id=employee.organization_id,
        organization_name=organization.name if organization else None,
        invited_by_name=inviter.full_name if inviter else None,
    )
    return {"success": True, "data": {"employee": invitation}}


@router.post("/register/{token}", status_code=status.HTTP_201_CREATED)
async def complete_registration(
    token: str,
    data: EmployeeRegistration,
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    """
    Complete self-registration with an invitation secret. Public.

    The account stays pending until an admin activates it.
    """
    service = EmployeeService(db_session)
    employee = await service.complete_registration(token, data)
    session_token = create_session_token(
        employee.id, employee.email, employee.organization_id, Role.EMPLOYEE
    )
    return {
        "success": True,
        "message": "Registration completed successfully. Your account is pending admin approval.",
        "data": {
            "employee": EmployeeResponse.model_validate(employee),
            "token": session_token,
        },
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_employee(
    data: EmployeeAdminRegistration,
    current_admin: User = Depends(get_current_admin),
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    """Complete registration of an invited employee on their behalf."""
    logger.info(f"Admin {current_admin.id} registering invited employee {data.email}")
    service = EmployeeService(db_session)
    employee = await service.register_invited_employee(current_admin, data)
    return {
        "success": True,
        "message": "Employee registered successfully",
        "data": {"employee": EmployeeResponse.model_validate(employee)},
    }


# ============== Employee self-service ==============


@router.get("/profile")
async def get_profile(
    current_employee: Employee = Depends(get_current_employee),
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    """Get the calling employee's own record."""
    service = EmployeeService(db_session)
    employee = await service.get_profile(
        current_employee.id, current_employee.organization_id
    )
    return {"success": True, "data": EmployeeResponse.model_validate(employee)}


@router.put("/profile")
async def update_profile(
    data: EmployeeProfileUpdate,
    current_employee: Employee = Depends(get_current_employee),
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    """Update phone, address and emergency contact of the calling employee."""
    service = EmployeeService(db_session)
    employee = await service.update_profile(
        current_employee.id, current_employee.organization_id, data
    )
    return {
        "success": True,
        "message": "Profile updated successfully",
        "data": EmployeeResponse.model_validate(employee),
    }


@router.put("/profile/password")
async def change_password(
    data: PasswordChange,
    current_employee: Employee = Depends(get_current_employee),
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    service = EmployeeService(db_session)
    await service.change_password(
        current_employee.id,
        current_employee.organization_id,
        data.current_password,
        data.new_password,
    )
    return {"success": True, "message": "Password changed successfully"}


# ============== Admin management ==============


@router.get("/admin/all")
async def list_employees_for_admin(
    page: int = Query(1, description="Page number, starting at 1"),
    limit: int = Query(10, description="Page size, 1 to 100"),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    status: Optional[str] = Query(None, description="Filter by status"),
    search: Optional[str] = Query(None, description="Search name, email, department or position"),
    include_deleted: bool = Query(False, alias="includeDeleted"),
    include_archived: bool = Query(False, alias="includeArchived"),
    current_admin: User = Depends(get_current_admin),
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    """
    List employees with pagination, sorting and filters.

    Soft-deleted and archived employees are hidden unless requested.
    """
    service = EmployeeService(db_session)
    listing = await service.list_employees(
        current_admin,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        status=status,
        search=search,
        include_deleted=include_deleted,
        include_archived=include_archived,
    )
    return {"success": True, "data": listing}


@router.put("/admin/{employee_id}")
async def update_employee_by_admin(
    employee_id: str,
    data: EmployeeAdminUpdate,
    current_admin: User = Depends(get_current_admin),
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    service = EmployeeService(db_session)
    employee = await service.update_by_admin(current_admin, employee_id, data)
    return {
        "success": True,
        "message": "Employee updated successfully",
        "data": EmployeeResponse.model_validate(employee),
    }


@router.delete("/admin/{employee_id}")
async def soft_delete_employee(
    employee_id: str,
    current_admin: User = Depends(get_current_admin),
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    """Soft-delete an erroneous employee record."""
    service = EmployeeService(db_session)
    employee = await service.soft_delete(current_admin, employee_id)
    return {
        "success": True,
        "message": "Employee deleted successfully",
        "data": EmployeeResponse.model_validate(employee),
    }


@router.put("/admin/{employee_id}/restore")
async def restore_employee(
    employee_id: str,
    current_admin: User = Depends(get_current_admin),
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    service = EmployeeService(db_session)
    employee = await service.restore(current_admin, employee_id)
    return {
        "success": True,
        "message": "Employee restored successfully",
        "data": EmployeeResponse.model_validate(employee),
    }


@router.post("/admin/{employee_id}/archive")
async def archive_employee(
    employee_id: str,
    data: Optional[EmployeeArchive] = None,
    current_admin: User = Depends(get_current_admin),
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    """Archive a former employee. The record is hidden from default listings."""
    service = EmployeeService(db_session)
    employee = await service.archive(
        current_admin, employee_id, data or EmployeeArchive()
    )
    return {
        "success": True,
        "message": "Employee archived successfully",
        "data": EmployeeDetailResponse.model_validate(employee),
    }


@router.put("/admin/{employee_id}/unarchive")
async def unarchive_employee(
    employee_id: str,
    data: Optional[EmployeeUnarchive] = None,
    current_admin: User = Depends(get_current_admin),
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    """Unarchive an employee. They return as pending for re-review."""
    service = EmployeeService(db_session)
    employee, previous = await service.unarchive(
        current_admin, employee_id, notes=data.notes if data else None
    )
    return {
        "success": True,
        "message": "Employee unarchived successfully",
        "data": {
            "employee": EmployeeDetailResponse.model_validate(employee),
            "previous_archive_info": previous,
        },
    }


@router.get("")
async def list_employees(
    current_admin: User = Depends(get_current_admin),
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    """All employees of the organization, newest first."""
    service = EmployeeService(db_session)
    employees = await service.list_all(current_admin)
    return {
        "success": True,
        "count": len(employees),
        "data": [EmployeeResponse.model_validate(e) for e in employees],
    }


@router.get("/status/{employee_status}")
async def list_employees_by_status(
    employee_status: str,
    current_admin: User = Depends(get_current_admin),
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    service = EmployeeService(db_session)
    employees = await service.list_by_status(current_admin, employee_status)
    return {
        "success": True,
        "count": len(employees),
        "data": [EmployeeResponse.model_validate(e) for e in employees],
    }


@router.get("/{employee_id}")
async def get_employee(
    employee_id: str,
    current_admin: User = Depends(get_current_admin),
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    """Get one employee of the organization with its status history."""
    service = EmployeeService(db_session)
    employee = await service.get_employee(current_admin, employee_id)
    return {"success": True, "data": EmployeeDetailResponse.model_validate(employee)}


@router.post("/{employee_id}/status")
async def update_employee_status(
    employee_id: str,
    data: EmployeeStatusUpdate,
    current_admin: User = Depends(get_current_admin),
    db_session: AsyncSession = Depends(get_db),
) -> dict:
    """
    Change an employee's status.

    Any of pending, active, inactive and terminated may follow any other.
    Every change is appended to the status history.
    """
    service = EmployeeService(db_session)
    employee, previous, message = await service.update_status(
        current_admin, employee_id, data
    )
    return {
        "success": True,
        "message": message,
        "data": {
            "employee": EmployeeDetailResponse.model_validate(employee),
            "previous_status": previous,
        },
    }
