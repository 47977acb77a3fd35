"""Celery tasks for employee emails."""

import logging
from datetime import datetime
from typing import Optional

from app.services.email_service import email_service
from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="send_employee_invitation_email")
def send_employee_invitation_email(
    self,
    employee_email: str,
    employee_name: str,
    organization_name: str,
    admin_name: str,
    invitation_link: str,
    expires_at: Optional[str] = None,
) -> bool:
    """Send an employee invitation email.

    Args:
        employee_email: Recipient email
        employee_name: Employee's name
        organization_name: Inviting organization
        admin_name: Inviting admin
        invitation_link: Registration link carrying the invitation secret
        expires_at: Expiry as an ISO 8601 string
    """
    try:
        success = email_service.send_employee_invitation(
            to_email=employee_email,
            employee_name=employee_name,
            organization_name=organization_name,
            admin_name=admin_name,
            invitation_link=invitation_link,
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
        )

        if success:
            logger.info(f"Invitation email sent to {employee_email}")
        else:
            logger.warning(f"Failed to send invitation email to {employee_email}")

        return success

    except Exception as e:
        logger.error(f"Error sending invitation email: {str(e)}")
        # Retry up to 3 times with exponential backoff
        raise self.retry(exc=e, countdown=60 * (2 ** self.request.retries), max_retries=3)
