"""Email service for sending employee notifications."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from core.config import config

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

# Initialize Jinja2 template environment
template_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)


class NotificationPort(ABC):
    """Outbound notifications triggered by the employee lifecycle."""

    @abstractmethod
    def send_employee_invitation(
        self,
        to_email: str,
        employee_name: str,
        organization_name: str,
        admin_name: str,
        invitation_link: str,
        expires_at: Optional[datetime] = None,
    ) -> bool:
        """Deliver an invitation. Returns False when it could not be sent."""


class EmailService(NotificationPort):
    """Service for sending transactional emails using SendGrid."""

    def __init__(self):
        """Initialize email service."""
        self.client = SendGridAPIClient(config.SENDGRID_API_KEY) if config.SENDGRID_API_KEY else None
        self.from_email = config.SENDGRID_FROM_EMAIL

    def _render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render email template with context."""
        template = template_env.get_template(template_name)
        return template.render(**context)

    def _send_email(self, to_email: str, subject: str, html_content: str) -> bool:
        """Send email using SendGrid."""
        if not self.client:
            logger.warning(
                f"SendGrid not configured. Would send email to {to_email} with subject: {subject}"
            )
            return False

        try:
            message = Mail(
                from_email=self.from_email,
                to_emails=to_email,
                subject=subject,
                html_content=html_content,
            )
            response = self.client.send(message)
            logger.info(f"Email sent to {to_email}: {subject} (Status: {response.status_code})")
            return response.status_code in [200, 201, 202]

        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {str(e)}")
            return False

    def send_employee_invitation(
        self,
        to_email: str,
        employee_name: str,
        organization_name: str,
        admin_name: str,
        invitation_link: str,
        expires_at: Optional[datetime] = None,
    ) -> bool:
        """Send the registration invitation to a new employee.

        Args:
            to_email: Employee email address
            employee_name: Employee's full name
            organization_name: Inviting organization
            admin_name: Name of the admin who sent the invite
            invitation_link: Frontend registration link with the secret
            expires_at: When the invitation stops working
        """
        context = {
            "employee_name": employee_name,
            "organization_name": organization_name,
            "admin_name": admin_name,
            "invitation_link": invitation_link,
            "expires_at": expires_at.strftime("%B %d, %Y") if expires_at else None,
            "expire_days": config.INVITATION_EXPIRE_DAYS,
        }

        html_content = self._render_template("employee_invitation.html", context)
        return self._send_email(
            to_email=to_email,
            subject=f"You're invited to join {organization_name}",
            html_content=html_content,
        )


# Singleton instance
email_service = EmailService()
