from typing import Any, Dict, Optional


class CustomException(Exception):
    """Base exception class for all custom exceptions."""

    code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"
    message: str = "An unexpected error occurred"
    data: Optional[Dict[str, Any]] = None

    def __init__(
        self,
        message: str = None,
        code: int = None,
        error_code: str = None,
        data: Dict[str, Any] = None
    ):
        self.message = message or self.message
        self.code = code or self.code
        self.error_code = error_code or self.error_code
        self.data = data or {}
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code}, error_code={self.error_code}, message={self.message})"


class BadRequestException(CustomException):
    """Exception for bad request errors (400)."""

    code = 400
    error_code = "BAD_REQUEST"
    message = "Bad request"


class ValidationException(CustomException):
    """Exception for malformed or missing input (400)."""

    code = 400
    error_code = "VALIDATION_ERROR"
    message = "Validation error"


class UnauthorizedException(CustomException):
    """Exception for unauthorized access (401)."""

    code = 401
    error_code = "UNAUTHORIZED"
    message = "Not authorized to access this route"


class InvalidTokenException(UnauthorizedException):
    """Session token is malformed, badly signed or of the wrong kind."""

    error_code = "INVALID_TOKEN"
    message = "Invalid token"


class ExpiredTokenException(UnauthorizedException):
    """Session token signature is valid but past its expiry."""

    error_code = "EXPIRED_TOKEN"
    message = "Token has expired"


class InvalidCredentialsException(UnauthorizedException):
    """Login with an unknown email or a wrong password."""

    error_code = "INVALID_CREDENTIALS"
    message = "Invalid credentials"


class ForbiddenException(CustomException):
    """Exception for forbidden access (403)."""

    code = 403
    error_code = "FORBIDDEN"
    message = "Access forbidden"


class NotFoundException(CustomException):
    """Exception for resource not found (404)."""

    code = 404
    error_code = "NOT_FOUND"
    message = "Resource not found"


class ConflictException(CustomException):
    """Exception for uniqueness conflicts (409)."""

    code = 409
    error_code = "CONFLICT"
    message = "Resource conflict"

    def __init__(self, field: str = None, message: str = None, **kwargs):
        if field and not message:
            message = f"An employee with this {field} already exists"
        data = kwargs.pop("data", None) or {}
        if field:
            data["field"] = field
        super().__init__(message=message, data=data, **kwargs)
        self.field = field


class AlreadyRegisteredException(BadRequestException):
    """Invite or registration attempted for a completed invitation."""

    error_code = "ALREADY_REGISTERED"
    message = "An employee with this email already exists in your organization"


class InvitationAlreadySentException(BadRequestException):
    """Invite attempted while a live invitation is still pending."""

    error_code = "INVITATION_ALREADY_SENT"
    message = "An invitation has already been sent to this email address"


class InvitationExpiredException(BadRequestException):
    """Invitation secret was used after its expiry."""

    error_code = "INVITATION_EXPIRED"
    message = "Invitation link has expired"


class InvalidInvitationException(BadRequestException):
    """Invitation secret does not match a pending invitation."""

    error_code = "INVALID_INVITATION"
    message = "Invalid or expired invitation link"


class AlreadyArchivedException(BadRequestException):
    """Archive attempted on an archived employee."""

    error_code = "ALREADY_ARCHIVED"
    message = "Employee is already archived"
