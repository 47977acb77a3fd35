from core.exceptions.base import (
    CustomException,
    BadRequestException,
    ValidationException,
    UnauthorizedException,
    InvalidTokenException,
    ExpiredTokenException,
    InvalidCredentialsException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    AlreadyRegisteredException,
    InvitationAlreadySentException,
    InvitationExpiredException,
    InvalidInvitationException,
    AlreadyArchivedException,
)

__all__ = [
    "CustomException",
    "BadRequestException",
    "ValidationException",
    "UnauthorizedException",
    "InvalidTokenException",
    "ExpiredTokenException",
    "InvalidCredentialsException",
    "ForbiddenException",
    "NotFoundException",
    "ConflictException",
    "AlreadyRegisteredException",
    "InvitationAlreadySentException",
    "InvitationExpiredException",
    "InvalidInvitationException",
    "AlreadyArchivedException",
]
