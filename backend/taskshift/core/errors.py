"""Application error taxonomy.

Services raise these; the exception handlers in ``taskshift.main`` render them
as ``{"success": false, "message": ..., "error": <code>}`` with the matching
HTTP status.
"""

from typing import Any

from fastapi import status


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    message: str = "Internal server error"

    def __init__(self, message: str | None = None, *, code: str | None = None, **extra: Any) -> None:
        if message is not None:
            self.message = message
        if code is not None:
            self.code = code
        self.extra = extra
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        return {"success": False, "message": self.message, "error": self.code, **self.extra}


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    message = "Invalid request"


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHENTICATED"
    message = "No authentication token, access denied"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    message = "You do not have permission to perform this action"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    message = "Resource not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    message = "Resource already exists"


class InternalError(AppError):
    pass


# Identity


class VerificationRequired(Forbidden):
    code = "VERIFICATION_REQUIRED"
    message = "Email verification required. Please verify your email to access this resource."

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        super().__init__(message, verification_required=True, **extra)


# Membership


class NotMember(Forbidden):
    code = "NOT_MEMBER"
    message = "You are not a member of this organization"


class AdminPermissionRequired(Forbidden):
    code = "ADMIN_PERMISSION_REQUIRED"
    message = "Admin permission in this organization is required for this action"


class NoOrganizationContext(ValidationError):
    code = "NO_ORGANIZATION_CONTEXT"
    message = "User is not associated with any organization"


class LastAdmin(ValidationError):
    code = "LAST_ADMIN"
    message = "An organization must keep at least one admin while it has other members"


class DuplicateName(Conflict):
    code = "DUPLICATE_ORGANIZATION_NAME"
    message = "An organization with this name already exists"


class AlreadyMember(Conflict):
    code = "ALREADY_MEMBER"
    message = "This user is already a member of the organization"


class AlreadyInvited(Conflict):
    code = "ALREADY_INVITED"
    message = "This user has already been invited to the organization"


class UsernameExists(Conflict):
    code = "USERNAME_EXISTS"
    message = "Username is already taken"


class EmailExists(Conflict):
    code = "EMAIL_EXISTS"
    message = "An account with this email already exists"


# Verification


class InvalidVerificationCode(ValidationError):
    code = "INVALID_VERIFICATION_CODE"
    message = "Invalid verification code"


class VerificationExpired(ValidationError):
    code = "VERIFICATION_EXPIRED"
    message = "Verification code has expired"


# Notifier


class NotificationError(InternalError):
    code = "NOTIFICATION_FAILED"
    message = "Failed to send email"
