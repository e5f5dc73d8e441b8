"""
Domain exceptions.

Services raise these; ``main.py`` turns them into JSON responses carrying
``detail`` (user-facing message) and ``code`` (stable machine token).
"""

from typing import Any, Dict, List, Optional

from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "server_error"
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "authentication_failed"
    message = "Could not validate credentials"


class InvalidCredentialsError(AuthenticationError):
    code = "invalid_credentials"
    message = "Incorrect email or password"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    message = "Not enough permissions"


class PendingApprovalError(AuthorizationError):
    code = "pending_approval"
    message = "Your account is awaiting admin review"


class AccountRejectedError(AuthorizationError):
    code = "account_rejected"
    message = "Your account request has been rejected"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    message = "Resource not found"


class ConflictError(AppError):
    """The row changed state under the caller; refresh rather than retry."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    message = "Resource state has changed"


class DuplicateEmailError(ConflictError):
    code = "duplicate_email"
    message = "This email is already registered"


class ValidationError(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_error"
    message = "Invalid input"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.errors: List[Dict[str, Any]] = []
        if field:
            self.errors.append({"loc": ["body", field], "msg": self.message})

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class DependencyError(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "dependency_error"
    message = "A backing service is unavailable, please try again later"
