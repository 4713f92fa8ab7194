"""Domain errors raised by the RBAC core.

Every error carries a stable ``code`` and the HTTP status the API layer
should answer with. Codes never overlap.
"""

from typing import Any


class RBACError(Exception):
    code: str = "RBAC_ERROR"
    status_code: int = 400
    default_message: str = "Request could not be processed"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": False,
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class Unauthorized(RBACError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Authentication required"


class InvalidModuleOrAction(RBACError):
    """Raised for a (module, action) pair outside the taxonomy: a routing bug."""

    code = "INVALID_MODULE_OR_ACTION"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, module: Any, action: Any):
        super().__init__(
            f"Unknown permission {module}.{action}",
            details={"module": str(module), "action": str(action)},
        )


class PermissionDenied(RBACError):
    code = "PERMISSION_DENIED"
    status_code = 403

    def __init__(self, missing: list[str] | tuple[str, ...]):
        self.missing = list(missing)
        if len(self.missing) == 1:
            message = f"You don't have permission: {self.missing[0]}"
        else:
            message = "You don't have the required permissions"
        super().__init__(message, details={"missing": self.missing})


class InvalidPermissions(RBACError):
    code = "INVALID_PERMISSIONS"
    status_code = 400

    def __init__(self, message: str, violations: list[str] | None = None):
        self.violations = list(violations or [])
        details = {"violations": self.violations} if self.violations else None
        super().__init__(message, details=details)


class DuplicateEmail(RBACError):
    code = "DUPLICATE_EMAIL"
    status_code = 409
    default_message = "User with this email already exists"


class DuplicatePhone(RBACError):
    code = "DUPLICATE_PHONE"
    status_code = 409
    default_message = "User with this phone number already exists"


class BranchRequired(RBACError):
    code = "BRANCH_REQUIRED"
    status_code = 400
    default_message = "Center Admin must be assigned to a branch"


class Forbidden(RBACError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "You are not allowed to perform this operation"


class AlreadyDeactivated(RBACError):
    code = "ALREADY_DEACTIVATED"
    status_code = 400
    default_message = "Account is already deactivated"


class AlreadyActive(RBACError):
    code = "ALREADY_ACTIVE"
    status_code = 400
    default_message = "Account is already active"


class AccountNotFound(RBACError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Account not found"


class BranchNotFound(RBACError):
    code = "BRANCH_NOT_FOUND"
    status_code = 404
    default_message = "Branch not found"


class ConcurrentModification(RBACError):
    code = "CONCURRENT_MODIFICATION"
    status_code = 409
    default_message = "Account was modified concurrently, reload and retry"


class RateLimited(RBACError):
    code = "RATE_LIMITED"
    status_code = 429
    default_message = "Too many attempts. Please try again later."

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(details={"retry_after": retry_after})
