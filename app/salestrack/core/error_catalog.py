from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    INVALID_TOKEN = ErrorDefinition("INVALID_TOKEN", "Invalid token", status.HTTP_401_UNAUTHORIZED)
    INVALID_CREDENTIALS = ErrorDefinition(
        "INVALID_CREDENTIALS",
        "Invalid credentials",
        status.HTTP_401_UNAUTHORIZED,
    )
    INVALID_PROVISIONING_KEY = ErrorDefinition(
        "INVALID_PROVISIONING_KEY",
        "Invalid provisioning key",
        status.HTTP_401_UNAUTHORIZED,
    )
    USER_INACTIVE = ErrorDefinition(
        "USER_INACTIVE",
        "User is inactive",
        status.HTTP_403_FORBIDDEN,
    )
    PERMISSION_DENIED = ErrorDefinition(
        "PERMISSION_DENIED",
        "Permission denied",
        status.HTTP_403_FORBIDDEN,
    )
    ORGANIZATION_SCOPE_REQUIRED = ErrorDefinition(
        "ORGANIZATION_SCOPE_REQUIRED",
        "User is not associated with any active organization",
        status.HTTP_403_FORBIDDEN,
    )
    ORGANIZATION_ACCESS_DENIED = ErrorDefinition(
        "ORGANIZATION_ACCESS_DENIED",
        "User is not a member of this organization",
        status.HTTP_403_FORBIDDEN,
    )
    BRANCH_SCOPE_REQUIRED = ErrorDefinition(
        "BRANCH_SCOPE_REQUIRED",
        "User is not assigned to a branch",
        status.HTTP_403_FORBIDDEN,
    )
    BRANCH_SCOPE_MISMATCH = ErrorDefinition(
        "BRANCH_SCOPE_MISMATCH",
        "Branch is outside of the user's scope",
        status.HTTP_403_FORBIDDEN,
    )
    BRANCH_INACTIVE = ErrorDefinition(
        "BRANCH_INACTIVE",
        "Branch is inactive",
        status.HTTP_400_BAD_REQUEST,
    )
    CURRENT_PASSWORD_REQUIRED = ErrorDefinition(
        "CURRENT_PASSWORD_REQUIRED",
        "Current password is required",
        status.HTTP_400_BAD_REQUEST,
    )
    CURRENT_PASSWORD_INVALID = ErrorDefinition(
        "CURRENT_PASSWORD_INVALID",
        "Current password is incorrect",
        status.HTTP_400_BAD_REQUEST,
    )
    PASSWORD_RESET_NOT_REQUIRED = ErrorDefinition(
        "PASSWORD_RESET_NOT_REQUIRED",
        "User does not require password reset",
        status.HTTP_400_BAD_REQUEST,
    )
    PASSWORD_TOO_SHORT = ErrorDefinition(
        "PASSWORD_TOO_SHORT",
        "Password too short",
        status.HTTP_400_BAD_REQUEST,
    )
    PASSWORD_MUST_DIFFER = ErrorDefinition(
        "PASSWORD_MUST_DIFFER",
        "New password must differ from current password",
        status.HTTP_400_BAD_REQUEST,
    )
    PASSWORD_COMPLEXITY = ErrorDefinition(
        "PASSWORD_COMPLEXITY",
        "Password must include letters and numbers",
        status.HTTP_400_BAD_REQUEST,
    )
    NOT_FOUND = ErrorDefinition(
        "NOT_FOUND",
        "Resource not found",
        status.HTTP_404_NOT_FOUND,
    )
    USER_EMAIL_EXISTS = ErrorDefinition(
        "USER_EMAIL_EXISTS",
        "User email already exists",
        status.HTTP_409_CONFLICT,
    )
    USER_ALREADY_ACTIVE = ErrorDefinition(
        "USER_ALREADY_ACTIVE",
        "User is already active",
        status.HTTP_400_BAD_REQUEST,
    )
    USER_ALREADY_INACTIVE = ErrorDefinition(
        "USER_ALREADY_INACTIVE",
        "User is already inactive",
        status.HTTP_400_BAD_REQUEST,
    )
    ORGANIZATION_EXISTS = ErrorDefinition(
        "ORGANIZATION_EXISTS",
        "Organization already exists",
        status.HTTP_409_CONFLICT,
    )
    CATEGORY_NAME_EXISTS = ErrorDefinition(
        "CATEGORY_NAME_EXISTS",
        "Expense category name already exists",
        status.HTTP_409_CONFLICT,
    )
    PRODUCT_UNAVAILABLE = ErrorDefinition(
        "PRODUCT_UNAVAILABLE",
        "Product is inactive or does not belong to the organization",
        status.HTTP_400_BAD_REQUEST,
    )
    SALE_CLOSED = ErrorDefinition(
        "SALE_CLOSED",
        "Sale belongs to a closed period",
        status.HTTP_409_CONFLICT,
    )
    SALE_VOIDED = ErrorDefinition(
        "SALE_VOIDED",
        "Sale has been voided",
        status.HTTP_409_CONFLICT,
    )
    RELEASE_VERSION_EXISTS = ErrorDefinition(
        "RELEASE_VERSION_EXISTS",
        "Release version already exists",
        status.HTTP_409_CONFLICT,
    )
    DB_UNAVAILABLE = ErrorDefinition(
        "DB_UNAVAILABLE",
        "Database unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    VALIDATION_ERROR = ErrorDefinition(
        "VALIDATION_ERROR",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD = ErrorDefinition(
        "IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD",
        "Idempotency key reused with different payload",
        status.HTTP_409_CONFLICT,
    )
    IDEMPOTENCY_REQUEST_IN_PROGRESS = ErrorDefinition(
        "IDEMPOTENCY_REQUEST_IN_PROGRESS",
        "Idempotency request already in progress",
        status.HTTP_409_CONFLICT,
    )
    IDEMPOTENCY_REPLAY = ErrorDefinition(
        "IDEMPOTENCY_REPLAY",
        "Idempotent replay",
        status.HTTP_200_OK,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)
