"""Error types for registry operations.

Every rejected operation raises a RegistryError subclass before any state
is touched. Each error carries a machine-readable code and category so
callers (and any transport layered on top) can switch on them.

Usage:
    from nft_registry.registry.errors import TokenNotFoundError, UnauthorizedError

    try:
        registry.update_royalty("mallory", 1, 900)
    except UnauthorizedError as e:
        response = e.to_dict()
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error classification.

    - VALIDATION: Caller provided bad input
    - PERMISSION: Caller not authorized
    - RESOURCE: Token does not exist
    """

    VALIDATION = "validation"  # Invalid input, bad arguments
    PERMISSION = "permission"  # Not authorized, wrong holder
    RESOURCE = "resource"  # Not found


class ErrorCode(str, Enum):
    """Specific error codes for programmatic handling."""

    # Validation errors
    INVALID_ARGUMENT = "invalid_argument"
    INVALID_IDENTITY = "invalid_identity"

    # Permission errors
    NOT_OWNER = "not_owner"
    NOT_AUTHORIZED = "not_authorized"

    # Resource errors
    NOT_FOUND = "not_found"


@dataclass
class ErrorResponse:
    """Standardized error response.

    All error responses include:
    - success: Always False
    - error: Human-readable message
    - code: Machine-readable error code
    - category: Error category (validation, permission, resource)
    - retriable: Whether the operation should be retried as-is
    - details: Optional additional context
    """

    success: bool = False
    error: str = ""
    code: str = ""
    category: str = ""
    retriable: bool = False
    details: dict[str, object] | None = None

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for serialization."""
        result: dict[str, object] = {
            "success": self.success,
            "error": self.error,
            "code": self.code,
            "category": self.category,
            "retriable": self.retriable,
        }
        if self.details:
            result["details"] = self.details
        return result


class RegistryError(Exception):
    """Base class for all rejected registry operations."""

    code: ErrorCode = ErrorCode.INVALID_ARGUMENT
    category: ErrorCategory = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        **details: object,
    ) -> None:
        self.message = message
        if code is not None:
            self.code = code
        self.details = dict(details)
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        # Rejections are caller-correctable, never retriable unchanged
        return ErrorResponse(
            error=self.message,
            code=self.code.value,
            category=self.category.value,
            retriable=False,
            details=self.details or None,
        )

    def to_dict(self) -> dict[str, object]:
        """Convert to the standard error response dict."""
        return self.to_response().to_dict()


class TokenNotFoundError(RegistryError):
    """Raised when an operation references a token id that was never minted."""

    code = ErrorCode.NOT_FOUND
    category = ErrorCategory.RESOURCE

    def __init__(self, token_id: int) -> None:
        self.token_id = token_id
        super().__init__(f"Token {token_id} does not exist", token_id=token_id)


class UnauthorizedError(RegistryError):
    """Raised when the caller lacks the right the operation requires."""

    code = ErrorCode.NOT_AUTHORIZED
    category = ErrorCategory.PERMISSION

    def __init__(
        self,
        caller: str,
        operation: str,
        message: str | None = None,
        code: ErrorCode | None = None,
        **details: object,
    ) -> None:
        self.caller = caller
        self.operation = operation
        super().__init__(
            message or f"'{caller}' is not authorized to {operation}",
            code=code,
            caller=caller,
            operation=operation,
            **details,
        )


class InvalidIdentityError(RegistryError):
    """Raised when an identity argument is empty or not a string."""

    code = ErrorCode.INVALID_IDENTITY
    category = ErrorCategory.VALIDATION

    def __init__(self, field: str, value: object) -> None:
        self.field = field
        self.value = value
        super().__init__(
            f"{field} must be a non-empty identity, got {value!r}",
            field=field,
        )


class InvalidArgumentError(RegistryError):
    """Raised for malformed non-identity arguments (e.g. a negative royalty rate)."""

    code = ErrorCode.INVALID_ARGUMENT
    category = ErrorCategory.VALIDATION


__all__ = [
    "ErrorCategory",
    "ErrorCode",
    "ErrorResponse",
    "RegistryError",
    "TokenNotFoundError",
    "UnauthorizedError",
    "InvalidIdentityError",
    "InvalidArgumentError",
]
