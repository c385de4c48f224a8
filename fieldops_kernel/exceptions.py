"""
Typed Exception Hierarchy for FieldOps.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers catch by type and read structured attributes; they never parse
message strings.  Every exception class carries:
  1. A TYPED class (catch by type, not message)
  2. A class-level CODE attribute (machine-readable, API-safe)
  3. Structured DATA as public attributes (entity ids, reasons)

The trusted procedures return failures as plain dicts ({success, code,
message, details}).  ``error_from_code`` rebuilds the typed exception on
the calling side so module services raise the same class the procedure
raised.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    FieldOpsError (base)
    |
    +-- ValidationError          malformed or missing input
    +-- NotFoundError            absent record, or hidden by tenant scope
    +-- ConflictError            invalid state transition / duplicate
    +-- ForbiddenError           tenant or role violation
    +-- AccessCodeError
    |   +-- AlreadyUsedError     code was already redeemed
    |   +-- ExpiredError         code is past expires_at
    +-- RemoteError              store/network failure or unclassified error

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                | When Raised
--------------------|------------------------------------------------------
VALIDATION_ERROR    | Missing company, empty name, bad email, amount <= 0
NOT_FOUND           | Unknown id, foreign-company id, unknown or mismatched code
CONFLICT            | Not pending, duplicate submission, code space exhausted
FORBIDDEN           | No company, cross-tenant access, non-admin mutation
ACCESS_CODE_USED    | Redeeming a code twice
ACCESS_CODE_EXPIRED | Redeeming after expires_at
REMOTE_ERROR        | Database failure or any unclassified exception
"""

from typing import Any


class FieldOpsError(Exception):
    """
    Base exception for all FieldOps errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.  Constructor arguments are stored as public
    attributes so ``details`` can round-trip the error through a procedure
    result.
    """

    code: str = "FIELDOPS_ERROR"

    @property
    def details(self) -> dict[str, Any]:
        """Structured fields of this error (constructor keyword arguments)."""
        return {k: v for k, v in vars(self).items() if not k.startswith("_")}


class ValidationError(FieldOpsError):
    """Input failed validation before any write."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class NotFoundError(FieldOpsError):
    """
    Record does not exist or is not visible to the caller.

    Records that belong to another company are reported as not found so
    that their existence is never revealed.
    """

    code: str = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class ConflictError(FieldOpsError):
    """Operation conflicts with the current state of a record."""

    code: str = "CONFLICT"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Conflict on {entity_type} {entity_id}: {reason}")


class ForbiddenError(FieldOpsError):
    """Caller is not allowed to perform the operation."""

    code: str = "FORBIDDEN"

    def __init__(self, reason: str, company_id: str | None = None):
        self.reason = reason
        self.company_id = company_id
        super().__init__(f"Forbidden: {reason}")


# Access code exceptions


class AccessCodeError(FieldOpsError):
    """Base exception for access code redemption failures."""

    code: str = "ACCESS_CODE_ERROR"


class AlreadyUsedError(AccessCodeError):
    """Access code has already been redeemed."""

    code: str = "ACCESS_CODE_USED"

    def __init__(self, access_code: str):
        self.access_code = access_code
        super().__init__(f"Access code already used: {access_code}")


class ExpiredError(AccessCodeError):
    """Access code is past its expiry instant."""

    code: str = "ACCESS_CODE_EXPIRED"

    def __init__(self, access_code: str, expires_at: str):
        self.access_code = access_code
        self.expires_at = expires_at
        super().__init__(f"Access code {access_code} expired at {expires_at}")


class RemoteError(FieldOpsError):
    """
    Store or network failure, or an exception nobody classified.

    The diagnostic text is for logs only; users see the catalog message.
    """

    code: str = "REMOTE_ERROR"

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Remote failure during {operation}: {detail}")


_ERRORS_BY_CODE: dict[str, type[FieldOpsError]] = {
    cls.code: cls
    for cls in (
        ValidationError,
        NotFoundError,
        ConflictError,
        ForbiddenError,
        AlreadyUsedError,
        ExpiredError,
        RemoteError,
    )
}


def error_from_code(
    code: str | None,
    details: dict[str, Any] | None = None,
    operation: str = "procedure",
) -> FieldOpsError:
    """
    Rebuild a typed exception from a machine-readable code and its details.

    Unknown codes, or details that do not fit the class constructor, produce
    a RemoteError so a malformed procedure result never escapes untyped.
    """
    cls = _ERRORS_BY_CODE.get(code or "")
    if cls is None:
        return RemoteError(operation, f"unknown error code {code!r}")
    try:
        return cls(**(details or {}))
    except TypeError:
        return RemoteError(operation, f"malformed details for {code}")
