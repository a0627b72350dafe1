# core/errors.py

"""
Typed errors raised by the maintenance core.

The core never builds HTTP responses. Each error carries the status code the
API layer maps it to (see the exception handler in main.py):

    PermissionDenied   → 403
    NotFound           → 404
    InvalidTransition  → 409
    Conflict           → 409
    Expired            → 410
    ValidationError    → 422
    StoreError         → 503
"""

from typing import Optional


class MaintenanceError(Exception):
    """Base class for every guard failure in the core."""

    status_code: int = 400
    default_message: str = "Maintenance request error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class PermissionDenied(MaintenanceError):
    status_code = 403
    default_message = "You do not have permission to perform this action"


class InvalidTransition(MaintenanceError):
    status_code = 409
    default_message = "Requested status change is not allowed"


class ValidationError(MaintenanceError):
    status_code = 422
    default_message = "Invalid or missing field"


class Conflict(MaintenanceError):
    status_code = 409
    default_message = "Request was modified by someone else; reload and retry"


class NotFound(MaintenanceError):
    status_code = 404
    default_message = "Not found"


class Expired(MaintenanceError):
    status_code = 410
    default_message = "This link has expired"


class StoreError(MaintenanceError):
    """Data Store failure that is not a guard failure (transient, infra)."""

    status_code = 503
    default_message = "Data store unavailable"


# -----------------------------------------------------
# Supabase error helpers
# -----------------------------------------------------
def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1: PostgREST / GoTrue errors expose .message
    message = getattr(error, "message", None)
    if message:
        return str(message)

    # Case 2: errors with args (common)
    if getattr(error, "args", None):
        return str(error.args[0])

    # Case 3: plain string fallback
    return str(error) or "Unknown Supabase error"


def handle_supabase_error(error: Exception, operation: str = "Database operation") -> MaintenanceError:
    """
    Translate a Supabase failure into a core error.
    Returns the error (doesn't raise) so the caller can re-raise with context.
    """
    from core.logging_config import logger

    error_detail = extract_supabase_error(error)
    logger.error(f"{operation}: {error_detail}")

    error_lower = error_detail.lower()
    if "duplicate" in error_lower or "unique" in error_lower:
        return Conflict(f"{operation}: Record already exists")
    elif "foreign key" in error_lower:
        return ValidationError(f"{operation}: Invalid reference")
    elif "not found" in error_lower or "does not exist" in error_lower:
        return NotFound(f"{operation}: Resource not found")
    return StoreError(f"{operation} failed")
