"""
Centralized error handling and user-friendly error messages.
"""
import logging
from fastapi import HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error."""
    def __init__(self, message: str, status_code: int = 500, details: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Validation error."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)


class NotFoundError(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Resource not found", details: dict | None = None):
        super().__init__(message, status_code=404, details=details)


class ConflictError(AppError):
    """Resource already exists."""
    def __init__(self, message: str = "Resource already exists", details: dict | None = None):
        super().__init__(message, status_code=409, details=details)


class UnauthorizedError(AppError):
    """Unauthorized access error."""
    def __init__(self, message: str = "Unauthorized access", details: dict | None = None):
        super().__init__(message, status_code=401, details=details)


class ForbiddenError(AppError):
    """Forbidden access error."""
    def __init__(self, message: str = "Access forbidden", details: dict | None = None):
        super().__init__(message, status_code=403, details=details)


class DependencyUnavailable(AppError):
    """The database (or another backing service) could not be reached. Never retried here."""
    def __init__(self, message: str = "Database operation failed", details: dict | None = None):
        super().__init__(message, status_code=503, details=details)


class NotificationFailure(AppError):
    """
    Background notification failure. Only raised inside the dispatcher worker,
    where it is logged and dropped.
    """
    def __init__(self, message: str = "Notification delivery failed", details: dict | None = None):
        super().__init__(message, status_code=500, details=details)


# User-friendly error messages
ERROR_MESSAGES = {
    # Applications
    "application_not_found": "Application not found. It may have been withdrawn.",
    "already_applied": "Candidate has already applied to this job.",
    "status_not_found": "Application status not found.",
    "empty_bulk_ids": "At least one application id is required.",
    "invalid_score_range": "min_score must not be greater than max_score.",

    # Jobs / candidates / positions
    "job_not_found": "Job posting not found or has been removed.",
    "candidate_not_found": "Candidate not found.",
    "position_not_found": "Position not found.",

    # Scoring
    "score_not_found": "No score found for this application.",
    "config_not_found": "No scoring configuration found for this position.",
    "invalid_weights": "Total weight must equal 100%.",

    # Notifications
    "notification_not_found": "Notification not found.",

    # General
    "unauthorized": "Please login to access this feature.",
    "forbidden": "You don't have permission to access this resource.",
    "not_found": "The requested resource was not found.",
    "server_error": "Something went wrong on our end. Please try again later.",
    "database_error": "Database connection issue. Please try again later.",
    "validation_error": "Please check your input and try again.",
}


def get_error_message(error_key: str, default: str | None = None) -> str:
    """Get a user-friendly error message."""
    return ERROR_MESSAGES.get(error_key, default or ERROR_MESSAGES["server_error"])


def to_http_exception(error: AppError) -> HTTPException:
    """Translate a service-layer error into the HTTPException the routers raise."""
    if error.status_code >= 500:
        logger.error("Service error: %s", error.message)
    return HTTPException(status_code=error.status_code, detail=error.message)


def handle_database_error(error: Exception, operation: str = "") -> HTTPException:
    """Handle database errors with user-friendly messages."""
    logger.error(f"Database error during {operation}: {error}")

    if isinstance(error, OperationalError):
        return to_http_exception(DependencyUnavailable(get_error_message("database_error")))

    error_str = str(error).lower()

    # Detect specific DB errors
    if "duplicate" in error_str or "unique" in error_str:
        return HTTPException(
            status_code=409,
            detail="This record already exists. Please check your input."
        )

    if "foreign key" in error_str:
        return HTTPException(
            status_code=400,
            detail="Invalid reference. The related record may have been deleted."
        )

    if "connection" in error_str or "operational" in error_str:
        return to_http_exception(DependencyUnavailable(get_error_message("database_error")))

    return HTTPException(
        status_code=500,
        detail=get_error_message("server_error")
    )


def create_error_response(
    status_code: int,
    message: str,
    details: dict | None = None
) -> JSONResponse:
    """Create a standardized error response."""
    content = {
        "success": False,
        "error": message,
        "status_code": status_code,
    }

    if details:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content
    )
