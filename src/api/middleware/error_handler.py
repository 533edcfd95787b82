"""Global error handling middleware and the application error taxonomy."""

import logging
import traceback
from typing import Any, Callable

from fastapi import HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from src.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for API errors.

    Services raise subclasses of this error; the middleware below renders
    them as a typed ErrorResponse so callers always get an error kind they
    can branch on.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_type: str = "api_error",
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        """Initialize API error.

        Args:
            message: Human-readable error message.
            status_code: HTTP status code to return.
            error_type: Error category/type for client handling.
            details: Optional additional error details.
        """
        self.message = message
        self.status_code = status_code
        self.error_type = error_type
        self.details = details
        super().__init__(message)

    def response_fields(self) -> dict[str, Any]:
        """Extra ErrorResponse fields for this error kind."""
        return {}


class NotFoundError(APIError):
    """Referenced order, notification or book does not exist."""

    def __init__(self, message: str = "Resource not found", details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_type="not_found",
            details=details,
        )


class ValidationError(APIError):
    """Bad input. Never retried; the message is safe to show the user."""

    def __init__(self, message: str = "Validation error", details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_type="validation_error",
            details=details,
        )


class PermissionDeniedError(APIError):
    """The acting user does not own the resource or may not perform the action."""

    def __init__(self, message: str = "Access denied", details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_type="permission_denied",
            details=details,
        )


class InvalidTransitionError(APIError):
    """Requested order status change is not an allowed edge."""

    def __init__(self, current: str, target: str, message: str | None = None) -> None:
        self.current = current
        self.target = target
        super().__init__(
            message=message or f"Cannot change order status from '{current}' to '{target}'",
            status_code=status.HTTP_409_CONFLICT,
            error_type="invalid_transition",
            details=[{"loc": ["status"], "msg": f"{current} -> {target}", "type": "invalid_transition"}],
        )

    def response_fields(self) -> dict[str, Any]:
        return {"current_status": self.current, "target_status": self.target}


class GatewayError(APIError):
    """Payment provider failure or timeout. Possibly transient."""

    def __init__(self, message: str = "Payment provider error", timed_out: bool = False) -> None:
        self.timed_out = timed_out
        super().__init__(
            message=message,
            status_code=status.HTTP_502_BAD_GATEWAY,
            error_type="gateway_error",
        )

    def response_fields(self) -> dict[str, Any]:
        return {"retryable": True}


class PersistenceError(APIError):
    """A storage read or write failed."""

    def __init__(self, message: str = "Storage operation failed") -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_type="persistence_error",
        )

    def response_fields(self) -> dict[str, Any]:
        return {"retryable": True}


def create_error_response(
    error_type: str,
    message: str,
    status_code: int,
    details: list[dict[str, Any]] | None = None,
    request_id: str | None = None,
    **fields: Any,
) -> JSONResponse:
    """Create a standardized JSON error response.

    Args:
        error_type: Error category for client handling.
        message: Human-readable error description.
        status_code: HTTP status code.
        details: Optional error details.
        request_id: Optional request ID for tracing.
        **fields: Kind-specific ErrorResponse fields (current_status, retryable).

    Returns:
        JSONResponse: Formatted error response.
    """
    error_response = ErrorResponse.build(
        error_type=error_type,
        message=message,
        details=details,
        request_id=request_id,
        **fields,
    )
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json", exclude_none=True),
    )


async def error_handler_middleware(request: Request, call_next: Callable[[Request], Any]) -> Response:
    """Middleware to catch and format all exceptions.

    Ensures consistent error response format across the application.
    Logs full stack traces for debugging while returning safe messages to clients.

    Args:
        request: The incoming request.
        call_next: Next middleware or route handler.

    Returns:
        Response: Either the successful response or formatted error response.
    """
    # Extract request ID if present (can be set by upstream middleware/load balancer)
    request_id = request.headers.get("X-Request-ID")

    try:
        response = await call_next(request)
        return response

    except APIError as e:
        # Upstream failures (gateway, storage) are errors; caller mistakes are warnings
        log = logger.error if e.status_code >= 500 else logger.warning
        log(
            "API error: %s - %s",
            e.error_type,
            e.message,
            extra={"request_id": request_id, "status_code": e.status_code},
        )
        return create_error_response(
            error_type=e.error_type,
            message=e.message,
            status_code=e.status_code,
            details=e.details,
            request_id=request_id,
            **e.response_fields(),
        )

    except HTTPException as e:
        logger.warning(
            "HTTP exception: %s - %s",
            e.status_code,
            e.detail,
            extra={"request_id": request_id},
        )
        return create_error_response(
            error_type="http_error",
            message=str(e.detail),
            status_code=e.status_code,
            request_id=request_id,
        )

    except Exception as e:
        # Unexpected exceptions - log full stack trace
        logger.error(
            "Unhandled exception: %s\n%s",
            str(e),
            traceback.format_exc(),
            extra={"request_id": request_id},
        )
        return create_error_response(
            error_type="internal_error",
            message="An unexpected error occurred",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            request_id=request_id,
        )
