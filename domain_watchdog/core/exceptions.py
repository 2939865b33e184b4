"""Custom exceptions and centralized exception handlers."""

from __future__ import annotations

from typing import Any, Sequence

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class AppException(Exception):
    """Base application exception with structured error response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.status_code = status_code or self.status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to RFC 7807 problem+json style response."""
        return {
            "error": self.error_code,
            "message": self.message,
            "status": self.status_code,
            **({"details": self.details} if self.details else {}),
        }


class NotFoundError(AppException):
    """Resource not found."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"
    message = "Resource not found"


class AuthorizationError(AppException):
    """Authorization failed."""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"
    message = "You don't have permission to access this resource"


class ExternalServiceError(AppException):
    """External service error."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "EXTERNAL_SERVICE_ERROR"
    message = "External service temporarily unavailable"


class JobError(AppException):
    """Job execution failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "JOB_ERROR"
    message = "Job execution failed"


# =============================================================================
# RDAP LOOKUP ERRORS
# =============================================================================


class RdapError(ExternalServiceError):
    """Base class for failures while resolving a domain through RDAP."""

    error_code = "RDAP_ERROR"
    message = "RDAP lookup failed"

    def __init__(self, message: str | None = None, ldh_name: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.ldh_name = ldh_name
        if ldh_name:
            self.details.setdefault("ldh_name", ldh_name)


class TransportError(RdapError):
    """Connection, DNS or timeout failure below the HTTP layer."""

    error_code = "RDAP_TRANSPORT_ERROR"
    message = "Could not reach the RDAP server"


class ProtocolError(RdapError):
    """The RDAP server answered with an HTTP error status."""

    error_code = "RDAP_PROTOCOL_ERROR"
    message = "The RDAP server returned an error"

    def __init__(
        self,
        message: str | None = None,
        ldh_name: str | None = None,
        registry_status: int = 0,
        **kwargs: Any,
    ):
        super().__init__(message, ldh_name=ldh_name, **kwargs)
        self.registry_status = registry_status
        self.details["registry_status"] = registry_status

    @property
    def is_not_found(self) -> bool:
        return self.registry_status == status.HTTP_404_NOT_FOUND


class ParseError(RdapError):
    """The RDAP response body is malformed or unexpected."""

    error_code = "RDAP_PARSE_ERROR"
    message = "Malformed RDAP response"


class NoRouteError(RdapError):
    """No RDAP server is known for the domain's TLD."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "RDAP_NO_ROUTE"
    message = "This TLD is not supported"

    def __init__(self, tld: str, message: str | None = None, **kwargs: Any):
        super().__init__(message or f"No RDAP server is known for TLD '{tld}'", **kwargs)
        self.tld = tld
        self.details["tld"] = tld


# =============================================================================
# JOB & POLICY ERRORS
# =============================================================================


class AggregatedRefreshError(JobError):
    """One or more directory refresh steps failed.

    ``first_error`` is the failure of the earliest step in declaration order;
    ``errors`` keeps every failure as ``(step_name, exception)`` pairs.
    """

    error_code = "DIRECTORY_REFRESH_FAILED"

    def __init__(self, errors: Sequence[tuple[str, BaseException]]):
        if not errors:
            raise ValueError("AggregatedRefreshError requires at least one error")
        self.errors = list(errors)
        step, first = self.errors[0]
        self.first_error = first
        self.failed_steps = [name for name, _ in self.errors]
        super().__init__(
            message=f"Directory refresh failed at step '{step}': {first}",
            details={"failed_steps": self.failed_steps},
        )


class PolicyViolationError(AuthorizationError):
    """A limited-mode watchlist rule was breached."""

    error_code = "WATCHLIST_POLICY_VIOLATION"
    message = "This watchlist is not allowed in limited mode"

    def __init__(self, message: str | None = None, rule: str = "", **kwargs: Any):
        super().__init__(message, **kwargs)
        self.rule = rule
        if rule:
            self.details["rule"] = rule


def register_exception_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers."""

    @app.exception_handler(AppException)
    async def app_exception_handler(
        request: Request, exc: AppException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        import logging

        logger = logging.getLogger("domain_watchdog.error")
        logger.exception(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
            },
        )

        from .config import settings

        if settings.debug:
            message = str(exc)
        else:
            message = "An unexpected error occurred"

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "INTERNAL_ERROR",
                "message": message,
                "status": 500,
            },
        )
