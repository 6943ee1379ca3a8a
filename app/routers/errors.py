"""Translate billing-core exceptions into HTTP errors for interactive endpoints."""
from fastapi import HTTPException, status

from app.services.errors import (
    BillingError,
    ConfigurationError,
    IntegrationError,
    NotFoundError,
    PlatformGatewayNotConfiguredError,
    RenewalApiNotConfiguredError,
    RenewalTransportError,
)


def to_http_exception(exc: BillingError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (RenewalApiNotConfiguredError, PlatformGatewayNotConfiguredError)):
        # System misconfiguration, not something the reseller can fix
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    if isinstance(exc, ConfigurationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, RenewalTransportError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": str(exc), "retry_entry_id": exc.retry_entry_id},
        )
    if isinstance(exc, IntegrationError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
