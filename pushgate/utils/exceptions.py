"""Custom exception classes and error handling utilities."""
from typing import Any, Dict, Optional

from loguru import logger

from pushgate.schemas.results import RequestResult


class PushGatewayError(Exception):
    """Base exception for the gateway."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ProviderConfigurationError(PushGatewayError):
    """Push provider credentials are missing or unusable."""
    pass


class ProviderError(PushGatewayError):
    """A call to the upstream push provider failed."""
    pass


class ProviderRequestError(ProviderError):
    """The provider client rejected the arguments before any call was made."""
    pass


class StoreError(PushGatewayError):
    """Relational store operation errors."""
    pass


def result_from_exception(error: Exception, operation: str, **context: Any) -> RequestResult:
    """Log an unexpected exception and convert it into the generic 500 result."""
    logger.exception("Unexpected gateway error", operation=operation, error=str(error), **context)
    return RequestResult.was_exception()
