"""Utility helpers package."""

from pushgate.utils.exceptions import (
    ProviderConfigurationError,
    ProviderError,
    ProviderRequestError,
    PushGatewayError,
    StoreError,
    result_from_exception,
)
from pushgate.utils.validation import RequestValidator

__all__ = [
    "ProviderConfigurationError",
    "ProviderError",
    "ProviderRequestError",
    "PushGatewayError",
    "StoreError",
    "result_from_exception",
    "RequestValidator",
]
