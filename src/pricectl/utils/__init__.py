"""Utility modules for logging, errors, retries and the Stripe client."""

from pricectl.utils.retry import RetryStrategy
from pricectl.utils.errors import (
    ErrorCategory,
    ErrorSeverity,
    ErrorContext,
    PricectlError,
    ConstructError,
    EmptyIdentifierError,
    DuplicateIdentifierError,
    MissingStackAncestorError,
    ResourceNotFinalizedError,
    ConfigurationError,
    StateError,
    StateCorruptionError,
    ValidationError,
    CouponDiscountError,
    CouponDurationError,
    CouponCurrencyError,
    RemoteCallError,
    RemoteNotFoundError,
    UnknownResourceKindError,
    ErrorHandler,
    error_handler,
    is_not_found,
)
from pricectl.utils.logging import get_logger, setup_logging, LogContext
from pricectl.utils.stripe_client import StripeClient, StripeService

__all__ = [
    # Stripe client
    'StripeClient',
    'StripeService',

    # Retry
    'RetryStrategy',

    # Errors
    'ErrorCategory',
    'ErrorSeverity',
    'ErrorContext',
    'PricectlError',
    'ConstructError',
    'EmptyIdentifierError',
    'DuplicateIdentifierError',
    'MissingStackAncestorError',
    'ResourceNotFinalizedError',
    'ConfigurationError',
    'StateError',
    'StateCorruptionError',
    'ValidationError',
    'CouponDiscountError',
    'CouponDurationError',
    'CouponCurrencyError',
    'RemoteCallError',
    'RemoteNotFoundError',
    'UnknownResourceKindError',
    'ErrorHandler',
    'error_handler',
    'is_not_found',

    # Logging
    'get_logger',
    'setup_logging',
    'LogContext',
]
