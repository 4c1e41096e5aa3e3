"""Error handling framework for construct, state and Stripe operations."""

from typing import Optional, Dict, Any, List
from enum import Enum
from dataclasses import dataclass

import stripe

from pricectl.utils.logging import get_logger

logger = get_logger(__name__)

# Stripe error code for lookups of objects that do not exist
RESOURCE_MISSING = 'resource_missing'


class ErrorCategory(Enum):
    """Categories of errors that can occur during a pricectl run."""
    CONSTRUCT = "construct"
    CONFIGURATION = "configuration"
    REMOTE = "remote"
    NETWORK = "network"
    STATE = "state"
    PROVISIONING = "provisioning"
    CREDENTIAL = "credential"
    PERMISSION = "permission"
    RATE_LIMIT = "rate_limit"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    CRITICAL = "critical"  # Run cannot continue
    ERROR = "error"  # Resource failed but the run can continue
    WARNING = "warning"  # Non-fatal issue
    INFO = "info"  # Informational message


@dataclass
class ErrorContext:
    """Context information for an error."""
    resource_id: Optional[str] = None
    resource_type: Optional[str] = None
    operation: Optional[str] = None
    stripe_code: Optional[str] = None
    http_status: Optional[int] = None
    request_id: Optional[str] = None
    additional_info: Optional[Dict[str, Any]] = None


class PricectlError(Exception):
    """Base exception for pricectl errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None
    ):
        """Initialize pricectl error.

        Args:
            message: Human-readable error message
            category: Error category
            severity: Error severity
            context: Additional context about the error
            cause: Original exception that caused this error
            suggestions: List of suggested fixes
        """
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.cause = cause
        self.suggestions = suggestions or []

    def to_user_message(self) -> str:
        """Convert error to user-friendly message.

        Returns:
            Formatted error message for display to user
        """
        lines = [f"{self.severity.value.upper()}: {self.message}"]

        if self.context.resource_id:
            lines.append(f"   Resource: {self.context.resource_id}")
        if self.context.operation:
            lines.append(f"   Operation: {self.context.operation}")

        if self.cause:
            lines.append(f"   Cause: {str(self.cause)}")

        if self.suggestions:
            lines.append("\nSuggested fixes:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"   {i}. {suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error
        """
        return {
            'message': self.message,
            'category': self.category.value,
            'severity': self.severity.value,
            'context': {
                'resource_id': self.context.resource_id,
                'resource_type': self.context.resource_type,
                'operation': self.context.operation,
                'stripe_code': self.context.stripe_code,
                'http_status': self.context.http_status,
                'request_id': self.context.request_id,
                'additional_info': self.context.additional_info
            },
            'cause': str(self.cause) if self.cause else None,
            'suggestions': self.suggestions
        }


class ConstructError(PricectlError):
    """Error in the shape of the construct tree (a bug in the stack definition)."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CONSTRUCT,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class EmptyIdentifierError(ConstructError):
    """A construct was given an empty or whitespace-only id."""

    def __init__(self):
        super().__init__('Construct id must be a non-empty string')


class DuplicateIdentifierError(ConstructError):
    """A scope already has a child with the requested id."""

    def __init__(self, construct_id: str, scope_path: str):
        super().__init__(
            f"There is already a construct with id '{construct_id}' in scope '{scope_path}'",
            suggestions=['Give each construct a unique id within its parent scope']
        )
        self.construct_id = construct_id
        self.scope_path = scope_path


class MissingStackAncestorError(ConstructError):
    """A resource was created outside of any Stack."""

    def __init__(self, path: str):
        super().__init__(
            f"Resource {path} must be created within a Stack",
            suggestions=['Pass a Stack (or a construct nested under one) as the scope']
        )
        self.path = path


class ResourceNotFinalizedError(ConstructError):
    """A resource subclass never called _finalize() at the end of its constructor."""

    def __init__(self, path: str):
        super().__init__(f"Resource {path} was not finalized; call _finalize() at the end of __init__")
        self.path = path


class ConfigurationError(PricectlError):
    """Error in configuration file or settings."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class StateError(PricectlError):
    """Error related to state management."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.STATE,
            severity=ErrorSeverity.WARNING,
            **kwargs
        )


class StateCorruptionError(StateError):
    """State file could not be used; callers recover with an empty state."""
    pass


class ValidationError(PricectlError):
    """Invalid resource properties, caught before any remote call."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('severity', ErrorSeverity.CRITICAL)
        super().__init__(
            message,
            category=ErrorCategory.VALIDATION,
            **kwargs
        )


class CouponDiscountError(ValidationError):
    """Coupon must set exactly one of amount_off and percent_off."""

    def __init__(self):
        super().__init__('Exactly one of amount_off or percent_off must be specified')


class CouponDurationError(ValidationError):
    """Coupon duration settings are inconsistent."""
    pass


class CouponCurrencyError(ValidationError):
    """Coupon with amount_off is missing its currency."""

    def __init__(self):
        super().__init__('currency is required when amount_off is specified')


class RemoteCallError(PricectlError):
    """Any failed call against the Stripe API."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        http_status: Optional[int] = None,
        request_id: Optional[str] = None,
        **kwargs
    ):
        kwargs.setdefault('category', ErrorCategory.REMOTE)
        kwargs.setdefault('severity', ErrorSeverity.ERROR)
        super().__init__(message, **kwargs)
        self.code = code
        self.http_status = http_status
        self.request_id = request_id
        self.context.stripe_code = code
        self.context.http_status = http_status
        self.context.request_id = request_id


class RemoteNotFoundError(RemoteCallError):
    """The requested Stripe object does not exist."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('code', RESOURCE_MISSING)
        kwargs.setdefault('http_status', 404)
        super().__init__(message, **kwargs)


class UnknownResourceKindError(PricectlError):
    """Manifest entry of a kind no provisioner handles."""

    def __init__(self, kind: str):
        super().__init__(
            f"Unknown resource kind: {kind}",
            category=ErrorCategory.PROVISIONING,
            severity=ErrorSeverity.ERROR
        )
        self.kind = kind


def is_not_found(error: BaseException) -> bool:
    """Check whether an error is Stripe's resource_missing.

    Works for RemoteNotFoundError, raw Stripe SDK errors and any test double
    that carries a ``code`` attribute.
    """
    return getattr(error, 'code', None) == RESOURCE_MISSING


class ErrorHandler:
    """Handles and categorizes errors from Stripe and other sources."""

    # Mapping of Stripe error codes to error categories and suggestions
    STRIPE_ERROR_MAPPING = {
        'api_key_expired': {
            'category': ErrorCategory.CREDENTIAL,
            'message': 'Stripe API key has expired',
            'suggestions': [
                'Roll a new secret key in the Stripe dashboard',
                'Update STRIPE_SECRET_KEY with the new key'
            ]
        },
        'rate_limit': {
            'category': ErrorCategory.RATE_LIMIT,
            'message': 'Stripe API rate limit exceeded',
            'suggestions': [
                'Reduce the number of resources deployed per run',
                'Retry the operation (automatic retry enabled)'
            ]
        },
        'resource_already_exists': {
            'category': ErrorCategory.PROVISIONING,
            'message': 'Resource already exists',
            'suggestions': [
                'Coupons use their logical id as Stripe id; pick a different id',
                'Delete the existing object if it is no longer needed'
            ]
        },
        'parameter_invalid_empty': {
            'category': ErrorCategory.VALIDATION,
            'message': 'A required parameter was empty',
            'suggestions': ['Check the resource properties in the stack definition']
        },
        'parameter_unknown': {
            'category': ErrorCategory.VALIDATION,
            'message': 'Unknown parameter sent to Stripe',
            'suggestions': [
                'Check that the pinned API version supports this field',
                'Review the resource properties in the stack definition'
            ]
        },
        'parameter_missing': {
            'category': ErrorCategory.VALIDATION,
            'message': 'A required parameter is missing',
            'suggestions': ['Check the resource properties in the stack definition']
        },
    }

    def __init__(self):
        """Initialize error handler."""
        self.logger = get_logger(__name__)

    def handle_exception(
        self,
        error: Exception,
        context: Optional[ErrorContext] = None
    ) -> PricectlError:
        """Handle an exception and convert to PricectlError.

        Args:
            error: The exception to handle
            context: Additional context about where the error occurred

        Returns:
            PricectlError with categorization and suggestions
        """
        context = context or ErrorContext()

        if isinstance(error, PricectlError):
            return error

        if isinstance(error, stripe.StripeError):
            return self._handle_stripe_error(error, context)

        if isinstance(error, (ConnectionError, TimeoutError)):
            return RemoteCallError(
                message=f'Network error: {str(error)}',
                category=ErrorCategory.NETWORK,
                context=context,
                cause=error,
                suggestions=[
                    'Check your internet connection',
                    'Check if a VPN or proxy is interfering',
                    'Retry the operation (automatic retry enabled)'
                ]
            )

        return PricectlError(
            message=str(error),
            category=ErrorCategory.UNKNOWN,
            severity=ErrorSeverity.ERROR,
            context=context,
            cause=error,
            suggestions=['Check logs for more details']
        )

    def _handle_stripe_error(
        self,
        error: 'stripe.StripeError',
        context: ErrorContext
    ) -> RemoteCallError:
        """Handle an error raised by the Stripe SDK.

        Args:
            error: The Stripe error
            context: Error context

        Returns:
            RemoteNotFoundError for missing objects, RemoteCallError otherwise
        """
        code = getattr(error, 'code', None)
        http_status = getattr(error, 'http_status', None)
        request_id = getattr(error, 'request_id', None)
        error_message = getattr(error, 'user_message', None) or str(error)

        if code == RESOURCE_MISSING:
            return RemoteNotFoundError(
                error_message,
                http_status=http_status,
                request_id=request_id,
                context=context,
                cause=error
            )

        if isinstance(error, stripe.AuthenticationError):
            return RemoteCallError(
                f"Stripe authentication failed: {error_message}",
                code=code,
                http_status=http_status,
                request_id=request_id,
                category=ErrorCategory.CREDENTIAL,
                severity=ErrorSeverity.CRITICAL,
                context=context,
                cause=error,
                suggestions=[
                    'Check that STRIPE_SECRET_KEY holds a valid secret key',
                    'Test and live mode keys are not interchangeable'
                ]
            )

        if isinstance(error, stripe.PermissionError):
            return RemoteCallError(
                f"Stripe denied the request: {error_message}",
                code=code,
                http_status=http_status,
                request_id=request_id,
                category=ErrorCategory.PERMISSION,
                context=context,
                cause=error,
                suggestions=['Restricted keys need write access to products, prices, coupons and billing']
            )

        if isinstance(error, stripe.APIConnectionError):
            return RemoteCallError(
                f"Could not reach Stripe: {error_message}",
                code=code,
                http_status=http_status,
                request_id=request_id,
                category=ErrorCategory.NETWORK,
                context=context,
                cause=error,
                suggestions=['Check your network connectivity', 'Retry the operation']
            )

        error_info = self.STRIPE_ERROR_MAPPING.get(code or '')
        if error_info:
            return RemoteCallError(
                f"{error_info['message']}: {error_message}",
                code=code,
                http_status=http_status,
                request_id=request_id,
                category=error_info['category'],
                context=context,
                cause=error,
                suggestions=error_info['suggestions']
            )

        return RemoteCallError(
            f"Stripe error ({code or http_status or 'unknown'}): {error_message}",
            code=code,
            http_status=http_status,
            request_id=request_id,
            context=context,
            cause=error,
            suggestions=[f'Stripe request id: {request_id}'] if request_id else []
        )

    def log_error(self, error: PricectlError):
        """Log an error with appropriate level.

        Args:
            error: The error to log
        """
        log_message = error.to_user_message()

        if error.severity in (ErrorSeverity.CRITICAL, ErrorSeverity.ERROR):
            self.logger.error(log_message)
        elif error.severity == ErrorSeverity.WARNING:
            self.logger.warning(log_message)
        else:
            self.logger.info(log_message)

        self.logger.debug(f"Error details: {error.to_dict()}")


# Global error handler instance
error_handler = ErrorHandler()
