"""Stripe API client adapter.

The reconciler talks to Stripe through a small, dict-in/dict-out surface so
that provisioners never depend on SDK object types. ``StripeClient`` exposes
one service object per resource kind:

    client.products   create/retrieve/update/delete/search
    client.prices     create/retrieve/update/search
    client.coupons    create/retrieve/delete
    client.features   create/update/list
    client.meters     create/update/list/deactivate

Every SDK failure is retried when transient and then translated into
``RemoteNotFoundError`` / ``RemoteCallError``.
"""

from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Type

import stripe

from pricectl.utils.errors import ErrorContext, error_handler
from pricectl.utils.logging import get_logger
from pricectl.utils.retry import RetryStrategy

logger = get_logger(__name__)

DEFAULT_API_VERSION = '2024-12-18.acacia'


def _plain_values(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {key: _plain_values(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain_values(item) for item in value]
    return value


def to_plain(obj: Any) -> Any:
    """Convert a StripeObject (or list of them) into plain dicts and lists.

    Decimal-string fields such as ``unit_amount_decimal`` come back from the
    SDK as ``Decimal``; they are returned as strings, the form they are
    declared in.
    """
    if obj is None:
        return None
    if isinstance(obj, list):
        return [to_plain(item) for item in obj]
    if hasattr(obj, 'to_dict_recursive'):
        return _plain_values(obj.to_dict_recursive())
    if hasattr(obj, 'to_dict'):
        return _plain_values(obj.to_dict())
    return _plain_values(obj)


class StripeService:
    """Operations for one Stripe resource class."""

    def __init__(
        self,
        name: str,
        resource_cls: Type[Any],
        request_options: Dict[str, Any],
        retry_strategy: RetryStrategy,
        expand: Optional[List[str]] = None
    ):
        """Initialize a service wrapper.

        Args:
            name: Short name used in logs (e.g. 'products')
            resource_cls: Stripe SDK resource class (e.g. stripe.Product)
            request_options: api_key / stripe_version passed to every call
            retry_strategy: Retry policy for transient failures
            expand: Fields to expand on retrieve, search and list results
        """
        self.name = name
        self.resource_cls = resource_cls
        self.request_options = request_options
        self.retry_strategy = retry_strategy
        self.expand = expand or []

    def create(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return self._call('create', self.resource_cls.create, **params)

    def retrieve(self, object_id: str) -> Dict[str, Any]:
        kwargs = {'expand': list(self.expand)} if self.expand else {}
        return self._call('retrieve', self.resource_cls.retrieve, object_id, **kwargs)

    def update(self, object_id: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return self._call('update', self.resource_cls.modify, object_id, **params)

    def delete(self, object_id: str) -> Dict[str, Any]:
        return self._call('delete', self.resource_cls.delete, object_id)

    def deactivate(self, object_id: str) -> Dict[str, Any]:
        return self._call('deactivate', self.resource_cls.deactivate, object_id)

    def search(self, query: str, limit: int = 1) -> List[Dict[str, Any]]:
        kwargs: Dict[str, Any] = {'query': query, 'limit': limit}
        if self.expand:
            kwargs['expand'] = [f'data.{field}' for field in self.expand]
        result = self._call('search', self.resource_cls.search, **kwargs)
        return result.get('data', [])

    def list(self, limit: int = 100) -> List[Dict[str, Any]]:
        result = self._call('list', self.resource_cls.list, limit=limit)
        return result.get('data', [])

    def _call(self, operation: str, func: Callable[..., Any], *args, **kwargs) -> Dict[str, Any]:
        """Invoke an SDK method with retries and translate failures.

        Raises:
            RemoteNotFoundError: Stripe reported resource_missing
            RemoteCallError: Any other failure
        """
        logger.debug(f"stripe {self.name}.{operation} {args}")
        try:
            result = self.retry_strategy.execute_with_retry(
                func, *args, **kwargs, **self.request_options
            )
        except Exception as e:
            context = ErrorContext(
                resource_type=self.name,
                operation=operation,
                additional_info={'args': [str(arg) for arg in args]}
            )
            raise error_handler.handle_exception(e, context) from e
        return to_plain(result) or {}


class StripeClient:
    """Stripe client with one service per supported resource kind."""

    def __init__(
        self,
        api_key: str,
        api_version: Optional[str] = None,
        retry_strategy: Optional[RetryStrategy] = None
    ):
        """Initialize the Stripe client.

        Args:
            api_key: Stripe secret key
            api_version: Stripe API version to pin
            retry_strategy: Retry policy (defaults to RetryStrategy())
        """
        self.api_version = api_version or DEFAULT_API_VERSION
        self.retry_strategy = retry_strategy or RetryStrategy()
        request_options = {'api_key': api_key, 'stripe_version': self.api_version}

        self.products = StripeService('products', stripe.Product, request_options, self.retry_strategy)
        self.prices = StripeService(
            'prices', stripe.Price, request_options, self.retry_strategy, expand=['tiers']
        )
        self.coupons = StripeService(
            'coupons', stripe.Coupon, request_options, self.retry_strategy, expand=['applies_to']
        )
        self.features = StripeService(
            'features', stripe.entitlements.Feature, request_options, self.retry_strategy
        )
        self.meters = StripeService(
            'meters', stripe.billing.Meter, request_options, self.retry_strategy
        )

        logger.info(f"Created Stripe client - API version: {self.api_version}, "
                    f"mode: {'live' if api_key.startswith(('sk_live', 'rk_live')) else 'test'}")
