"""Stripe Product construct."""

from typing import Any, Dict, List, Optional

from pricectl.core.construct import Construct
from pricectl.core.manifest import ResourceKind
from pricectl.core.resource import Resource, omit_unset


class Product(Resource):
    """A Stripe Product.

    Example:
        product = Product(stack, 'Premium', name='Premium Plan')
    """

    kind = ResourceKind.PRODUCT

    def __init__(
        self,
        scope: Construct,
        id: str,
        name: str,
        active: bool = True,
        description: Optional[str] = None,
        images: Optional[List[str]] = None,
        url: Optional[str] = None,
        unit_label: Optional[str] = None,
        statement_descriptor: Optional[str] = None,
        tax_code: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
        physical_id: Optional[str] = None
    ):
        super().__init__(scope, id, physical_id=physical_id)
        self.name = name
        self.active = active
        self.description = description
        self.images = images
        self.url = url
        self.unit_label = unit_label
        self.statement_descriptor = statement_descriptor
        self.tax_code = tax_code
        self.metadata = metadata

        self._finalize()

    def synthesize_properties(self) -> Dict[str, Any]:
        return omit_unset({
            'name': self.name,
            'active': self.active,
            'description': self.description,
            'images': list(self.images) if self.images is not None else None,
            'metadata': dict(self.metadata) if self.metadata is not None else None,
            'url': self.url,
            'unit_label': self.unit_label,
            'statement_descriptor': self.statement_descriptor,
            'tax_code': self.tax_code,
        })
