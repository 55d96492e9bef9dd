"""Catalog and inventory helpers.

Seeds line items from catalog records and fetches those records from the
inventory REST API. The engine itself never calls the network; callers
fetch here and hand the resulting line items to ``compute_breakdown``.
"""

import logging
from typing import Any, Optional

import requests

from .models import MATERIAL_CATEGORIES, LineItem

logger = logging.getLogger(__name__)

QUICK_ADD_ITEMS: dict[str, list[str]] = {
    "Fabric & Main Materials": ["Fabric", "Lining", "Gum stay", "Net"],
    "Sewing Essentials": [
        "Thread",
        "Zippers",
        "Button",
        "Hooks & loop tape",
        "Machine oil",
    ],
    "Embellishments & Decorative Materials": [
        "Beads",
        "Rhinestones",
        "Embroidery thread",
        "Lace trims",
    ],
    "Cutting & Measuring Tools": ["Ruler", "Measuring tape", "Paper scissors"],
    "Sewing Tools & Equipment": [
        "Sewing machine",
        "Iron",
        "Cutting mat",
        "Rotary cutter",
    ],
    "Stitching & Holding Accessories": [
        "Pins",
        "Needles",
        "Machine needles",
        "Safety pins",
    ],
    "Support & Reinforcement Materials": [
        "Interfacing",
        "Boning",
        "Shoulder pads",
        "Elastic",
    ],
    "Packaging & Labeling Materials": [
        "Bags",
        "Labels",
        "Tissue paper",
        "Boxes",
    ],
}

# Price fields in order of preference: fabric types carry ``cost``,
# products a ``lowPrice``/``highPrice`` range, backend rows ``basePrice``.
PRICE_KEYS = ('cost', 'lowPrice', 'basePrice', 'price')


class CatalogError(Exception):
    """Raised when the catalog API cannot be reached or returns an error."""


def quick_add_item(name: str, category: str) -> LineItem:
    """Create a zero-cost row for one of the suggested materials.

    Raises:
        ValueError: If the category is not a material category.
    """
    if category not in MATERIAL_CATEGORIES:
        raise ValueError(f"Unknown material category: {category}")
    return LineItem(label=name, unit_cost=0, quantity=1, category=category)


def line_item_from_catalog(
    record: dict[str, Any],
    category: Optional[str] = None,
    quantity: Any = 1,
) -> LineItem:
    """Seed a line item from a product or fabric-type record.

    Args:
        record: ``{name, cost}`` for fabric types or
            ``{id, name, lowPrice, highPrice}`` for products.
        category: Material category for the new row, if any.
        quantity: Initial quantity.

    Returns:
        A LineItem whose unit cost is the record's (low) price.
    """
    unit_cost = None
    for key in PRICE_KEYS:
        if record.get(key) not in (None, ''):
            unit_cost = record[key]
            break

    kwargs = dict(
        label=record.get('name', ''),
        unit_cost=unit_cost,
        quantity=quantity,
        category=category,
    )
    if record.get('id') is not None:
        kwargs['id'] = record['id']
    return LineItem(**kwargs)


def fabric_types(product: dict[str, Any]) -> list[dict[str, Any]]:
    """Return the fabric-type price list attached to a product, if any."""
    for key in ('options', 'specifications'):
        section = product.get(key)
        if isinstance(section, dict):
            types = section.get('fabricTypes')
            if isinstance(types, list):
                return [t for t in types if isinstance(t, dict)]
    return []


def fabric_line_items(
    product: dict[str, Any],
    category: str = "Fabric & Main Materials",
) -> list[LineItem]:
    """Seed one line item per fabric type offered for a product."""
    return [
        line_item_from_catalog({'name': t.get('name', ''), 'cost': t.get('cost')},
                               category=category)
        for t in fabric_types(product)
    ]


class CatalogClient:
    """Minimal client for the inventory products API."""

    def __init__(self, base_url: str, token: str = "", timeout: float = 30):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout = timeout

    def _get(self, endpoint: str, params: Optional[dict] = None) -> Any:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        url = f"{self.base_url}{endpoint}"
        try:
            response = requests.get(
                url, params=params, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.warning(f"Catalog request to {url} failed: {e}")
            raise CatalogError(f"Failed to reach catalog: {e}") from e

        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = body.get('error') if isinstance(body, dict) else None
            logger.warning(
                f"Catalog request to {url} returned {response.status_code}"
            )
            raise CatalogError(
                message or f"Catalog request failed ({response.status_code})"
            )

        try:
            return response.json()
        except ValueError as e:
            raise CatalogError(f"Invalid catalog response: {e}") from e

    def get_products(
        self,
        business_id: Optional[str] = None,
        search: str = "",
        page: int = 1,
        limit: int = 20,
    ) -> list[dict[str, Any]]:
        """Fetch one page of products, optionally filtered by a search term."""
        params = {'search': search, 'page': str(page), 'limit': str(limit)}
        if business_id:
            params['businessId'] = business_id
        result = self._get('/products', params)
        if isinstance(result, dict):
            return result.get('products') or []
        return result or []

    def get_product(self, product_id: str) -> dict[str, Any]:
        return self._get(f'/products/{product_id}')

    def get_categories(self) -> list:
        return self._get('/products/categories')

    def search_line_items(self, search: str = "", **kwargs) -> list[LineItem]:
        """Fetch products and seed an uncategorized line item for each."""
        return [
            line_item_from_catalog(product)
            for product in self.get_products(search=search, **kwargs)
        ]
