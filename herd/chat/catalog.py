"""Read-only product catalog injected into the gift chat."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..config import ConfigurationError
from ..models import Product

DEFAULT_PRODUCTS = (
    Product(
        id=1,
        name="Tuberose Candle",
        brand="Diptyque",
        price=78,
        description="Sophisticated floral candle",
        interests=("Design", "Art", "Luxury"),
        pitch="A signature candle",
    ),
    Product(
        id=2,
        name="Premium Wine Set",
        brand="Vintage Selection",
        price=185,
        description="Premium wines from Napa Valley",
        interests=("Wine", "Business"),
        pitch="Good wine",
    ),
    Product(
        id=3,
        name="Artisan Coffee Set",
        brand="Blue Bottle",
        price=65,
        description="Premium coffee with pour-over set",
        interests=("Coffee", "Artisan"),
        pitch="Coffee",
    ),
)

DEFAULT_FALLBACK_PRODUCT_ID = 3


class ProductCatalog:
    """Immutable collection of products with one product reserved for fallback replies."""

    def __init__(self, products: Iterable[Product], *, fallback_product_id: Optional[int] = None) -> None:
        self._products = tuple(products)
        if not self._products:
            raise ConfigurationError("The product catalog must contain at least one product")
        self._by_id: Dict[int, Product] = {product.id: product for product in self._products}
        if len(self._by_id) != len(self._products):
            raise ConfigurationError("Product ids in the catalog must be unique")
        if fallback_product_id is None:
            fallback_product_id = self._products[0].id
        if fallback_product_id not in self._by_id:
            raise ConfigurationError(f"Fallback product {fallback_product_id} is not in the catalog")
        self._fallback_product_id = fallback_product_id

    def __iter__(self):
        return iter(self._products)

    def __len__(self) -> int:
        return len(self._products)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._by_id

    def get(self, product_id: int) -> Optional[Product]:
        return self._by_id.get(product_id)

    @property
    def fallback_product(self) -> Product:
        return self._by_id[self._fallback_product_id]

    def as_dicts(self) -> List[Dict[str, Any]]:
        return [product.as_dict() for product in self._products]

    @classmethod
    def default(cls) -> "ProductCatalog":
        return cls(DEFAULT_PRODUCTS, fallback_product_id=DEFAULT_FALLBACK_PRODUCT_ID)

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]]) -> "ProductCatalog":
        """Build the catalog from the ``catalog`` section of a configuration mapping."""

        entries: Optional[Sequence[Mapping[str, Any]]] = (config or {}).get("catalog")
        if not entries:
            return cls.default()
        products = [_product_from_mapping(entry) for entry in entries]
        return cls(products, fallback_product_id=(config or {}).get("fallback_product_id"))


def _product_from_mapping(entry: Mapping[str, Any]) -> Product:
    try:
        return Product(
            id=int(entry["id"]),
            name=str(entry["name"]),
            brand=str(entry.get("brand", "")),
            price=float(entry.get("price", 0)),
            description=str(entry.get("description", "")),
            interests=tuple(str(item) for item in entry.get("interests", ())),
            pitch=str(entry.get("pitch", "")),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid catalog entry {dict(entry)!r}: {exc}") from exc


__all__ = ["DEFAULT_PRODUCTS", "ProductCatalog"]
