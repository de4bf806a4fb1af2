# shopsync/normalizer.py
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .errors import MalformedRecord
from .schemas import RawProduct


@dataclass(frozen=True)
class NormalizedProduct:
    catalog_id: str
    sku: str
    title: Optional[str]
    brand: Optional[str]
    inventory_total: int
    listing_native_id: str
    listing_url: str


class Normalizer:
    """Turns one raw catalog record into the values the reconciler writes.

    The listing is identified by the *first* variant's id, so reordering or
    removing that variant upstream shows up as a new listing.
    """

    def __init__(self, store_domain: str):
        self.store_domain = store_domain

    def normalize(self, raw: Dict[str, Any]) -> NormalizedProduct:
        try:
            product = RawProduct.model_validate(raw)
        except ValidationError as e:
            record_id = raw.get("id") if isinstance(raw, dict) else None
            raise MalformedRecord(f"malformed catalog record {record_id!r}: {e}", record_id=record_id) from e

        catalog_id = str(product.id)
        first = product.variants[0]
        sku = first.sku if first.sku and first.sku.strip() else f"SKU-{catalog_id}"

        return NormalizedProduct(
            catalog_id=catalog_id,
            sku=sku,
            title=product.title,
            brand=product.vendor,
            inventory_total=inventory_total(product),
            listing_native_id=str(first.id),
            listing_url=f"https://{self.store_domain}/admin/products/{catalog_id}",
        )


def inventory_total(product: RawProduct) -> int:
    # clamp once on the total: oversold variants offset stock on the others
    total = sum(v.inventory_quantity or 0 for v in product.variants)
    return max(0, total)
