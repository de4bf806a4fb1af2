# shopsync/reconciler.py
"""Writes normalized catalog records into the products and listings tables.

Each record is one unit of work: the product upsert, the product lookup and
the listing upsert share a single transaction and are committed or rolled
back together.
"""
import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from . import crud
from .db import is_disconnect, ping
from .errors import PersistenceError, StoreUnavailable
from .models import ListingStatus
from .normalizer import NormalizedProduct
from .utils import logger


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UpsertStatus(str, enum.Enum):
    UPSERTED = "upserted"
    PRODUCT_MISSING = "product_missing"


@dataclass(frozen=True)
class UpsertOutcome:
    sku: str
    listing_id: str
    status: UpsertStatus
    product_id: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status is UpsertStatus.UPSERTED


class Reconciler:
    def __init__(self, session_factory: sessionmaker, channel: str = "shopify",
                 clock: Callable[[], datetime] = utcnow):
        self.session_factory = session_factory
        self.channel = channel
        self.clock = clock

    def upsert(self, item: NormalizedProduct) -> UpsertOutcome:
        """Upsert one record.

        Raises `PersistenceError` when a statement fails and `StoreUnavailable`
        when the failure means the database itself is gone.
        """
        now = self.clock()
        db = self.session_factory()
        try:
            try:
                db.connection()
            except SQLAlchemyError as e:
                raise StoreUnavailable(f"database unreachable while writing {item.sku}: {e}") from e

            try:
                crud.upsert_product(db, item.sku, item.title, item.brand, now)
                product_id = crud.get_product_id_by_sku(db, item.sku)
                if product_id is None:
                    db.rollback()
                    logger.warning("Product %s not found after upsert; skipping listing %s",
                                   item.sku, item.listing_native_id)
                    return UpsertOutcome(item.sku, item.listing_native_id, UpsertStatus.PRODUCT_MISSING)

                crud.upsert_listing(db, {
                    "product_id": product_id,
                    "channel": self.channel,
                    "listing_id": item.listing_native_id,
                    "listing_url": item.listing_url,
                    "inventory_count": item.inventory_total,
                    "status": ListingStatus.ACTIVE.value,
                }, now)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                if is_disconnect(e):
                    raise StoreUnavailable(f"database unreachable while writing {item.sku}: {e}") from e
                if isinstance(e, OperationalError):
                    # a dropped server surfaces as OperationalError too; raises StoreUnavailable if so
                    ping(db.get_bind())
                raise PersistenceError(f"upsert failed for {item.sku}: {e}", record_id=item.catalog_id) from e
        finally:
            db.close()

        logger.debug("Upserted %s (listing %s/%s, inventory %d)",
                     item.sku, self.channel, item.listing_native_id, item.inventory_total)
        return UpsertOutcome(item.sku, item.listing_native_id, UpsertStatus.UPSERTED, product_id)
