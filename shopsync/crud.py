# shopsync/crud.py
"""Upsert statements and read helpers for products, listings and sales.

Upserts use the dialect's native ``INSERT ... ON CONFLICT`` construct and do
not commit; the caller owns the transaction.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from .models import Listing, ListingStatus, Product, Sale

_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


def check_dialect(name: str):
    if name not in _INSERTS:
        raise NotImplementedError(f"no upsert support for dialect {name!r}")


def _insert_for(db: Session):
    dialect = db.get_bind().dialect.name
    check_dialect(dialect)
    return _INSERTS[dialect]


def upsert_product(db: Session, sku: str, title: Optional[str], brand: Optional[str], now: datetime):
    stmt = _insert_for(db)(Product.__table__).values(
        sku=sku, title=title, brand=brand, created_at=now, updated_at=now,
    )
    # last write wins on title/brand; created_at stays as first inserted
    stmt = stmt.on_conflict_do_update(
        index_elements=["sku"],
        set_={
            "title": stmt.excluded.title,
            "brand": stmt.excluded.brand,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    db.execute(stmt)


def upsert_listing(db: Session, data: Dict[str, Any], now: datetime):
    """Insert a listing keyed by (channel, listing_id).

    On conflict only the volatile fields move: inventory, status and scrape
    time. Product reference and URL keep their first-seen values.
    """
    values = dict(data)
    values.setdefault("status", ListingStatus.ACTIVE.value)
    values["last_scrape_at"] = now
    stmt = _insert_for(db)(Listing.__table__).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["channel", "listing_id"],
        set_={
            "inventory_count": stmt.excluded.inventory_count,
            "status": stmt.excluded.status,
            "last_scrape_at": stmt.excluded.last_scrape_at,
        },
    )
    db.execute(stmt)


def get_product_by_sku(db: Session, sku: str) -> Optional[Product]:
    return db.execute(select(Product).where(Product.sku == sku)).scalar_one_or_none()


def get_product_id_by_sku(db: Session, sku: str) -> Optional[int]:
    return db.execute(select(Product.id).where(Product.sku == sku)).scalar_one_or_none()


def get_listing(db: Session, channel: str, listing_id: str) -> Optional[Listing]:
    return db.query(Listing).filter(Listing.channel == channel, Listing.listing_id == listing_id).first()


def list_products(db: Session, skip: int = 0, limit: int = 50):
    q = db.query(Product).order_by(Product.id)
    total = q.count()
    items = q.offset(skip).limit(limit).all()
    return {"total": total, "items": items}


def list_listings(db: Session, skip: int = 0, limit: int = 50, filters: Dict = None):
    q = db.query(Listing)
    if filters:
        if filters.get("channel"):
            q = q.filter(Listing.channel == filters["channel"])
        if filters.get("status"):
            q = q.filter(Listing.status == filters["status"])
        if filters.get("product_id") is not None:
            q = q.filter(Listing.product_id == filters["product_id"])
    q = q.order_by(Listing.id)
    total = q.count()
    items = q.offset(skip).limit(limit).all()
    return {"total": total, "items": items}


def last_sales(db: Session, limit: int = 10):
    return db.query(Sale).order_by(Sale.sold_at.desc()).limit(limit).all()
