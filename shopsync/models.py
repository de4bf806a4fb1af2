# shopsync/models.py
"""SQLAlchemy ORM models: canonical products, per-channel listings, and the
read-only sales table used by reporting.
"""
import enum

from sqlalchemy import (
    CheckConstraint, Column, ForeignKey, Index, Integer, Numeric, Text, TIMESTAMP,
    UniqueConstraint, func,
)
from .db import Base


class ListingStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Product(Base):
    __tablename__ = "products"
    id = Column(Integer, primary_key=True, index=True)
    sku = Column(Text, nullable=False, unique=True, index=True)
    title = Column(Text)
    brand = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now())


class Listing(Base):
    __tablename__ = "listings"
    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    channel = Column(Text, nullable=False)
    listing_id = Column(Text, nullable=False)
    listing_url = Column(Text)
    inventory_count = Column(Integer, nullable=False, default=0)
    status = Column(Text, nullable=False, server_default=ListingStatus.ACTIVE.value)
    last_scrape_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("channel", "listing_id", name="uq_listings_channel_listing_id"),
        CheckConstraint("inventory_count >= 0", name="ck_listings_inventory_non_negative"),
        CheckConstraint("status IN ('active', 'inactive')", name="ck_listings_status"),
    )


class Sale(Base):
    """Written by an outside process; this service only reads it."""
    __tablename__ = "sales"
    id = Column(Integer, primary_key=True)
    sku = Column(Text)
    title = Column(Text)
    sold_at = Column(TIMESTAMP)
    price = Column(Numeric)

Index("idx_listings_product_id", Listing.product_id)
Index("idx_sales_sold_at", Sale.sold_at)
