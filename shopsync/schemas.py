# shopsync/schemas.py
from pydantic import BaseModel, Field
from typing import List, Optional, Union
from datetime import datetime


class RawVariant(BaseModel):
    id: Union[int, str]
    sku: Optional[str] = None
    inventory_quantity: Optional[int] = None


class RawProduct(BaseModel):
    """The subset of a catalog product record the sync consumes."""
    id: Union[int, str]
    title: Optional[str] = None
    vendor: Optional[str] = None
    variants: List[RawVariant] = Field(..., min_length=1)


class ProductOut(BaseModel):
    id: int
    sku: str
    title: Optional[str] = None
    brand: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ListingOut(BaseModel):
    id: int
    product_id: int
    channel: str
    listing_id: str
    listing_url: Optional[str] = None
    inventory_count: int
    status: str
    last_scrape_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SaleOut(BaseModel):
    sku: Optional[str] = None
    title: Optional[str] = None
    sold_at: Optional[str] = None
    price: Optional[float] = None


class SyncReport(BaseModel):
    status: str
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    error: Optional[str] = None
