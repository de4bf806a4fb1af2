# shopsync/api/routes.py
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session
from typing import List
from .. import crud, schemas
from ..db import get_db
from ..errors import SyncAborted, SyncAlreadyRunning
from ..models import ListingStatus

router = APIRouter()

@router.get("/health")
def health():
    return {"status": "ok"}


def _run_sync(request: Request):
    orchestrator = request.app.state.orchestrator
    try:
        report = orchestrator.run_sync()
    except SyncAlreadyRunning as e:
        raise HTTPException(status_code=409, detail={"error": str(e)})
    except SyncAborted as e:
        raise HTTPException(status_code=500, detail={"error": str(e)})
    return {
        "status": "complete",
        "message": "Shopify sync complete",
        "attempted": report.attempted,
        "succeeded": report.succeeded,
        "failed": report.failed,
    }

@router.get("/sync/shopify")
def trigger_shopify_sync(request: Request):
    return _run_sync(request)

@router.post("/sync")
def trigger_sync(request: Request):
    return _run_sync(request)

@router.get("/sync/status")
def sync_status(request: Request):
    orchestrator = request.app.state.orchestrator
    return {"state": orchestrator.state.value, "last_report": orchestrator.last_report}


@router.get("/products", response_model=List[schemas.ProductOut])
def products(skip: int = 0, limit: int = Query(20, le=250), db: Session = Depends(get_db)):
    return crud.list_products(db, skip=skip, limit=limit)["items"]


@router.get("/products/{sku}", response_model=schemas.ProductOut)
def get_product(sku: str, db: Session = Depends(get_db)):
    obj = crud.get_product_by_sku(db, sku)
    if not obj:
        raise HTTPException(status_code=404, detail="Product not found")
    return obj


@router.get("/listings", response_model=List[schemas.ListingOut])
def listings(
    skip: int = 0,
    limit: int = Query(20, le=250),
    channel: str | None = Query(None),
    status: ListingStatus | None = Query(None),
    db: Session = Depends(get_db)
):
    filters = {
        "channel": channel,
        "status": status.value if status else None,
    }
    res = crud.list_listings(db, skip=skip, limit=limit, filters=filters)
    return res["items"]


@router.get("/listings/{channel}/{listing_id}", response_model=schemas.ListingOut)
def get_listing(channel: str, listing_id: str, db: Session = Depends(get_db)):
    obj = crud.get_listing(db, channel, listing_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Listing not found")
    return obj


@router.get("/api/last-sold", response_model=List[schemas.SaleOut])
def last_sold(db: Session = Depends(get_db)):
    return [
        schemas.SaleOut(
            sku=s.sku,
            title=s.title,
            sold_at=s.sold_at.strftime("%Y-%m-%d %H:%M") if s.sold_at else None,
            price=float(s.price) if s.price is not None else None,
        )
        for s in crud.last_sales(db, limit=10)
    ]
