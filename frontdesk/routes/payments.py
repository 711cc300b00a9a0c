from datetime import date, datetime
from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from frontdesk.config.settings import settings
from frontdesk.database.mongo_store import get_store
from frontdesk.database.store import FrontDeskStore
from frontdesk.services import payments
from frontdesk.utils.clock import Clock, get_clock
from frontdesk.utils.helpers import LOCAL_TZ, serialize_doc, serialize_docs

router = APIRouter(prefix="/payments", tags=["Payments"])

@router.get("/")
async def get_payments(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    store: FrontDeskStore = Depends(get_store)
):
    """Global payment log (deposits, refunds, house receipts), newest first"""
    records = await payments.list_payments(store, start, end)
    return serialize_docs(records)

@router.get("/daily")
async def get_daily_totals(
    day: Optional[date] = Query(None, alias="date"),
    store: FrontDeskStore = Depends(get_store),
    clock: Clock = Depends(get_clock)
):
    """Cash and gpay taken on one day; defaults to today"""
    if day is None:
        day = clock.now().astimezone(LOCAL_TZ).date()
    totals = await payments.daily_totals(store, day)
    return serialize_doc(totals)

@router.get("/pending-collection")
async def get_pending_collection(store: FrontDeskStore = Depends(get_store)):
    return serialize_doc(await payments.pending_collection(store))

@router.post("/collect", status_code=status.HTTP_201_CREATED)
async def collect(
    store: FrontDeskStore = Depends(get_store),
    clock: Clock = Depends(get_clock)
):
    """Log that the pending cash and gpay have been handed over"""
    log = await payments.collect(store, clock)
    return serialize_doc(log)

@router.get("/collection-logs")
async def get_collection_logs(
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    store: FrontDeskStore = Depends(get_store)
):
    logs = await store.list_collection_logs(limit=limit)
    return serialize_docs(logs)
