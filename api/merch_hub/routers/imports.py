# merch_hub/routers/imports.py
"""
Import Router - upload vendor exports (CSV or .xlsx) and run the matching importer.

Every endpoint returns the importer's result record; row-level problems show up
in `errors` / `warnings`, not as HTTP errors.
"""
from __future__ import annotations
import logging
from dataclasses import asdict
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from merch_hub.adapters.ambient_inks_products import AmbientInksProductImporter
from merch_hub.adapters.ambient_inks_sales import AmbientInksSalesImporter
from merch_hub.adapters.atvenue_sales import AtvenueSalesImporter
from merch_hub.adapters.atvenue_totals import AtvenueTotalsImporter
from merch_hub.database import get_session
from merch_hub.models import (
    BatchMatchOut, ProductImportOut, SalesImportOut, SkuMatchIn,
    TourSalesImportOut, VenueTotalsImportOut,
)
from merch_hub.services.csv_parser import decode_bytes_auto, parse_csv
from merch_hub.services.excel_parser import parse_excel_sheet
from merch_hub.services.sku_matcher import SkuMatcher
from merch_hub.store import SqlAlchemyStore, Store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/imports", tags=["Imports"])

EXCEL_SUFFIXES = (".xlsx", ".xlsm")


async def get_store(db: AsyncSession = Depends(get_session)) -> Store:
    return SqlAlchemyStore(db)


# ============================================================================
# Upload helpers
# ============================================================================

async def read_upload_rows(file: Optional[UploadFile], sheet: Optional[str] = None) -> List[Dict[str, str]]:
    if file is None or not file.filename:
        raise HTTPException(400, detail="No file uploaded")
    content = await file.read()
    name = file.filename.lower()
    logger.info(f"Received upload {file.filename} ({len(content)} bytes)")

    if name.endswith(EXCEL_SUFFIXES):
        try:
            return parse_excel_sheet(content, sheet)
        except ValueError as e:
            raise HTTPException(400, detail=f"Failed to read workbook: {e}")
    return parse_csv(decode_bytes_auto(content))


# ============================================================================
# Endpoints
# ============================================================================

@router.post("/products", response_model=ProductImportOut)
async def import_products(
    file: Optional[UploadFile] = File(None),
    sheet: Optional[str] = Query(None),
    store: Store = Depends(get_store),
):
    rows = await read_upload_rows(file, sheet)
    result = await AmbientInksProductImporter(store).import_rows(rows)
    return result.as_dict()


@router.post("/online-sales", response_model=SalesImportOut)
async def import_online_sales(
    file: Optional[UploadFile] = File(None),
    sheet: Optional[str] = Query(None),
    store: Store = Depends(get_store),
):
    rows = await read_upload_rows(file, sheet)
    result = await AmbientInksSalesImporter(store).import_rows(rows)
    return result.as_dict()


@router.post("/venue-sales", response_model=TourSalesImportOut)
async def import_venue_sales(
    tour_id: int = Query(...),
    show_id: Optional[int] = Query(None),
    file: Optional[UploadFile] = File(None),
    sheet: Optional[str] = Query(None),
    store: Store = Depends(get_store),
):
    rows = await read_upload_rows(file, sheet)
    result = await AtvenueSalesImporter(store).import_rows(rows, tour_id, show_id)
    return result.as_dict()


@router.post("/venue-totals", response_model=VenueTotalsImportOut)
async def import_venue_totals(
    tour_id: int = Query(...),
    file: Optional[UploadFile] = File(None),
    sheet: Optional[str] = Query(None),
    store: Store = Depends(get_store),
):
    rows = await read_upload_rows(file, sheet)
    result = await AtvenueTotalsImporter(store).import_rows(rows, tour_id)
    return result.as_dict()


@router.post("/sku-match", response_model=BatchMatchOut)
async def sku_match(payload: SkuMatchIn, store: Store = Depends(get_store)):
    batch = await SkuMatcher(store).resolve_many(payload.skus, payload.source)
    return {
        "matches": {
            sku: {**asdict(m), "confidence": m.confidence.value}
            for sku, m in batch.matches.items()
        },
        "statistics": asdict(batch.statistics),
    }
