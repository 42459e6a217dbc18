from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from app.core.settings import settings
from app.services.brokerage_csv import parse_stock_csv, stock_rows_to_holdings
from app.services.csv_import import parse_csv

router = APIRouter()  # no prefix

class CsvText(BaseModel):
    csv: Optional[str] = None
    as_of: Optional[date] = Field(default=None, alias="asOf")  # brokerage imports only

    model_config = ConfigDict(populate_by_name=True)

# -------------------- helpers --------------------
def _require_text(payload: CsvText) -> str:
    if not payload.csv or not payload.csv.strip():
        raise HTTPException(status_code=400, detail="Missing or invalid CSV data")
    return payload.csv

async def _read_upload(file: UploadFile) -> str:
    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail=f"{file.filename} exceeds {settings.max_upload_bytes} bytes")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise HTTPException(status_code=400, detail=f"Failed to read {file.filename}: {e}")

def _brokerage_payload(text: str, as_of: Optional[date]) -> Dict[str, Any]:
    rows = parse_stock_csv(text)
    result = stock_rows_to_holdings(rows, as_of=as_of)
    out = result.to_payload()
    out["originalRows"] = [r.original_row for r in rows]
    logger.info(f"Brokerage import: {out['imported']} holdings, {len(out['errors'])} errors")
    return out

# -------------------- holdings csv --------------------
@router.post("/parse")
def parse_text(payload: CsvText) -> Dict[str, Any]:
    return parse_csv(_require_text(payload)).to_payload()

@router.post("/upload")
async def parse_upload(file: UploadFile = File(...)) -> Dict[str, Any]:
    text = await _read_upload(file)
    return parse_csv(text).to_payload()

# -------------------- brokerage export --------------------
@router.post("/brokerage")
def brokerage_text(payload: CsvText) -> Dict[str, Any]:
    return _brokerage_payload(_require_text(payload), payload.as_of)

@router.post("/brokerage/upload")
async def brokerage_upload(
    file: UploadFile = File(...),
    as_of: Optional[date] = Form(None),
) -> Dict[str, Any]:
    text = await _read_upload(file)
    return _brokerage_payload(text, as_of)
