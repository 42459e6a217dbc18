from io import BytesIO
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from app.models.records import HoldingRecord
from app.services.csv_export import to_csv_bytes
from app.services.quotes import YahooQuoteClient, get_quote_client
from app.services.valuation import value_portfolio

router = APIRouter()

class HoldingsPayload(BaseModel):
    items: List[HoldingRecord]

@router.post("/value")
def value_holdings(
    payload: HoldingsPayload,
    client: YahooQuoteClient = Depends(get_quote_client),
) -> Dict[str, Any]:
    items, summary = value_portfolio(payload.items, client)
    return {
        "items": [it.model_dump(by_alias=True) for it in items],
        "summary": summary.model_dump(by_alias=True),
    }

@router.post("/export")
def export(
    payload: HoldingsPayload,
    value: bool = Query(False),
    client: YahooQuoteClient = Depends(get_quote_client),
):
    items = payload.items
    if value:
        items, _ = value_portfolio(items, client)
    return StreamingResponse(
        BytesIO(to_csv_bytes(items)),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="portfolio.csv"'},
    )
