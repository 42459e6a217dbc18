# backend/app/services/brokerage_csv.py
from __future__ import annotations

import io
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from loguru import logger

from app.models.records import HoldingRecord, ImportResult, StockRow
from app.services.csv_import import parse_number

# export header -> StockRow field
_NUMERIC_COLUMNS: Dict[str, str] = {
    "Quantity": "quantity",
    "Last Price": "last_price",
    "Current Value": "current_value",
    "Cost Basis Total": "cost_basis_total",
    "Average Cost Basis": "average_cost_basis",
}
_TEXT_COLUMNS: Dict[str, str] = {
    "Last Price Change": "last_price_change",
    "Today's Gain/Loss Dollar": "todays_gain_loss_dollar",
    "Today's Gain/Loss Percent": "todays_gain_loss_percent",
    "Total Gain/Loss Dollar": "total_gain_loss_dollar",
    "Total Gain/Loss Percent": "total_gain_loss_percent",
    "Percent Of Account": "percent_of_account",
}
_PLAIN_COLUMNS: Dict[str, str] = {
    "Account Number": "account_number",
    "Account Name": "account_name",
    "Symbol": "symbol",
    "Description": "description",
    "Type": "type",
}

def _text_or_none(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None

_LINE_COL = "__line__"

def _numbered_lines(text: str) -> List[Tuple[int, str]]:
    return [(n, ln) for n, ln in enumerate(text.splitlines(), start=1) if ln.strip()]

def parse_stock_csv(raw_text: str) -> List[StockRow]:
    """Parse a brokerage positions export into StockRows, one per holding line."""
    text = (raw_text or "").lstrip("\ufeff")
    if not text.strip():
        return []

    # prefix every line with its file line number so skipped rows cannot shift the rest
    numbered = _numbered_lines(text)
    source = dict(numbered)
    tagged = "\n".join(
        [f"{_LINE_COL},{numbered[0][1]}"] + [f"{n},{ln}" for n, ln in numbered[1:]]
    )

    try:
        df = pd.read_csv(
            io.StringIO(tagged),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            skipinitialspace=True,
            index_col=False,
            on_bad_lines="skip",
            engine="python",
        )
    except pd.errors.EmptyDataError:
        return []
    df.columns = [str(c).strip() for c in df.columns]

    rows: List[StockRow] = []
    dropped = 0
    for raw in df.to_dict(orient="records"):
        rec = {k: (None if pd.isna(v) else str(v)) for k, v in raw.items()}
        fields: Dict[str, Any] = {}
        for col, attr in _PLAIN_COLUMNS.items():
            fields[attr] = (rec.get(col) or "").strip()
        for col, attr in _NUMERIC_COLUMNS.items():
            fields[attr] = parse_number(rec.get(col))
        for col, attr in _TEXT_COLUMNS.items():
            fields[attr] = _text_or_none(rec.get(col))

        # trailing disclaimer / footnote lines carry no symbol or quantity
        if not fields["symbol"] and fields["quantity"] is None:
            dropped += 1
            continue

        line_no = int(rec[_LINE_COL])
        fields["line_no"] = line_no
        fields["original_row"] = source.get(line_no, "")
        rows.append(StockRow(**fields))

    logger.info(f"Parsed brokerage export: {len(rows)} positions ({dropped} footer lines dropped)")
    return rows

def stock_rows_to_holdings(rows: List[StockRow], as_of: Optional[date] = None) -> ImportResult:
    """Map brokerage positions onto HoldingRecords, collecting per-row errors."""
    result = ImportResult()
    purchase_date = (as_of or date.today()).isoformat()

    for idx, row in enumerate(rows):
        row_no = row.line_no if row.line_no is not None else idx + 2
        symbol = row.symbol.strip()
        if not symbol:
            result.errors.append(f"Row {row_no}: Invalid symbol (symbol is required)")
            continue
        if symbol.endswith("**"):
            # money-market sweep, not a security position
            logger.info(f"Skipping cash position {symbol}")
            continue

        quantity = row.quantity if row.quantity is not None else 0.0
        if quantity < 0:
            result.errors.append(f"Row {row_no}: Invalid quantity for {symbol}. Quantity must be 0 or greater.")
            continue

        if quantity == 0:
            price = 0.0
        elif row.cost_basis_total is None or row.cost_basis_total <= 0:
            result.errors.append(f"Row {row_no}: Invalid cost basis total for {symbol}. Must be greater than 0 when quantity > 0.")
            continue
        else:
            price = row.cost_basis_total / quantity

        result.data.append(HoldingRecord(
            symbol=symbol,
            quantity=quantity,
            purchase_price=price,
            purchase_date=purchase_date,
        ))

    return result
