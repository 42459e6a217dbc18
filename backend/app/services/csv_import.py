# backend/app/services/csv_import.py
from __future__ import annotations

import csv
import io
import math
import re
from datetime import date, datetime
from typing import Dict, List, Optional

from loguru import logger

from app.models.records import HoldingRecord, ImportResult

# ---------- Canonical header aliases ----------
# Keys are canonical fields; aliases are matched after _norm(), so
# "Cost Basis Total", "cost basis total" and "CostBasisTotal" all collapse
# to "costbasistotal".
_CANONICAL_ALIASES: Dict[str, List[str]] = {
    "symbol": ["symbol", "ticker", "stock"],
    "quantity": ["quantity", "qty", "shares", "sharecount"],
    "purchasePrice": ["purchaseprice", "price", "buyprice"],
    "costBasisTotal": ["costbasistotal", "costbasis", "totalcost"],
    "purchaseDate": ["purchasedate", "date"],
}

PRICE_SOURCE_LABEL = "purchasePrice (or Cost Basis Total)"

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_NUM_JUNK_RE = re.compile(r"[$,%\s]")

def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).strip().lower())

def resolve_columns(header: List[str]) -> Dict[str, int]:
    """Map canonical field -> column index. First matching column wins."""
    normalized = [_norm(h) for h in header]
    found: Dict[str, int] = {}
    for canon, aliases in _CANONICAL_ALIASES.items():
        for alias in aliases:
            if alias in normalized:
                found[canon] = normalized.index(alias)
                break
    return found

def parse_number(raw: Optional[str]) -> Optional[float]:
    """'$1,234.50' -> 1234.5; blank, junk, nan and inf -> None."""
    if raw is None:
        return None
    s = _NUM_JUNK_RE.sub("", raw)
    if not s:
        return None
    try:
        val = float(s)
    except ValueError:
        return None
    return val if math.isfinite(val) else None

def _is_blank(v: Optional[str]) -> bool:
    return v is None or v.strip() == ""

def _valid_date(s: str) -> bool:
    if not _DATE_RE.match(s):
        return False
    try:
        datetime.strptime(s, "%Y-%m-%d")
    except ValueError:
        return False
    return True

def _cell(values: List[str], idx: Optional[int]) -> Optional[str]:
    if idx is None or idx >= len(values):
        return None
    return values[idx].strip()

def parse_csv(raw_text: str, today: Optional[date] = None) -> ImportResult:
    """
    Normalize holdings CSV text into HoldingRecords.

    Bad rows never abort the parse: each one adds a "Row N: ..." message to
    `errors` and is left out of `data`. Only file-level problems (no data
    rows, missing required columns) stop before any row is read.
    """
    result = ImportResult()
    text = (raw_text or "").lstrip("\ufeff").strip()
    records = list(csv.reader(io.StringIO(text)))

    if len(records) < 2:
        result.errors.append("CSV file must contain at least a header row and one data row")
        return result

    header = [h.strip() for h in records[0]]
    cols = resolve_columns(header)

    missing = [c for c in ("symbol", "quantity") if c not in cols]
    if "purchasePrice" not in cols and "costBasisTotal" not in cols:
        missing.append(PRICE_SOURCE_LABEL)
    if missing:
        result.errors.append(
            f"Missing required columns: {', '.join(missing)}. Found columns: {', '.join(header)}"
        )
        return result

    has_cost_basis = "costBasisTotal" in cols
    run_date = (today or date.today()).isoformat()

    for row_no, values in enumerate(records[1:], start=2):
        if not any(v.strip() for v in values):
            continue

        symbol = _cell(values, cols["symbol"])
        if _is_blank(symbol):
            result.errors.append(f"Row {row_no}: Invalid symbol (symbol is required)")
            continue

        qty_raw = _cell(values, cols["quantity"])
        quantity = parse_number(qty_raw)
        if quantity is None or quantity < 0:
            result.errors.append(
                f"Row {row_no}: Invalid quantity for {symbol}: {qty_raw!r}. Quantity must be 0 or greater."
            )
            continue

        # cost basis total always wins over a direct price column
        if has_cost_basis:
            cb_raw = _cell(values, cols["costBasisTotal"])
            cost_basis = 0.0 if quantity == 0 and _is_blank(cb_raw) else parse_number(cb_raw)
            if cost_basis is None or cost_basis < 0:
                result.errors.append(
                    f"Row {row_no}: Invalid cost basis total for {symbol}: {cb_raw!r}. Must be 0 or greater."
                )
                continue
            if quantity == 0:
                purchase_price = 0.0
            elif cost_basis == 0:
                result.errors.append(
                    f"Row {row_no}: Invalid cost basis total for {symbol}. Must be greater than 0 when quantity > 0."
                )
                continue
            else:
                purchase_price = cost_basis / quantity
                # a tiny quantity can push the per-share price past float range
                if not math.isfinite(purchase_price):
                    result.errors.append(
                        f"Row {row_no}: Invalid cost basis total for {symbol}: {cb_raw!r} / {qty_raw!r} "
                        "is not a finite per-share price."
                    )
                    continue
        else:
            price_raw = _cell(values, cols["purchasePrice"])
            if _is_blank(price_raw):
                if quantity != 0:
                    result.errors.append(f"Row {row_no}: missing {PRICE_SOURCE_LABEL} for {symbol}")
                    continue
                purchase_price = 0.0
            else:
                price = parse_number(price_raw)
                if price is None or price < 0 or (quantity > 0 and price == 0):
                    result.errors.append(
                        f"Row {row_no}: Invalid purchase price for {symbol}: {price_raw!r}. "
                        "Must be greater than 0 when quantity > 0."
                    )
                    continue
                purchase_price = price

        purchase_date = _cell(values, cols.get("purchaseDate"))
        if _is_blank(purchase_date):
            if quantity != 0:
                result.errors.append(f"Row {row_no}: missing purchaseDate for {symbol} (required when quantity > 0)")
                continue
            purchase_date = run_date  # watch-list entry
        elif not _valid_date(purchase_date):
            result.errors.append(f"Row {row_no}: Invalid date format for {symbol}: {purchase_date!r}. Use YYYY-MM-DD.")
            continue

        result.data.append(HoldingRecord(
            symbol=symbol,
            quantity=quantity,
            purchase_price=purchase_price,
            purchase_date=purchase_date,
        ))

    logger.info(
        f"Parsed holdings CSV: {len(records) - 1} rows -> {len(result.data)} records, "
        f"{len(result.errors)} errors; columns {header} -> {cols}"
    )
    return result
