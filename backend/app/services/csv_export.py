from io import StringIO
from typing import Any, Dict, List, Optional, Sequence
import pandas as pd

from app.models.records import HoldingRecord, ValuedHolding

EXPORT_COLUMNS = [
    "Symbol", "Quantity", "Purchase Price", "Cost Basis Total", "Purchase Date",
    "Current Price", "Total Value", "Gain/Loss", "Gain/Loss %", "Day Change %",
    "52-Week High", "52-Week Low", "Currency", "Exchange",
]

def _money(v: Optional[float]) -> str:
    return "" if v is None else f"{v:.2f}"

def _qty(v: float) -> str:
    return str(int(v)) if float(v).is_integer() else str(v)

def _export_row(item: HoldingRecord) -> Dict[str, Any]:
    valued = item if isinstance(item, ValuedHolding) else None
    quote = valued.quote if valued else None
    return {
        "Symbol": item.symbol,
        "Quantity": _qty(item.quantity),
        "Purchase Price": _money(item.purchase_price),
        "Cost Basis Total": _money(item.purchase_price * item.quantity),
        "Purchase Date": item.purchase_date,
        "Current Price": _money(valued.current_price if valued else None),
        "Total Value": _money(valued.total_value if valued else None),
        "Gain/Loss": _money(valued.gain_loss if valued else None),
        "Gain/Loss %": _money(valued.gain_loss_percent if valued else None),
        "Day Change %": _money(quote.day_change_percent if quote else None),
        "52-Week High": _money(quote.week52_high if quote else None),
        "52-Week Low": _money(quote.week52_low if quote else None),
        "Currency": (quote.currency if quote else None) or "",
        "Exchange": (quote.exchange if quote else None) or "",
    }

def export_to_csv(items: Sequence[HoldingRecord]) -> str:
    rows: List[Dict[str, Any]] = [_export_row(it) for it in items]
    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS, dtype=str)
    buf = StringIO()
    df.to_csv(buf, index=False, lineterminator="\n")
    return buf.getvalue()

def to_csv_bytes(items: Sequence[HoldingRecord]) -> bytes:
    return export_to_csv(items).encode("utf-8")
