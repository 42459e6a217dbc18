from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from loguru import logger

from app.models.records import HoldingRecord, PortfolioSummary, Quote, ValuedHolding
from app.services.quotes import QuoteProviderError, YahooQuoteClient

DAYS_PER_YEAR = 365.25
MIN_HOLDING_YEARS = 0.01  # ~4 days
MAX_ANNUALIZED_PCT = 1e12  # ceiling for annualized_return; never inf


def value_holding(record: HoldingRecord, quote: Optional[Quote]) -> ValuedHolding:
    """Attach current price and, for owned positions, value and gain/loss."""
    base = record.model_dump()
    price = quote.current_price if quote else None
    if price is None or record.quantity <= 0:
        # watch-list entry or unpriced: nothing to value
        return ValuedHolding(**base, current_price=price, quote=quote)

    total_value = price * record.quantity
    total_cost = record.purchase_price * record.quantity
    gain = total_value - total_cost
    return ValuedHolding(
        **base,
        current_price=price,
        total_value=total_value,
        gain_loss=gain,
        gain_loss_percent=(gain / total_cost * 100) if total_cost > 0 else 0.0,
        quote=quote,
    )


def _holding_years(purchase_date: str, today: date) -> float:
    bought = datetime.strptime(purchase_date, "%Y-%m-%d").date()
    return (today - bought).days / DAYS_PER_YEAR


def annualized_return(items: List[ValuedHolding], total_gain: float, total_cost: float,
                      today: Optional[date] = None) -> float:
    """
    Annualized return in percent: (1 + gain/cost) ** (1 / years) - 1, where
    years is the cost-weighted average holding period of owned positions.
    """
    if total_cost <= 0 or not items:
        return 0.0
    today = today or date.today()

    weighted = 0.0
    weight = 0.0
    for it in items:
        if it.quantity > 0:
            cost = it.purchase_price * it.quantity
            weighted += _holding_years(it.purchase_date, today) * cost
            weight += cost
    if weight <= 0:
        return 0.0

    years = weighted / weight
    if years < MIN_HOLDING_YEARS:
        return 0.0
    growth = 1 + total_gain / total_cost
    if growth <= 0:
        return -100.0
    try:
        pct = (growth ** (1 / years) - 1) * 100
    except OverflowError:
        return MAX_ANNUALIZED_PCT
    return min(pct, MAX_ANNUALIZED_PCT)


def summarize(items: List[ValuedHolding], today: Optional[date] = None) -> PortfolioSummary:
    total_value = 0.0
    total_cost = 0.0
    total_gain = 0.0
    # only owned positions count toward money figures
    for it in items:
        if it.quantity <= 0:
            continue
        total_cost += it.purchase_price * it.quantity
        if it.total_value is not None:
            total_value += it.total_value
        if it.gain_loss is not None:
            total_gain += it.gain_loss

    return PortfolioSummary(
        total_value=total_value,
        total_cost=total_cost,
        total_gain_loss=total_gain,
        total_gain_loss_percent=(total_gain / total_cost * 100) if total_cost > 0 else 0.0,
        annualized_return=annualized_return(items, total_gain, total_cost, today),
        item_count=len(items),
    )


def value_portfolio(
    records: List[HoldingRecord],
    client: YahooQuoteClient,
    today: Optional[date] = None,
) -> Tuple[List[ValuedHolding], PortfolioSummary]:
    quotes: Dict[str, Optional[Quote]] = {}
    for rec in records:
        key = rec.symbol.strip().upper()
        if key in quotes:
            continue
        try:
            quotes[key] = client.get_quote(key)
        except QuoteProviderError as e:
            logger.warning(f"No quote for {rec.symbol}; returning it unvalued ({e})")
            quotes[key] = None

    valued = [value_holding(r, quotes.get(r.symbol.strip().upper())) for r in records]
    summary = summarize(valued, today)
    logger.info(
        f"Valued {len(valued)} holdings ({sum(1 for q in quotes.values() if q)} of {len(quotes)} symbols priced); "
        f"total value {summary.total_value:.2f}"
    )
    return valued, summary
