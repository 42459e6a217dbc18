from datetime import date

import math

import pytest

from app.models.records import HoldingRecord, Quote
from app.services.valuation import (
    MAX_ANNUALIZED_PCT,
    annualized_return,
    summarize,
    value_holding,
    value_portfolio,
)


def _rec(symbol, qty, price, day="2022-01-01"):
    return HoldingRecord(symbol=symbol, quantity=qty, purchase_price=price, purchase_date=day)


def test_value_owned_position():
    v = value_holding(_rec("AAPL", 10, 150.0), Quote(symbol="AAPL", current_price=200.0))
    assert v.current_price == 200.0
    assert v.total_value == pytest.approx(2000.0)
    assert v.gain_loss == pytest.approx(500.0)
    assert v.gain_loss_percent == pytest.approx(500 / 1500 * 100)


def test_watch_list_entry_is_not_valued():
    v = value_holding(_rec("TSLA", 0, 0), Quote(symbol="TSLA", current_price=250.0))
    assert v.current_price == 250.0
    assert v.total_value is None
    assert v.gain_loss is None


def test_missing_quote_leaves_holding_unvalued():
    v = value_holding(_rec("AAPL", 10, 150.0), None)
    assert v.current_price is None
    assert v.total_value is None
    assert v.symbol == "AAPL"
    assert v.purchase_price == 150.0


def test_summary_counts_owned_positions_only():
    items = [
        value_holding(_rec("AAPL", 10, 150.0), Quote(symbol="AAPL", current_price=200.0)),
        value_holding(_rec("MSFT", 5, 400.0), Quote(symbol="MSFT", current_price=380.0)),
        value_holding(_rec("TSLA", 0, 0), Quote(symbol="TSLA", current_price=250.0)),
    ]
    s = summarize(items, today=date(2024, 1, 1))

    assert s.item_count == 3
    assert s.total_value == pytest.approx(2000.0 + 1900.0)
    assert s.total_cost == pytest.approx(1500.0 + 2000.0)
    assert s.total_gain_loss == pytest.approx(400.0)
    assert s.total_gain_loss_percent == pytest.approx(400 / 3500 * 100)


def test_annualized_return_uses_cost_weighted_holding_period():
    items = [value_holding(_rec("AAPL", 100, 100.0, "2022-01-01"), Quote(symbol="AAPL", current_price=121.0))]
    today = date(2024, 1, 1)
    years = (today - date(2022, 1, 1)).days / 365.25

    s = summarize(items, today=today)
    assert s.annualized_return == pytest.approx((1.21 ** (1 / years) - 1) * 100)


def test_annualized_return_edge_cases():
    recent = [value_holding(_rec("AAPL", 1, 100.0, "2024-01-01"), Quote(symbol="AAPL", current_price=110.0))]
    assert annualized_return(recent, 10.0, 100.0, today=date(2024, 1, 2)) == 0.0
    assert annualized_return([], 0.0, 0.0) == 0.0
    assert annualized_return(recent, 10.0, 0.0, today=date(2025, 1, 1)) == 0.0


def test_value_portfolio_fetches_each_symbol_once(fake_quotes):
    records = [
        _rec("AAPL", 10, 150.0),
        _rec("aapl", 5, 160.0),
        _rec("MSFT", 1, 300.0),
        _rec("BOOM", 1, 10.0),
        _rec("GONE", 0, 0),
    ]
    items, summary = value_portfolio(records, fake_quotes, today=date(2024, 1, 1))

    assert fake_quotes.calls == ["AAPL", "MSFT", "BOOM", "GONE"]
    assert [it.current_price for it in items] == [200.0, 200.0, 400.0, None, None]
    assert items[1].symbol == "aapl"
    assert items[3].total_value is None
    assert summary.item_count == 5
    assert summary.total_value == pytest.approx(2000.0 + 1000.0 + 400.0)
    assert summary.total_cost == pytest.approx(1500.0 + 800.0 + 300.0 + 10.0)


def test_annualized_return_is_capped_not_overflowing():
    held = [value_holding(_rec("PENNY", 1000, 0.0001, "2024-01-01"), Quote(symbol="PENNY", current_price=20.0))]
    summary = summarize(held, today=date(2024, 1, 6))
    assert math.isfinite(summary.annualized_return)
    assert summary.annualized_return == MAX_ANNUALIZED_PCT
