from typing import Dict, List, Optional, Set

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.records import Quote
from app.services.quotes import QuoteNotFoundError, QuoteProviderError, get_quote_client


class FakeQuoteClient:
    """Stands in for YahooQuoteClient; records every symbol asked for."""
    def __init__(self, quotes: Dict[str, Quote], broken: Optional[Set[str]] = None):
        self.quotes = quotes
        self.broken = broken or set()
        self.calls: List[str] = []

    def get_quote(self, symbol: str) -> Quote:
        key = symbol.strip().upper()
        self.calls.append(key)
        if key in self.broken:
            raise QuoteProviderError(f"Quote provider returned HTTP 500 for {key}")
        if key not in self.quotes:
            raise QuoteNotFoundError(f"No chart data found for symbol: {key}")
        return self.quotes[key]


@pytest.fixture
def fake_quotes():
    return FakeQuoteClient(
        quotes={
            "AAPL": Quote(symbol="AAPL", current_price=200.0, previous_close=190.0,
                          day_change=10.0, day_change_percent=10 / 190 * 100,
                          currency="USD", exchange="NasdaqGS",
                          week52_high=210.0, week52_low=150.0),
            "MSFT": Quote(symbol="MSFT", current_price=400.0, previous_close=400.0,
                          day_change=0.0, day_change_percent=0.0, currency="USD"),
        },
        broken={"BOOM"},
    )


@pytest.fixture
def client(fake_quotes):
    app.dependency_overrides[get_quote_client] = lambda: fake_quotes
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
