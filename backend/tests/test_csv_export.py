from app.models.records import HoldingRecord, Quote
from app.services.csv_export import EXPORT_COLUMNS, export_to_csv, to_csv_bytes
from app.services.valuation import value_holding


def _rec(symbol, qty, price, day="2023-01-15"):
    return HoldingRecord(symbol=symbol, quantity=qty, purchase_price=price, purchase_date=day)


def test_plain_holdings_export():
    lines = export_to_csv([_rec("AAPL", 100, 150.0), _rec("TSLA", 0, 0)]).splitlines()

    assert lines[0] == ",".join(EXPORT_COLUMNS)
    assert lines[1] == "AAPL,100,150.00,15000.00,2023-01-15" + "," * 9
    assert lines[2] == "TSLA,0,0.00,0.00,2023-01-15" + "," * 9


def test_valued_holdings_export():
    quote = Quote(symbol="AAPL", current_price=200.0, day_change_percent=1.234,
                  week52_high=210.0, week52_low=150.5, currency="USD", exchange="NasdaqGS")
    valued = value_holding(_rec("AAPL", 2.5, 100.0), quote)

    header, row = export_to_csv([valued]).splitlines()
    cells = dict(zip(header.split(","), row.split(",")))
    assert cells["Quantity"] == "2.5"
    assert cells["Cost Basis Total"] == "250.00"
    assert cells["Current Price"] == "200.00"
    assert cells["Total Value"] == "500.00"
    assert cells["Gain/Loss"] == "250.00"
    assert cells["Gain/Loss %"] == "100.00"
    assert cells["Day Change %"] == "1.23"
    assert cells["52-Week Low"] == "150.50"
    assert cells["Currency"] == "USD"
    assert cells["Exchange"] == "NasdaqGS"


def test_empty_export_is_header_only():
    assert to_csv_bytes([]).decode("utf-8").splitlines() == [",".join(EXPORT_COLUMNS)]
