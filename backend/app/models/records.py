from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

class HoldingRecord(BaseModel):
    # snake_case internally, camelCase on the wire via aliases
    symbol: str
    quantity: float = Field(ge=0)
    purchase_price: float = Field(alias="purchasePrice", ge=0, allow_inf_nan=False)
    purchase_date: str = Field(alias="purchaseDate", pattern=r"^\d{4}-\d{2}-\d{2}$")

    model_config = ConfigDict(populate_by_name=True)

class ImportResult(BaseModel):
    data: List[HoldingRecord] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    @property
    def imported(self) -> int:
        return len(self.data)

    @property
    def success(self) -> bool:
        return not self.errors and bool(self.data)

    def to_payload(self) -> dict:
        return {
            "success": self.success,
            "imported": self.imported,
            "errors": list(self.errors),
            "data": [r.model_dump(by_alias=True) for r in self.data],
        }

class StockRow(BaseModel):
    """One line of a brokerage positions export."""
    account_number: str = Field(default="", alias="accountNumber")
    account_name: str = Field(default="", alias="accountName")
    symbol: str = ""
    description: str = ""
    quantity: Optional[float] = None
    last_price: Optional[float] = Field(default=None, alias="lastPrice")
    last_price_change: Optional[str] = Field(default=None, alias="lastPriceChange")
    current_value: Optional[float] = Field(default=None, alias="currentValue")
    todays_gain_loss_dollar: Optional[str] = Field(default=None, alias="todaysGainLossDollar")
    todays_gain_loss_percent: Optional[str] = Field(default=None, alias="todaysGainLossPercent")
    total_gain_loss_dollar: Optional[str] = Field(default=None, alias="totalGainLossDollar")
    total_gain_loss_percent: Optional[str] = Field(default=None, alias="totalGainLossPercent")
    percent_of_account: Optional[str] = Field(default=None, alias="percentOfAccount")
    cost_basis_total: Optional[float] = Field(default=None, alias="costBasisTotal")
    average_cost_basis: Optional[float] = Field(default=None, alias="averageCostBasis")
    type: str = ""
    original_row: str = Field(default="", alias="originalRow")
    line_no: Optional[int] = Field(default=None, alias="lineNo")  # 1-based line in the source file

    model_config = ConfigDict(populate_by_name=True)

class Quote(BaseModel):
    symbol: str
    current_price: Optional[float] = Field(default=None, alias="currentPrice")
    previous_close: Optional[float] = Field(default=None, alias="previousClose")
    day_change: Optional[float] = Field(default=None, alias="dayChange")
    day_change_percent: Optional[float] = Field(default=None, alias="dayChangePercent")
    currency: Optional[str] = None
    exchange: Optional[str] = None
    long_name: Optional[str] = Field(default=None, alias="longName")
    week52_high: Optional[float] = Field(default=None, alias="week52High")
    week52_low: Optional[float] = Field(default=None, alias="week52Low")
    as_of: Optional[int] = Field(default=None, alias="asOf")  # epoch seconds

    model_config = ConfigDict(populate_by_name=True)

class ValuedHolding(HoldingRecord):
    current_price: Optional[float] = Field(default=None, alias="currentPrice")
    total_value: Optional[float] = Field(default=None, alias="totalValue")
    gain_loss: Optional[float] = Field(default=None, alias="gainLoss")
    gain_loss_percent: Optional[float] = Field(default=None, alias="gainLossPercent")
    quote: Optional[Quote] = None

class PortfolioSummary(BaseModel):
    total_value: float = Field(default=0.0, alias="totalValue")
    total_cost: float = Field(default=0.0, alias="totalCost")
    total_gain_loss: float = Field(default=0.0, alias="totalGainLoss")
    total_gain_loss_percent: float = Field(default=0.0, alias="totalGainLossPercent")
    annualized_return: float = Field(default=0.0, alias="annualizedReturn")
    item_count: int = Field(default=0, alias="itemCount")

    model_config = ConfigDict(populate_by_name=True)
