"""Read-only report shapes produced by AnalyticsService."""

from datetime import datetime

from pydantic import BaseModel


class StatusTotals(BaseModel):
    """
    Counts and summed amounts per status.

    Every status key is present (zero-filled) plus a "total" key.
    """

    counts: dict[str, int]
    amounts: dict[str, float]


class NetworkCount(BaseModel):
    network_id: int
    count: int


class TransactionTotals(StatusTotals):
    networks: list[NetworkCount]


class StatusShare(BaseModel):
    """One slice of the payment status pie chart."""

    status: str
    label: str
    value: int


class NetworkShare(BaseModel):
    network_id: int
    network_name: str
    count: int
    total_amount: float


class MonthlyRevenue(BaseModel):
    """Paid revenue for one calendar month. `month` is e.g. "Jan 2025"."""

    month: str
    year: int
    month_number: int
    revenue: float
    count: int


class ClientRevenue(BaseModel):
    client_name: str
    client_email: str
    total_revenue: float
    invoice_count: int
    last_invoice_date: datetime
