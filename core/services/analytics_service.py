"""
Dashboard analytics.

Read-only reports derived from the invoice and transaction stores. The
stores do the GROUP BY work; this layer zero-fills statuses, fills in
empty months, names chains and applies display limits. Store failures
surface as AggregationError.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from uuid import UUID

from core.exceptions import AggregationError, StoreError, ValidationError
from core.models import (
    ClientRevenue,
    InvoiceStatus,
    MonthlyRevenue,
    NetworkCount,
    NetworkShare,
    StatusShare,
    StatusTotals,
    TransactionStatus,
    TransactionTotals,
)
from core.services.invoice_service import InvoiceService
from core.services.transaction_service import TransactionService
from utils.chains import UNKNOWN_CHAIN, get_chain_name
from utils.timezone import month_starts, now_utc, shift_months

logger = logging.getLogger(__name__)


@contextmanager
def _aggregating(report: str):
    try:
        yield
    except StoreError as e:
        logger.error(f"{report} aggregation failed: {e}")
        raise AggregationError(report, e) from e


def _status_totals(rows: list[dict], statuses: list[str]) -> StatusTotals:
    counts = {status: 0 for status in statuses}
    amounts = {status: 0.0 for status in statuses}
    for row in rows:
        status = row["status"]
        if status not in counts:
            logger.warning(f"Ignoring unknown status {status!r} in aggregation")
            continue
        counts[status] = int(row["count"])
        amounts[status] = float(row["total_amount"])
    counts["total"] = sum(counts.values())
    amounts["total"] = round(sum(amounts.values()), 2)
    return StatusTotals(counts=counts, amounts=amounts)


class AnalyticsService:
    """Service for dashboard reports."""

    def __init__(self, invoices: InvoiceService, transactions: TransactionService):
        self.invoices = invoices
        self.transactions = transactions

    def invoice_stats(self, owner_id: UUID) -> StatusTotals:
        """Invoice counts and totals per status, plus "total"."""
        with _aggregating("Invoice stats"):
            rows = self.invoices.totals_by_status(owner_id)
        return _status_totals(rows, [s.value for s in InvoiceStatus])

    def transaction_stats(self, owner_id: UUID) -> TransactionTotals:
        """Transaction counts and amounts per status, plus counts per chain."""
        with _aggregating("Transaction stats"):
            rows = self.transactions.totals_by_status(owner_id)
            network_rows = self.transactions.totals_by_network(owner_id)
        totals = _status_totals(rows, [s.value for s in TransactionStatus])
        return TransactionTotals(
            counts=totals.counts,
            amounts=totals.amounts,
            networks=[
                NetworkCount(network_id=row["network_id"], count=int(row["count"]))
                for row in network_rows
            ],
        )

    def payment_status_distribution(self, owner_id: UUID) -> list[StatusShare]:
        """One entry per invoice status, zero-filled, in lifecycle order."""
        counts = self.invoice_stats(owner_id).counts
        return [
            StatusShare(status=status.value, label=status.value.capitalize(), value=counts[status.value])
            for status in InvoiceStatus
        ]

    def network_distribution(self, owner_id: UUID) -> list[NetworkShare]:
        """Transaction count and volume per chain, busiest first."""
        with _aggregating("Network distribution"):
            rows = self.transactions.totals_by_network(owner_id)
        shares = [
            NetworkShare(
                network_id=row["network_id"],
                network_name=get_chain_name(row["network_id"], default=UNKNOWN_CHAIN),
                count=int(row["count"]),
                total_amount=float(row["total_amount"]),
            )
            for row in rows
        ]
        return sorted(shares, key=lambda share: share.count, reverse=True)

    def monthly_revenue(
        self,
        owner_id: UUID,
        months_back: int = 6,
        now: datetime | None = None,
    ) -> list[MonthlyRevenue]:
        """
        Paid revenue for each of the last `months_back` calendar months.

        Oldest month first, the current month last. Months with no paid
        invoices appear with zero revenue. Buckets use paid_at in UTC.

        Raises:
            ValidationError: months_back < 1
        """
        if months_back < 1:
            raise ValidationError.for_field("months_back", "Must be at least 1")

        months = month_starts(now or now_utc(), months_back)
        end = shift_months(months[-1], 1)

        with _aggregating("Monthly revenue"):
            rows = self.invoices.paid_totals_by_month(owner_id, months[0], end)

        by_month = {(int(row["year"]), int(row["month"])): row for row in rows}
        report = []
        for start in months:
            row = by_month.get((start.year, start.month))
            report.append(
                MonthlyRevenue(
                    month=start.strftime("%b %Y"),
                    year=start.year,
                    month_number=start.month,
                    revenue=float(row["revenue"]) if row else 0.0,
                    count=int(row["count"]) if row else 0,
                )
            )
        return report

    def top_clients(self, owner_id: UUID, limit: int = 5) -> list[ClientRevenue]:
        """
        Clients ranked by paid revenue, at most `limit` of them.

        Raises:
            ValidationError: limit < 1
        """
        if limit < 1:
            raise ValidationError.for_field("limit", "Must be at least 1")

        with _aggregating("Top clients"):
            rows = self.invoices.paid_totals_by_client(owner_id, limit)

        clients = [
            ClientRevenue(
                client_name=row["client_name"],
                client_email=row["client_email"],
                total_revenue=float(row["total_revenue"]),
                invoice_count=int(row["invoice_count"]),
                last_invoice_date=row["last_invoice_date"],
            )
            for row in rows
        ]
        return sorted(clients, key=lambda client: client.total_revenue, reverse=True)[:limit]
