"""
In-memory stand-in for PostgresClient.

Understands exactly the statements the invoice, transaction and audit
stores issue, so service and scenario tests run the real SQL-building
code without a database. Unknown statements fail loudly.
"""

import re
from collections import defaultdict
from datetime import timezone
from typing import Any

from core.exceptions import StoreError

_INSERT = re.compile(r"^INSERT INTO (\w+) \(([^)]*)\)")


def _normalize(query: str) -> str:
    return " ".join(query.split())


def _unwrap(value: Any) -> Any:
    # psycopg2.extras.Json keeps the wrapped object on .adapted
    return getattr(value, "adapted", value)


def _newest_first(rows: list[dict]) -> list[dict]:
    return sorted(reversed(rows), key=lambda r: r["created_at"], reverse=True)


def _oldest_first(rows: list[dict]) -> list[dict]:
    return sorted(rows, key=lambda r: r["created_at"])


def _status_totals(rows: list[dict], amount_field: str) -> list[dict]:
    grouped: dict[str, dict] = {}
    for row in rows:
        bucket = grouped.setdefault(row["status"], {"status": row["status"], "count": 0, "total_amount": 0.0})
        bucket["count"] += 1
        bucket["total_amount"] += row[amount_field]
    return list(grouped.values())


class FakePostgres:
    """Tables are lists of row dicts: invoices, transactions, audit_log."""

    INVOICE_DEFAULTS = {"paid_at": None, "transaction_hash": None}

    def __init__(self):
        self.tables: dict[str, list[dict]] = defaultdict(list)
        self.queries: list[tuple[str, tuple]] = []
        self._failures: list[str] = []

    # -------------------------------------------------------------------------
    # Test controls
    # -------------------------------------------------------------------------

    def fail_on(self, fragment: str) -> None:
        """Raise StoreError for any statement containing fragment."""
        self._failures.append(fragment)

    def recover(self) -> None:
        self._failures.clear()

    def rows(self, table: str) -> list[dict]:
        return self.tables[table]

    # -------------------------------------------------------------------------
    # PostgresClient surface
    # -------------------------------------------------------------------------

    def execute(self, query: str, params: tuple | None = None) -> list[dict[str, Any]]:
        sql = _normalize(query)
        params = tuple(_unwrap(p) for p in (params or ()))
        self.queries.append((sql, params))
        for fragment in self._failures:
            if fragment in sql:
                raise StoreError(f"Database error: simulated failure on {fragment}")
        return [dict(row) for row in self._dispatch(sql, params)]

    def execute_single(self, query: str, params: tuple | None = None) -> dict[str, Any] | None:
        rows = self.execute(query, params)
        return rows[0] if rows else None

    def execute_returning(self, query: str, params: tuple | None = None) -> list[dict[str, Any]]:
        return self.execute(query, params)

    def execute_scalar(self, query: str, params: tuple | None = None) -> Any:
        row = self.execute_single(query, params)
        return next(iter(row.values())) if row else None

    def close(self) -> None:
        pass

    # -------------------------------------------------------------------------
    # Statement handling
    # -------------------------------------------------------------------------

    def _owned(self, table: str, owner_id) -> list[dict]:
        return [r for r in self.tables[table] if r["user_id"] == owner_id]

    def _find(self, table: str, row_id, owner_id) -> dict | None:
        for row in self.tables[table]:
            if row["id"] == row_id and row["user_id"] == owner_id:
                return row
        return None

    def _dispatch(self, sql: str, p: tuple) -> list[dict]:
        insert = _INSERT.match(sql)
        if insert:
            return self._insert(insert.group(1), insert.group(2), p)

        # invoices
        if sql.startswith("SELECT * FROM invoices WHERE user_id = %s ORDER BY created_at DESC"):
            rows = _newest_first(self._owned("invoices", p[0]))
            return rows[: p[1]] if "LIMIT" in sql else rows
        if sql == "SELECT * FROM invoices WHERE id = %s AND user_id = %s":
            row = self._find("invoices", p[0], p[1])
            return [row] if row else []
        if sql.startswith("UPDATE invoices SET status = %s, paid_at = CASE"):
            status, to_paid, stamp, now, invoice_id, owner_id = p
            row = self._find("invoices", invoice_id, owner_id)
            if row is None:
                return []
            row.update(status=status, updated_at=now)
            if to_paid:
                row["paid_at"] = stamp
            return [row]
        if sql.startswith("UPDATE invoices SET status = %s, paid_at = %s, transaction_hash = %s"):
            status, paid_at, tx_hash, now, invoice_id, owner_id = p
            row = self._find("invoices", invoice_id, owner_id)
            if row is None:
                return []
            row.update(status=status, paid_at=paid_at, transaction_hash=tx_hash, updated_at=now)
            return [row]
        if sql.startswith("DELETE FROM invoices"):
            row = self._find("invoices", p[0], p[1])
            if row is None:
                return []
            self.tables["invoices"].remove(row)
            return [{"id": row["id"]}]
        if sql.startswith("SELECT * FROM invoices WHERE user_id = %s AND status = %s AND due_date < %s"):
            owner_id, status, now = p
            rows = [r for r in self._owned("invoices", owner_id) if r["status"] == status and r["due_date"] < now]
            return sorted(rows, key=lambda r: r["due_date"])
        if "FROM invoices WHERE user_id = %s GROUP BY status" in sql:
            return _status_totals(self._owned("invoices", p[0]), "total_amount")
        if "EXTRACT(YEAR FROM paid_at" in sql:
            return self._paid_by_month(*p)
        if "GROUP BY client_name, client_email" in sql:
            return self._paid_by_client(*p)

        # transactions
        if sql.startswith("SELECT * FROM transactions WHERE user_id = %s ORDER BY created_at DESC"):
            rows = _newest_first(self._owned("transactions", p[0]))
            return rows[: p[1]] if "LIMIT" in sql else rows
        if sql == "SELECT * FROM transactions WHERE id = %s AND user_id = %s":
            row = self._find("transactions", p[0], p[1])
            return [row] if row else []
        if sql.startswith("SELECT * FROM transactions WHERE user_id = %s AND hash = %s AND network_id = %s"):
            owner_id, tx_hash, network_id = p
            rows = [
                r for r in _oldest_first(self._owned("transactions", owner_id))
                if r["hash"] == tx_hash and r["network_id"] == network_id
            ]
            return rows[:1]
        if sql.startswith("SELECT * FROM transactions WHERE user_id = %s AND invoice_id = %s"):
            owner_id, invoice_id = p
            return _newest_first([r for r in self._owned("transactions", owner_id) if r["invoice_id"] == invoice_id])
        if sql.startswith("UPDATE transactions SET status = %s"):
            status, now, transaction_id, owner_id = p
            row = self._find("transactions", transaction_id, owner_id)
            if row is None:
                return []
            row.update(status=status, updated_at=now)
            return [row]
        if sql.startswith("SELECT t.* FROM transactions t JOIN invoices i"):
            return self._confirmed_with_unpaid_invoice(*p)
        if "FROM transactions WHERE user_id = %s GROUP BY status" in sql:
            return _status_totals(self._owned("transactions", p[0]), "amount")
        if "GROUP BY network_id" in sql:
            return self._by_network(p[0])

        # audit_log
        if "FROM audit_log" in sql:
            owner_id, entity_type, entity_id = p
            rows = [
                r for r in self._owned("audit_log", owner_id)
                if r["entity_type"] == entity_type and r["entity_id"] == entity_id
            ]
            return _newest_first(rows)

        raise AssertionError(f"FakePostgres does not understand: {sql}")

    def _insert(self, table: str, columns: str, params: tuple) -> list[dict]:
        names = [c.strip() for c in columns.split(",")]
        row = dict(self.INVOICE_DEFAULTS) if table == "invoices" else {}
        row.update(zip(names, params))
        self.tables[table].append(row)
        return [row]

    def _paid_by_month(self, owner_id, status, start, end) -> list[dict]:
        buckets: dict[tuple[int, int], dict] = {}
        for row in self._owned("invoices", owner_id):
            paid_at = row["paid_at"]
            if row["status"] != status or paid_at is None or not (start <= paid_at < end):
                continue
            paid_at = paid_at.astimezone(timezone.utc)
            key = (paid_at.year, paid_at.month)
            bucket = buckets.setdefault(key, {"year": key[0], "month": key[1], "revenue": 0.0, "count": 0})
            bucket["revenue"] += row["total_amount"]
            bucket["count"] += 1
        return [buckets[k] for k in sorted(buckets)]

    def _paid_by_client(self, owner_id, status, limit) -> list[dict]:
        groups: dict[tuple[str, str], dict] = {}
        for row in self._owned("invoices", owner_id):
            if row["status"] != status:
                continue
            key = (row["client_name"], row["client_email"])
            group = groups.setdefault(key, {
                "client_name": key[0],
                "client_email": key[1],
                "total_revenue": 0.0,
                "invoice_count": 0,
                "last_invoice_date": row["created_at"],
            })
            group["total_revenue"] += row["total_amount"]
            group["invoice_count"] += 1
            group["last_invoice_date"] = max(group["last_invoice_date"], row["created_at"])
        ranked = sorted(groups.values(), key=lambda g: g["total_revenue"], reverse=True)
        return ranked[:limit]

    def _by_network(self, owner_id) -> list[dict]:
        groups: dict[int, dict] = {}
        for row in self._owned("transactions", owner_id):
            group = groups.setdefault(
                row["network_id"], {"network_id": row["network_id"], "count": 0, "total_amount": 0.0}
            )
            group["count"] += 1
            group["total_amount"] += row["amount"]
        return sorted(groups.values(), key=lambda g: (-g["count"], g["network_id"]))

    def _confirmed_with_unpaid_invoice(self, owner_id, confirmed, paid) -> list[dict]:
        rows = []
        for tx in _oldest_first(self._owned("transactions", owner_id)):
            if tx["status"] != confirmed or tx["invoice_id"] is None:
                continue
            invoice = self._find("invoices", tx["invoice_id"], owner_id)
            if invoice is not None and invoice["status"] != paid:
                rows.append(tx)
        return rows
