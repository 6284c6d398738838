"""
Dashboard revalidation stamps.

After a write, the dashboard pages that list the changed data are stamped
in Valkey under revalidate:<path>. The presentation layer compares a
page's stamp with its render time to decide whether to refetch. Stamps
are a refresh signal only; nothing reads data through them.
"""

import logging
from datetime import datetime

from clients.valkey_client import ValkeyClient
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

DASHBOARD_PATH = "/dashboard"
INVOICES_PATH = "/dashboard/invoices"
TRANSACTIONS_PATH = "/dashboard/transactions"
SETTINGS_PATH = "/dashboard/settings"


class PathRevalidator:
    """Stamp and read per-path revalidation times."""

    KEY_PREFIX = "revalidate:"

    def __init__(self, valkey: ValkeyClient, ttl_seconds: int = 86400):
        self.valkey = valkey
        self.ttl_seconds = ttl_seconds

    def _key(self, path: str) -> str:
        return f"{self.KEY_PREFIX}{path}"

    def revalidate(self, *paths: str, at: datetime | None = None) -> None:
        """Mark each path as changed now."""
        stamp = (at or now_utc()).isoformat()
        for path in paths:
            self.valkey.set(self._key(path), stamp, expire_seconds=self.ttl_seconds)
        logger.debug(f"Revalidated {', '.join(paths)}")

    def last_revalidated(self, path: str) -> datetime | None:
        """When the path was last stamped, or None if never (or expired)."""
        value = self.valkey.get(self._key(path))
        if value is None:
            return None
        return datetime.fromisoformat(value)
