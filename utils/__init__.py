"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, ensure_utc, coerce_datetime, start_of_month, month_starts
from utils.owner_context import (
    get_current_owner_id,
    set_current_owner_id,
    clear_current_owner_id,
    owner_context,
)
from utils.chains import get_chain_name, get_explorer_url, is_valid_tx_hash
from utils.formatting import format_currency, truncate_address, format_date
