"""Human-facing formatting for amounts, addresses and dates."""

from datetime import datetime


def format_currency(amount: float) -> str:
    """Format an amount as US dollars, e.g. 1234.5 -> "$1,234.50"."""
    if amount < 0:
        return f"-${abs(amount):,.2f}"
    return f"${amount:,.2f}"


def truncate_address(address: str | None) -> str:
    """Shorten a wallet address or hash to 0x1234...abcd form."""
    if not address:
        return ""
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


def format_date(value: datetime | None) -> str:
    """Long-form date, e.g. "March 05, 2025". Empty for None."""
    if value is None:
        return ""
    return value.strftime("%B %d, %Y")
