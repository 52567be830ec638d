"""Small text formatting helpers shared by command handlers."""

from datetime import datetime, timezone


def plural(count: int, unit: str) -> str:
    """Render ``count`` with ``unit``, adding an "s" unless count is 1."""
    return f"{count} {unit}{'' if count == 1 else 's'}"


def format_date(value: str | int | float | datetime | None) -> str:
    """
    Render a timestamp as e.g. "Jan 5, 2024".

    Accepts ISO strings, epoch seconds or milliseconds, or datetimes.
    Unparseable input is returned unchanged.
    """
    if value is None or value == "":
        return "Unknown"

    dt: datetime
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) or (isinstance(value, str) and value.isdigit()):
        ts = float(value)
        if ts > 1e12:  # milliseconds
            ts /= 1000
        dt = datetime.fromtimestamp(ts, tz=timezone.utc)
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return str(value)

    return f"{dt.strftime('%b')} {dt.day}, {dt.year}"


def format_currency(amount: float | int | None, currency: str = "USD") -> str:
    """Render an amount as "$1,234.56" (or "1,234.56 EUR" for other currencies)."""
    value = float(amount or 0)
    if currency.upper() == "USD":
        return f"${value:,.2f}"
    return f"{value:,.2f} {currency.upper()}"
