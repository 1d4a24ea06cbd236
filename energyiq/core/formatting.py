"""
Display formatting shared by the dialogue, the CLI and the exporters.
"""


def format_currency(amount: float, currency: str = "₹") -> str:
    """Format a money amount with thousands separators and 2 decimals."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{currency}{abs(amount):,.2f}"


def format_kwh(kwh: float) -> str:
    return f"{kwh:,.2f} kWh"


def format_duration(hours: float) -> str:
    """Render daily usage hours as "2h", "1h 30m" or "45m"."""
    if hours >= 1:
        if hours % 1 == 0:
            return f"{int(hours)}h"
        whole = int(hours)
        minutes = round((hours - whole) * 60)
        if minutes == 60:
            return f"{whole + 1}h"
        return f"{whole}h {minutes}m"
    return f"{round(hours * 60)}m"


def format_number(value: float) -> str:
    """Drop a trailing ".0" so 180.0 displays as 180."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)
