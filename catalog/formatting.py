"""Display helpers for prices, windows and counts."""

CURRENCY_SYMBOLS = {"CNY": "¥", "USD": "$"}


def currency_symbol(unit: str) -> str:
    """Symbol for *unit*; unknown units are returned unchanged."""
    return CURRENCY_SYMBOLS.get(unit.upper(), unit)


def format_price(price: float, unit: str, digits: int = 2) -> str:
    return f"{currency_symbol(unit)}{price:.{digits}f}"


def format_number(value: float) -> str:
    return f"{value:,}"


def format_window(window: int) -> str:
    """Compact context size: 1.0M, 128K, or the raw count below 1000."""
    if window >= 1_000_000:
        return f"{window / 1_000_000:.1f}M"
    if window >= 1000:
        return f"{window / 1000:.0f}K"
    return str(window)
