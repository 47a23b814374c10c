"""Human-readable number formatting for generated text."""


def format_currency(amount: float, symbol: str = "Rp") -> str:
    """Format an amount with dot thousands separators, e.g. ``Rp 1.500.000``."""
    return f"{symbol} {round(amount):,}".replace(",", ".")


def format_thousands(amount: float, symbol: str = "Rp") -> str:
    """Compact form in thousands, e.g. ``Rp400K``."""
    return f"{symbol}{amount / 1000:.0f}K"
