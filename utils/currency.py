from utils.constants import CURRENCY_SYMBOLS


def currency_symbol(code: str) -> str:
    """Display symbol for an ISO currency code; unknown codes show the code itself."""
    return CURRENCY_SYMBOLS.get((code or "").upper(), f"{code} " if code else "$")


def format_currency(amount: float, symbol: str = "$", decimals: int = 0) -> str:
    """Format a float as currency string, e.g. '$1,235' or '$1,234.56'."""
    if amount < 0:
        return f"-{symbol}{abs(amount):,.{decimals}f}"
    return f"{symbol}{amount:,.{decimals}f}"
