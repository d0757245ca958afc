"""
Utilitários de formatação para valores financeiros brasileiros.
"""

from decimal import Decimal


def _swap_separators(text: str) -> str:
    return text.replace(",", "X").replace(".", ",").replace("X", ".")


def format_brl(value: Decimal | float) -> str:
    """Formata um número como Real brasileiro (R$ 150.000,50)."""
    if value >= 0:
        return _swap_separators(f"R$ {value:,.2f}")
    return _swap_separators(f"-R$ {abs(value):,.2f}")


def format_percent(value: Decimal | float | None, decimals: int = 1) -> str:
    """Formata um número como percentual (ex: 23,5%); None vira 'n/a'."""
    if value is None:
        return "n/a"
    return f"{value:.{decimals}f}%".replace(".", ",")


def format_days(value: int | None) -> str:
    """Formata dias de caixa de forma legível."""
    if value is None:
        return "∞"
    if value <= 0:
        return "0 dias"
    if value == 1:
        return "1 dia"
    if value >= 999:
        return "999+ dias"
    return f"{value} dias"
