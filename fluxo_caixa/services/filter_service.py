"""
Filtros da lista de movimentações (período, tipo, status, origem, categoria, banco).
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Optional

from fluxo_caixa.models.cashflow_models import DateWindow, Movement

QUICK_PERIOD_DAYS = {
    "7_dias": 7,
    "30_dias": 30,
    "90_dias": 90,
    "6_meses": 180,
}


def quick_period_window(period: str, today: date) -> DateWindow:
    """Janela de `period` dias atrás até hoje."""
    try:
        days = QUICK_PERIOD_DAYS[period]
    except KeyError:
        raise ValueError(
            f"Período rápido desconhecido: {period!r} (use {', '.join(QUICK_PERIOD_DAYS)})"
        ) from None
    return DateWindow(start=today - timedelta(days=days), end=today)


@dataclass
class MovementFilter:
    """Critérios de filtro; coleções vazias não restringem nada."""
    window: Optional[DateWindow] = None
    kinds: set = field(default_factory=set)
    statuses: set = field(default_factory=set)
    origins: set = field(default_factory=set)
    categories: set = field(default_factory=set)
    bank_ids: set = field(default_factory=set)

    def matches(self, mov: Movement) -> bool:
        if self.window is not None and mov.date not in self.window:
            return False
        if self.kinds and mov.kind not in self.kinds:
            return False
        if self.statuses and mov.status not in self.statuses:
            return False
        if self.origins and mov.origin not in self.origins:
            return False
        if self.categories and mov.category not in self.categories:
            return False
        if self.bank_ids and mov.bank_id not in self.bank_ids:
            return False
        return True


def filter_movements(movements: Iterable[Movement], flt: MovementFilter) -> list[Movement]:
    return [m for m in movements if flt.matches(m)]
