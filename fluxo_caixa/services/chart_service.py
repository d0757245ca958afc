"""
Série mensal de entradas e saídas realizadas para o gráfico do fluxo de caixa.
"""

from datetime import date, timedelta

import pandas as pd

from fluxo_caixa.config import CHART_MONTHS
from fluxo_caixa.models.cashflow_models import KIND_INFLOW, KIND_OUTFLOW, Movement

MONTH_NAMES_PT = {
    "01": "Jan", "02": "Fev", "03": "Mar", "04": "Abr",
    "05": "Mai", "06": "Jun", "07": "Jul", "08": "Ago",
    "09": "Set", "10": "Out", "11": "Nov", "12": "Dez",
}

CHART_COLUMNS = ["period", "month_key", "inflow", "outflow", "net"]


def last_month_keys(today: date, months: int) -> list[str]:
    """Chaves YYYY-MM dos últimos `months` meses, mais antigo primeiro."""
    keys = []
    current = today.replace(day=1)
    for _ in range(months):
        keys.append(current.strftime("%Y-%m"))
        current = (current - timedelta(days=1)).replace(day=1)
    keys.reverse()
    return keys


def month_label(month_key: str) -> str:
    year, mm = month_key.split("-")
    return f"{MONTH_NAMES_PT.get(mm, mm)}/{year}"


def build_monthly_chart(
    movements: list[Movement],
    today: date,
    months: int = CHART_MONTHS,
) -> pd.DataFrame:
    """
    Agrega entradas e saídas realizadas por mês.

    Meses sem movimentação aparecem zerados. Valores em float (exibição).
    """
    keys = last_month_keys(today, months)

    rows = [
        {"month_key": m.date.strftime("%Y-%m"), "kind": m.kind, "amount": float(m.amount)}
        for m in movements
        if m.is_realized
    ]
    if not rows:
        totals = pd.DataFrame(0.0, index=keys, columns=[KIND_INFLOW, KIND_OUTFLOW])
    else:
        totals = _monthly_totals(pd.DataFrame(rows), keys)

    chart = pd.DataFrame({
        "period": [month_label(k) for k in keys],
        "month_key": keys,
        "inflow": totals[KIND_INFLOW].astype(float).to_numpy(),
        "outflow": totals[KIND_OUTFLOW].astype(float).to_numpy(),
    })
    chart["net"] = chart["inflow"] - chart["outflow"]
    return chart[CHART_COLUMNS]


def _monthly_totals(frame: pd.DataFrame, keys: list[str]) -> pd.DataFrame:
    return (
        frame.groupby(["month_key", "kind"])["amount"].sum()
        .unstack(fill_value=0.0)
        .reindex(index=keys, columns=[KIND_INFLOW, KIND_OUTFLOW], fill_value=0.0)
        .fillna(0.0)
    )
