"""
Serviço de Indicadores do Fluxo de Caixa.

Responsabilidades:
- Saldo atual (último saldo do extrato)
- Entradas e saídas realizadas no mês
- Status de liquidez, dias de caixa e tendência
"""

from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_FLOOR
from typing import Iterable, Optional

from fluxo_caixa.models.cashflow_models import (
    LIQUIDITY_CAUTION,
    LIQUIDITY_CRITICAL,
    LIQUIDITY_HEALTHY,
    ORIGIN_LEDGER,
    TREND_NEGATIVE,
    TREND_POSITIVE,
    ZERO,
    EngineConfig,
    Indicators,
    Movement,
)


def month_bounds(today: date) -> tuple[date, date]:
    """Primeiro e último dia do mês de `today`."""
    first = today.replace(day=1)
    next_month = (first + timedelta(days=32)).replace(day=1)
    return first, next_month - timedelta(days=1)


def current_balance(movements: Iterable[Movement]) -> Optional[Decimal]:
    """
    Saldo do lançamento bancário mais recente que informa saldo posterior.

    Nunca soma movimentações. Em empate de data vence o primeiro na ordem
    de exibição.
    """
    latest = None
    for mov in movements:
        if mov.origin != ORIGIN_LEDGER or mov.running_balance is None:
            continue
        if latest is None or mov.date > latest.date:
            latest = mov
    return latest.running_balance if latest else None


def classify_liquidity(balance: Decimal, healthy_threshold: Decimal) -> str:
    if balance > healthy_threshold:
        return LIQUIDITY_HEALTHY
    if balance > ZERO:
        return LIQUIDITY_CAUTION
    return LIQUIDITY_CRITICAL


def days_of_cash(balance: Decimal, monthly_outflow: Decimal, days_per_month: int = 30) -> Optional[int]:
    """
    Dias de caixa = saldo / (saídas do mês / 30).

    None quando não houve saída no mês (não aplicável).
    """
    if monthly_outflow <= ZERO:
        return None
    daily_outflow = monthly_outflow / days_per_month
    days = (balance / daily_outflow).to_integral_value(rounding=ROUND_FLOOR)
    return max(int(days), 0)


def calculate_indicators(
    movements: list[Movement],
    now: datetime,
    config: EngineConfig = None,
) -> Indicators:
    config = config or EngineConfig()
    first_day, last_day = month_bounds(now.date())

    inflow = ZERO
    outflow = ZERO
    inflow_count = 0
    outflow_count = 0

    for mov in movements:
        if not mov.is_realized or not first_day <= mov.date <= last_day:
            continue
        if mov.is_inflow:
            inflow += mov.amount
            inflow_count += 1
        else:
            outflow += mov.amount
            outflow_count += 1

    balance = current_balance(movements)
    has_balance = balance is not None
    balance = balance if has_balance else ZERO
    net = inflow - outflow

    return Indicators(
        current_balance=balance,
        period_inflow=inflow,
        period_inflow_count=inflow_count,
        period_outflow=outflow,
        period_outflow_count=outflow_count,
        net_result=net,
        projected_balance_30d=balance + net,
        liquidity_status=classify_liquidity(balance, config.healthy_threshold),
        days_of_cash=days_of_cash(balance, outflow, config.days_per_month) if has_balance else None,
        trend=TREND_POSITIVE if inflow > outflow else TREND_NEGATIVE,
        computed_at=now,
        has_balance=has_balance,
    )
