"""
Serviço de Projeção do Fluxo de Caixa.

Responsabilidades:
- Velocidade média diária de entradas e saídas (janela móvel)
- Projeção de saldo por horizonte (7 / 30 / 90 dias)
- Confiança decrescente com o horizonte
- Detalhamento por subcategoria com fechamento exato em centavos
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from fluxo_caixa.models.cashflow_models import (
    CENT,
    ORIGIN_PAYABLE,
    ORIGIN_SALE,
    PROJECTION_CRITICAL,
    PROJECTION_NEGATIVE,
    PROJECTION_POSITIVE,
    PROJECTION_STABLE,
    ZERO,
    EngineConfig,
    Indicators,
    Movement,
    Projection,
    ProjectionBreakdown,
    to_cents,
)

# Divisão padrão quando não há histórico para observar
DEFAULT_INFLOW_SHARES = {"sales": Decimal("0.8"), "other_inflow": Decimal("0.2")}
DEFAULT_OUTFLOW_SHARES = {"payables": Decimal("0.9"), "other_outflow": Decimal("0.1")}


@dataclass
class Velocity:
    """Totais realizados na janela e o número de dias usado como divisor."""
    inflow_total: Decimal = ZERO
    outflow_total: Decimal = ZERO
    days: int = 1
    sales_inflow: Decimal = ZERO
    payables_outflow: Decimal = ZERO

    @property
    def daily_inflow(self) -> Decimal:
        return self.inflow_total / self.days

    @property
    def daily_outflow(self) -> Decimal:
        return self.outflow_total / self.days

    def inflow_for(self, horizon_days: int) -> Decimal:
        return to_cents(self.inflow_total * horizon_days / self.days)

    def outflow_for(self, horizon_days: int) -> Decimal:
        return to_cents(self.outflow_total * horizon_days / self.days)


# ─── Velocidade ───

def estimate_velocity(movements: list[Movement], today: date, window_days: int = 30) -> Velocity:
    """
    Média diária realizada nos últimos `window_days` dias (hoje incluso).

    Com menos histórico que a janela, divide pelos dias efetivamente
    disponíveis desde a movimentação realizada mais antiga.
    """
    window_start = today - timedelta(days=window_days - 1)
    velocity = Velocity(days=window_days)
    earliest: Optional[date] = None

    for mov in movements:
        if not mov.is_realized or mov.date > today:
            continue
        if earliest is None or mov.date < earliest:
            earliest = mov.date
        if mov.date < window_start:
            continue
        if mov.is_inflow:
            velocity.inflow_total += mov.amount
            if mov.origin == ORIGIN_SALE:
                velocity.sales_inflow += mov.amount
        else:
            velocity.outflow_total += mov.amount
            if mov.origin == ORIGIN_PAYABLE:
                velocity.payables_outflow += mov.amount

    if earliest is not None:
        available = (today - earliest).days + 1
        velocity.days = max(min(window_days, available), 1)

    return velocity


# ─── Confiança ───

def confidence_for_horizon(horizon_days: int, table: dict) -> int:
    """
    Interpola linearmente a confiança na tabela {dias: %}.

    Fora da faixa da tabela usa o valor da ponta mais próxima; como a
    tabela é não crescente, o resultado também é.
    """
    points = sorted(table.items())
    if horizon_days <= points[0][0]:
        return int(points[0][1])
    if horizon_days >= points[-1][0]:
        return int(points[-1][1])

    for (d0, c0), (d1, c1) in zip(points, points[1:]):
        if d0 <= horizon_days <= d1:
            ratio = Decimal(horizon_days - d0) / Decimal(d1 - d0)
            value = Decimal(c0) + (Decimal(c1) - Decimal(c0)) * ratio
            return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return int(points[-1][1])


# ─── Detalhamento ───

def allocate(total: Decimal, weights: dict[str, Decimal]) -> dict[str, Decimal]:
    """
    Reparte `total` proporcionalmente aos pesos, em centavos.

    A sobra de arredondamento vai para o maior bucket, então a soma bate
    exatamente com o total.
    """
    weight_sum = sum(weights.values(), ZERO)
    if weight_sum <= ZERO:
        weights = {k: Decimal(1) for k in weights}
        weight_sum = Decimal(len(weights))

    parts = {k: to_cents(total * w / weight_sum) for k, w in weights.items()}
    remainder = total - sum(parts.values(), ZERO)
    if remainder:
        largest = max(parts, key=lambda k: parts[k])
        parts[largest] += remainder
    return parts


def _shares(part: Decimal, whole: Decimal, keys: tuple[str, str], default: dict) -> dict:
    if whole <= ZERO:
        return default
    return {keys[0]: part, keys[1]: whole - part}


def build_breakdown(velocity: Velocity, inflow: Decimal, outflow: Decimal) -> ProjectionBreakdown:
    inflow_parts = allocate(inflow, _shares(
        velocity.sales_inflow, velocity.inflow_total, ("sales", "other_inflow"), DEFAULT_INFLOW_SHARES,
    ))
    outflow_parts = allocate(outflow, _shares(
        velocity.payables_outflow, velocity.outflow_total, ("payables", "other_outflow"), DEFAULT_OUTFLOW_SHARES,
    ))
    return ProjectionBreakdown(**inflow_parts, **outflow_parts)


# ─── Status ───

def classify_projection(
    opening: Decimal,
    closing: Decimal,
    variation: Decimal,
    positive_ratio: Decimal = Decimal("0.10"),
) -> str:
    if closing < ZERO:
        return PROJECTION_CRITICAL
    if variation > opening * positive_ratio:
        return PROJECTION_POSITIVE
    if variation < ZERO:
        return PROJECTION_NEGATIVE
    return PROJECTION_STABLE


def variation_percent(variation: Decimal, opening: Decimal) -> Optional[Decimal]:
    """Variação em % do saldo inicial; None quando o saldo inicial é zero."""
    if opening == ZERO:
        return None
    return (variation / abs(opening) * 100).quantize(CENT, rounding=ROUND_HALF_UP)


# ─── Projeções ───

def project_horizon(
    horizon_days: int,
    opening: Decimal,
    velocity: Velocity,
    today: date,
    config: EngineConfig,
) -> Projection:
    inflow = velocity.inflow_for(horizon_days)
    outflow = velocity.outflow_for(horizon_days)
    closing = opening + inflow - outflow
    variation = closing - opening

    return Projection(
        horizon_days=horizon_days,
        label=f"Próximos {horizon_days} dias",
        start=today,
        end=today + timedelta(days=horizon_days),
        opening_balance=opening,
        projected_inflow=inflow,
        projected_outflow=outflow,
        closing_balance=closing,
        variation=variation,
        variation_pct=variation_percent(variation, opening),
        confidence=confidence_for_horizon(horizon_days, config.confidence_table),
        status=classify_projection(opening, closing, variation, config.positive_variation_ratio),
        breakdown=build_breakdown(velocity, inflow, outflow),
    )


def build_projections(
    movements: list[Movement],
    indicators: Indicators,
    today: date,
    config: EngineConfig = None,
) -> list[Projection]:
    """Uma projeção por horizonte configurado, em ordem crescente de dias."""
    config = config or EngineConfig()
    velocity = estimate_velocity(movements, today, config.trailing_window_days)
    opening = indicators.current_balance

    return [
        project_horizon(days, opening, velocity, today, config)
        for days in sorted(config.horizons)
    ]
