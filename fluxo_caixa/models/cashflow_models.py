"""
Modelos de dados do fluxo de caixa.
Dataclasses tipadas para movimentações unificadas, indicadores, projeções e alertas.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from fluxo_caixa.config import (
    CONFIDENCE_TABLE,
    DAYS_PER_MONTH,
    HEALTHY_BALANCE_THRESHOLD,
    LOW_BALANCE_FLOOR,
    POSITIVE_VARIATION_RATIO,
    PROJECTION_HORIZONS,
    SHORT_RUNWAY_DAYS,
    TRAILING_WINDOW_DAYS,
    UPCOMING_WINDOW_DAYS,
)

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_cents(value: Decimal) -> Decimal:
    """Arredonda para centavos (meio para cima)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# ─── Vocabulário ───

KIND_INFLOW = "inflow"
KIND_OUTFLOW = "outflow"

STATUS_REALIZED = "realized"
STATUS_EXPECTED = "expected"
STATUS_OVERDUE = "overdue"

ORIGIN_LEDGER = "ledger"
ORIGIN_PAYABLE = "payable"
ORIGIN_SALE = "sale"
ORIGIN_MANUAL = "manual"

LIQUIDITY_HEALTHY = "healthy"
LIQUIDITY_CAUTION = "caution"
LIQUIDITY_CRITICAL = "critical"

TREND_POSITIVE = "positive"
TREND_NEGATIVE = "negative"

PROJECTION_POSITIVE = "positive"
PROJECTION_NEGATIVE = "negative"
PROJECTION_STABLE = "stable"
PROJECTION_CRITICAL = "critical"

SEVERITY_CRITICAL = "critical"
SEVERITY_WARNING = "warning"
SEVERITY_INFO = "info"

PRIORITY_HIGH = "high"
PRIORITY_MEDIUM = "medium"
PRIORITY_LOW = "low"

ALERT_ACTIVE = "active"
ALERT_RESOLVED = "resolved"
ALERT_DISMISSED = "dismissed"


# ─── Janela de datas ───

@dataclass(frozen=True)
class DateWindow:
    """Intervalo fechado [start, end] usado nas leituras das fontes."""
    start: date
    end: date

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    @classmethod
    def around(cls, today: date, days_back: int, days_ahead: int) -> "DateWindow":
        return cls(
            start=today - timedelta(days=days_back),
            end=today + timedelta(days=days_ahead),
        )


# ─── Movimentação unificada ───

@dataclass(frozen=True)
class Movement:
    """Um evento financeiro normalizado (entrada ou saída)."""
    id: str
    date: date
    kind: str  # inflow / outflow
    amount: Decimal
    status: str  # realized / expected / overdue
    origin: str  # ledger / payable / sale / manual
    origin_id: str
    category: str = "Sem categoria"
    category_color: str = "#6366f1"
    description: str = ""
    running_balance: Optional[Decimal] = None
    bank_id: Optional[str] = None
    counterparty: Optional[str] = None

    @property
    def is_inflow(self) -> bool:
        return self.kind == KIND_INFLOW

    @property
    def is_outflow(self) -> bool:
        return self.kind == KIND_OUTFLOW

    @property
    def is_realized(self) -> bool:
        return self.status == STATUS_REALIZED


@dataclass(frozen=True)
class DroppedRecord:
    """Registro descartado na unificação por falta de campo obrigatório."""
    source: str
    record_id: str
    reason: str


@dataclass
class UnificationResult:
    """Linha do tempo unificada + diagnóstico dos registros descartados."""
    movements: list[Movement] = field(default_factory=list)
    dropped: list[DroppedRecord] = field(default_factory=list)

    @property
    def dropped_count(self) -> int:
        return len(self.dropped)


# ─── Indicadores ───

@dataclass
class Indicators:
    """Retrato do caixa no momento do cálculo."""
    current_balance: Decimal = ZERO
    period_inflow: Decimal = ZERO
    period_inflow_count: int = 0
    period_outflow: Decimal = ZERO
    period_outflow_count: int = 0
    net_result: Decimal = ZERO
    projected_balance_30d: Decimal = ZERO
    liquidity_status: str = LIQUIDITY_CRITICAL
    days_of_cash: Optional[int] = None  # None = sem saídas no mês
    trend: str = TREND_NEGATIVE
    computed_at: Optional[datetime] = None
    has_balance: bool = False


# ─── Projeções ───

@dataclass
class ProjectionBreakdown:
    """Distribuição das entradas e saídas projetadas por subcategoria."""
    sales: Decimal = ZERO
    other_inflow: Decimal = ZERO
    payables: Decimal = ZERO
    other_outflow: Decimal = ZERO

    @property
    def inflow_total(self) -> Decimal:
        return self.sales + self.other_inflow

    @property
    def outflow_total(self) -> Decimal:
        return self.payables + self.other_outflow


@dataclass
class Projection:
    """Projeção de saldo para um horizonte."""
    horizon_days: int
    label: str
    start: date
    end: date
    opening_balance: Decimal
    projected_inflow: Decimal
    projected_outflow: Decimal
    closing_balance: Decimal
    variation: Decimal
    variation_pct: Optional[Decimal]
    confidence: int
    status: str
    breakdown: ProjectionBreakdown = field(default_factory=ProjectionBreakdown)


# ─── Alertas ───

@dataclass
class Alert:
    """Alerta acionável derivado dos indicadores."""
    id: str
    severity: str  # critical / warning / info
    title: str
    description: str
    priority: str  # high / medium / low
    created_at: datetime
    impact: Optional[Decimal] = None
    count: Optional[int] = None
    suggested_actions: list[str] = field(default_factory=list)
    status: str = ALERT_ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == ALERT_ACTIVE


# ─── Configuração do motor ───

@dataclass(frozen=True)
class EngineConfig:
    """Limites e parâmetros ajustáveis do motor."""
    healthy_threshold: Decimal = Decimal(str(HEALTHY_BALANCE_THRESHOLD))
    low_balance_floor: Decimal = Decimal(str(LOW_BALANCE_FLOOR))
    trailing_window_days: int = TRAILING_WINDOW_DAYS
    horizons: tuple = PROJECTION_HORIZONS
    confidence_table: dict = field(default_factory=lambda: dict(CONFIDENCE_TABLE))
    positive_variation_ratio: Decimal = Decimal(str(POSITIVE_VARIATION_RATIO))
    upcoming_window_days: int = UPCOMING_WINDOW_DAYS
    short_runway_days: int = SHORT_RUNWAY_DAYS
    days_per_month: int = DAYS_PER_MONTH

    def __post_init__(self):
        if not self.horizons or any(h <= 0 for h in self.horizons):
            raise ValueError(f"Horizontes de projeção inválidos: {self.horizons}")
        if self.trailing_window_days <= 0:
            raise ValueError("A janela de histórico deve ser positiva")
        if self.days_per_month <= 0:
            raise ValueError(f"Dias por mês inválido: {self.days_per_month}")
        if self.upcoming_window_days <= 0:
            raise ValueError(f"Janela de contas a vencer inválida: {self.upcoming_window_days}")
        if not self.confidence_table:
            raise ValueError("Tabela de confiança vazia")
        previous = None
        for days in sorted(self.confidence_table):
            value = self.confidence_table[days]
            if days <= 0 or not 0 <= value <= 100:
                raise ValueError(f"Entrada inválida na tabela de confiança: {days} -> {value}")
            if previous is not None and value > previous:
                raise ValueError(
                    "A confiança não pode aumentar com o horizonte "
                    f"({days} dias -> {value} > {previous})"
                )
            previous = value
