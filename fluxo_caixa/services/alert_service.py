"""
Serviço de Alertas do Fluxo de Caixa.

Responsabilidades:
- Saldo abaixo do mínimo (ou indisponível)
- Contas vencidas (um alerta agregado)
- Contas vencendo nos próximos dias (um alerta agregado)
- Déficit projetado e poucos dias de caixa
- Transições resolver / ignorar em memória
"""

from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from fluxo_caixa.models.cashflow_models import (
    ALERT_ACTIVE,
    ALERT_DISMISSED,
    ALERT_RESOLVED,
    ORIGIN_PAYABLE,
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_MEDIUM,
    PROJECTION_CRITICAL,
    SEVERITY_CRITICAL,
    SEVERITY_INFO,
    SEVERITY_WARNING,
    STATUS_EXPECTED,
    STATUS_OVERDUE,
    ZERO,
    Alert,
    EngineConfig,
    Indicators,
    Movement,
    Projection,
)
from fluxo_caixa.utils.formatting import format_brl, format_days

ALERT_LOW_BALANCE = "saldo_baixo"
ALERT_OVERDUE = "contas_vencidas"
ALERT_UPCOMING = "contas_vencendo"
ALERT_PROJECTED_DEFICIT = "projecao_negativa"
ALERT_SHORT_RUNWAY = "dias_caixa_curto"
ALERT_BALANCE_UNAVAILABLE = "saldo_indisponivel"

SEVERITY_RANK = {SEVERITY_CRITICAL: 0, SEVERITY_WARNING: 1, SEVERITY_INFO: 2}
PRIORITY_RANK = {PRIORITY_HIGH: 0, PRIORITY_MEDIUM: 1, PRIORITY_LOW: 2}


# ─── Regras ───

def _exceeds_balance(total, indicators: Indicators) -> bool:
    """Total maior que o saldo atual; falso quando não há saldo conhecido."""
    return indicators.has_balance and total > indicators.current_balance


def balance_unavailable_alert(now: datetime) -> Alert:
    return Alert(
        id=ALERT_BALANCE_UNAVAILABLE,
        severity=SEVERITY_INFO,
        title="Saldo Indisponível",
        description="Nenhum lançamento bancário com saldo foi encontrado; indicadores de saldo não são confiáveis",
        priority=PRIORITY_MEDIUM,
        created_at=now,
        suggested_actions=["Verificar a conexão com o extrato bancário"],
    )


def low_balance_alert(indicators: Indicators, now: datetime, config: EngineConfig) -> Optional[Alert]:
    if not indicators.has_balance:
        return balance_unavailable_alert(now)
    balance = indicators.current_balance
    if balance >= config.low_balance_floor:
        return None
    return Alert(
        id=ALERT_LOW_BALANCE,
        severity=SEVERITY_CRITICAL if balance <= ZERO else SEVERITY_WARNING,
        title="Saldo Baixo",
        description=(
            f"Saldo atual de {format_brl(balance)} está abaixo do mínimo "
            f"recomendado de {format_brl(config.low_balance_floor)}"
        ),
        priority=PRIORITY_HIGH,
        created_at=now,
        impact=balance,
        suggested_actions=[
            "Acelerar cobrança de recebíveis",
            "Renegociar prazos com fornecedores",
            "Revisar gastos não essenciais",
        ],
    )


def overdue_payables_alert(
    indicators: Indicators,
    movements: Iterable[Movement],
    now: datetime,
) -> Optional[Alert]:
    overdue = [m for m in movements if m.is_outflow and m.status == STATUS_OVERDUE]
    if not overdue:
        return None
    total = sum((m.amount for m in overdue), ZERO)
    uncovered = _exceeds_balance(total, indicators)
    return Alert(
        id=ALERT_OVERDUE,
        severity=SEVERITY_CRITICAL if uncovered else SEVERITY_WARNING,
        title=f"{len(overdue)} Conta(s) Vencida(s)",
        description=f"{format_brl(total)} em contas em atraso",
        priority=PRIORITY_HIGH,
        created_at=now,
        impact=total,
        count=len(overdue),
        suggested_actions=[
            "Priorizar pagamento das contas vencidas",
            "Renegociar condições com fornecedores",
            "Evitar juros e multas",
        ],
    )


def upcoming_payables_alert(
    indicators: Indicators,
    movements: Iterable[Movement],
    today: date,
    now: datetime,
    config: EngineConfig,
) -> Optional[Alert]:
    limit = today + timedelta(days=config.upcoming_window_days)
    upcoming = [
        m for m in movements
        if m.origin == ORIGIN_PAYABLE and m.status == STATUS_EXPECTED and today <= m.date <= limit
    ]
    if not upcoming:
        return None
    total = sum((m.amount for m in upcoming), ZERO)
    uncovered = _exceeds_balance(total, indicators)
    return Alert(
        id=ALERT_UPCOMING,
        severity=SEVERITY_CRITICAL if uncovered else SEVERITY_WARNING,
        title=f"{len(upcoming)} conta(s) vencendo em {config.upcoming_window_days} dias",
        description=f"Total de {format_brl(total)} em contas a vencer.",
        priority=PRIORITY_HIGH if uncovered else PRIORITY_MEDIUM,
        created_at=now,
        impact=total,
        count=len(upcoming),
        suggested_actions=[
            "Organizar pagamentos",
            "Verificar disponibilidade de caixa",
        ],
    )


def projected_deficit_alert(projections: Iterable[Projection], now: datetime) -> Optional[Alert]:
    critical = next((p for p in projections if p.status == PROJECTION_CRITICAL), None)
    if critical is None:
        return None
    return Alert(
        id=ALERT_PROJECTED_DEFICIT,
        severity=SEVERITY_CRITICAL,
        title="Déficit de Caixa Projetado",
        description=(
            f"Saldo projetado de {format_brl(critical.closing_balance)} "
            f"em {critical.horizon_days} dias ({critical.end.strftime('%d/%m/%Y')})"
        ),
        priority=PRIORITY_HIGH,
        created_at=now,
        impact=critical.closing_balance,
        suggested_actions=[
            "Antecipar recebíveis",
            "Adiar despesas não essenciais",
            "Considerar linha de crédito",
        ],
    )


def short_runway_alert(indicators: Indicators, now: datetime, config: EngineConfig) -> Optional[Alert]:
    days = indicators.days_of_cash
    if days is None or days >= config.short_runway_days:
        return None
    return Alert(
        id=ALERT_SHORT_RUNWAY,
        severity=SEVERITY_INFO,
        title="Poucos Dias de Caixa",
        description=(
            f"O saldo atual cobre {format_days(days)} no ritmo de saídas do mês "
            f"({format_brl(indicators.period_outflow)})"
        ),
        priority=PRIORITY_LOW,
        created_at=now,
        suggested_actions=["Acompanhar saídas diariamente", "Revisar despesas recorrentes"],
    )


# ─── Geração ───

def rank_alerts(alerts: Iterable[Alert]) -> list[Alert]:
    """Severidade, depois prioridade; empates mantêm a ordem das regras."""
    return sorted(
        alerts,
        key=lambda a: (SEVERITY_RANK.get(a.severity, 99), PRIORITY_RANK.get(a.priority, 99)),
    )


def generate_alerts(
    indicators: Indicators,
    movements: list[Movement],
    today: date,
    now: datetime,
    config: EngineConfig = None,
    projections: list[Projection] = None,
) -> list[Alert]:
    """Avalia todas as regras de forma independente e devolve os alertas ordenados."""
    config = config or EngineConfig()
    candidates = [
        low_balance_alert(indicators, now, config),
        overdue_payables_alert(indicators, movements, now),
        upcoming_payables_alert(indicators, movements, today, now, config),
    ]
    # Projeção e dias de caixa partem do saldo; sem ele não são avaliados
    if indicators.has_balance:
        candidates += [
            projected_deficit_alert(projections or [], now),
            short_runway_alert(indicators, now, config),
        ]
    return rank_alerts(a for a in candidates if a is not None)


# ─── Ciclo de vida ───

def set_alert_status(alerts: Iterable[Alert], alert_id: str, status: str) -> list[Alert]:
    """Nova lista com o status do alerta trocado; os demais ficam intactos."""
    return [replace(a, status=status) if a.id == alert_id else a for a in alerts]


def resolve_alert(alerts: Iterable[Alert], alert_id: str) -> list[Alert]:
    return set_alert_status(alerts, alert_id, ALERT_RESOLVED)


def dismiss_alert(alerts: Iterable[Alert], alert_id: str) -> list[Alert]:
    return set_alert_status(alerts, alert_id, ALERT_DISMISSED)


def active_alerts(alerts: Iterable[Alert]) -> list[Alert]:
    return [a for a in alerts if a.status == ALERT_ACTIVE]
