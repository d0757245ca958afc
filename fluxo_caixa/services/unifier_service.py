"""
Serviço de Unificação de Movimentações.

Responsabilidades:
- Converter extrato, contas a pagar e vendas em Movement
- Derivar o status (realizado / previsto / em atraso) a partir de "hoje"
- Ordenar a linha do tempo e reportar registros descartados
"""

import logging
from dataclasses import replace
from datetime import date
from typing import Iterable

from fluxo_caixa.models.cashflow_models import (
    KIND_INFLOW,
    KIND_OUTFLOW,
    ORIGIN_LEDGER,
    ORIGIN_PAYABLE,
    ORIGIN_SALE,
    STATUS_EXPECTED,
    STATUS_OVERDUE,
    STATUS_REALIZED,
    ZERO,
    DroppedRecord,
    Movement,
    UnificationResult,
    to_cents,
)
from fluxo_caixa.models.source_models import (
    LedgerRecord,
    PayableRecord,
    RawRecord,
    SaleRecord,
    parse_date,
)

logger = logging.getLogger(__name__)

# Categorias padrão por fonte: (nome, cor)
LEDGER_DEFAULT_CATEGORY = ("Sem categoria", "#6366f1")
SALE_DEFAULT_CATEGORY = ("Vendas", "#10b981")
PAYABLE_DEFAULT_CATEGORY = ("Despesas", "#ef4444")


class MalformedRecord(ValueError):
    """Registro sem data ou valor utilizável."""


# ─── Status ───

def derive_payable_status(paid: bool, due_date: date, today: date) -> str:
    """Pago → realizado; vencimento antes de hoje → em atraso; senão previsto."""
    if paid:
        return STATUS_REALIZED
    if due_date < today:
        return STATUS_OVERDUE
    return STATUS_EXPECTED


def refresh_statuses(movements: Iterable[Movement], today: date) -> list[Movement]:
    """Reavalia previsto/em atraso das contas a pagar para um novo "hoje"."""
    refreshed = []
    for mov in movements:
        if mov.origin == ORIGIN_PAYABLE and mov.status != STATUS_REALIZED:
            status = derive_payable_status(False, mov.date, today)
            if status != mov.status:
                mov = replace(mov, status=status)
        refreshed.append(mov)
    return refreshed


# ─── Mapeamento por variante ───

def _require(record_date, amount, allow_negative: bool) -> date:
    """Valida data e valor; devolve a data normalizada (datetime vira date)."""
    record_date = parse_date(record_date)
    if record_date is None:
        raise MalformedRecord("data ausente ou inválida")
    if amount is None:
        raise MalformedRecord("valor ausente ou inválido")
    if amount < ZERO and not allow_negative:
        raise MalformedRecord("valor negativo")
    return record_date


def map_ledger(record: LedgerRecord, today: date) -> Movement:
    day = _require(record.date, record.amount, allow_negative=True)
    name, color = LEDGER_DEFAULT_CATEGORY
    return Movement(
        id=f"bank_{record.id}",
        date=day,
        kind=KIND_INFLOW if record.direction == "entrada" else KIND_OUTFLOW,
        amount=to_cents(abs(record.amount)),
        status=STATUS_REALIZED,
        origin=ORIGIN_LEDGER,
        origin_id=record.id,
        category=record.category or name,
        category_color=color,
        description=record.description,
        running_balance=(
            to_cents(record.balance_after) if record.balance_after is not None else None
        ),
        bank_id=record.bank_id,
        counterparty=record.bank_name,
    )


def map_sale(record: SaleRecord, today: date) -> Movement:
    day = _require(record.date, record.amount, allow_negative=False)
    name, color = SALE_DEFAULT_CATEGORY
    return Movement(
        id=f"venda_{record.id}",
        date=day,
        kind=KIND_INFLOW,
        amount=to_cents(record.amount),
        status=STATUS_REALIZED,
        origin=ORIGIN_SALE,
        origin_id=record.id,
        category=record.category or name,
        category_color=record.category_color or color,
        description=f"Venda - {record.notes or 'Sem descrição'}",
        counterparty=record.customer,
    )


def map_payable(record: PayableRecord, today: date) -> Movement:
    day = _require(record.due_date, record.amount, allow_negative=False)
    name, color = PAYABLE_DEFAULT_CATEGORY
    return Movement(
        id=f"conta_{record.id}",
        date=day,
        kind=KIND_OUTFLOW,
        amount=to_cents(record.amount),
        status=derive_payable_status(record.paid, day, today),
        origin=ORIGIN_PAYABLE,
        origin_id=record.id,
        category=record.category or name,
        category_color=record.category_color or color,
        description=record.description,
        counterparty=record.supplier,
    )


MAPPERS = {
    LedgerRecord: ("ledger", map_ledger),
    SaleRecord: ("sale", map_sale),
    PayableRecord: ("payable", map_payable),
}


def to_movement(record: RawRecord, today: date) -> Movement:
    """Converte qualquer variante de registro bruto em Movement."""
    try:
        _, mapper = MAPPERS[type(record)]
    except KeyError:
        raise TypeError(f"Tipo de registro não suportado: {type(record).__name__}") from None
    return mapper(record, today)


# ─── Unificação ───

def sort_for_display(movements: Iterable[Movement]) -> list[Movement]:
    """Mais recente primeiro; empates preservam a ordem de entrada."""
    return sorted(movements, key=lambda m: m.date, reverse=True)


def sort_for_accumulation(movements: Iterable[Movement]) -> list[Movement]:
    """Mais antigo primeiro, para acumular saldo."""
    return sorted(movements, key=lambda m: m.date)


def unify(
    ledger: Iterable[LedgerRecord],
    payables: Iterable[PayableRecord],
    sales: Iterable[SaleRecord],
    today: date,
) -> UnificationResult:
    """
    Junta as três fontes numa única linha do tempo.

    Ordem: extrato, vendas, contas a pagar; depois ordenação estável por data
    decrescente. Registros sem data ou valor são descartados e listados em
    `dropped`, sem abortar a unificação.
    """
    movements: list[Movement] = []
    dropped: list[DroppedRecord] = []

    for records in (ledger, sales, payables):
        for record in records:
            try:
                movements.append(to_movement(record, today))
            except MalformedRecord as e:
                source, _ = MAPPERS[type(record)]
                dropped.append(DroppedRecord(source=source, record_id=record.id, reason=str(e)))

    if dropped:
        logger.warning("%d registro(s) descartado(s) na unificação", len(dropped))

    return UnificationResult(movements=sort_for_display(movements), dropped=dropped)
