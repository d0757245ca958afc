"""
Registros brutos das fontes de dados.

Cada fonte (extrato bancário, contas a pagar, vendas) tem sua própria variante.
Campos obrigatórios (data, valor) podem vir None quando a linha está
malformada; a unificação decide o que descartar.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Protocol, Union

from fluxo_caixa.models.cashflow_models import DateWindow


def parse_date(value) -> Optional[date]:
    """Converte 'YYYY-MM-DD...', datetime ou date em date; None se inválido."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except (ValueError, TypeError):
        return None


def parse_amount(value) -> Optional[Decimal]:
    """Converte número/texto em Decimal; None se ausente ou inválido."""
    if value is None or value == "":
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not amount.is_finite():
        return None
    return amount


def _first_present(row: dict, *keys):
    """Primeiro valor não nulo entre as colunas (ex: valor_final, depois valor)."""
    for key in keys:
        if row.get(key) is not None:
            return row[key]
    return None


def _nested(row: dict, key: str, field: str) -> Optional[str]:
    """Lê campo de relação embutida do PostgREST (ex: plano_contas.nome)."""
    related = row.get(key)
    if isinstance(related, dict):
        return related.get(field)
    return None


# ─── Extrato bancário ───

@dataclass(frozen=True)
class LedgerRecord:
    """Lançamento de movimentacoes_bancarias."""
    id: str
    date: Optional[date]
    amount: Optional[Decimal]
    direction: str  # "entrada" / "saida"
    description: str = ""
    category: Optional[str] = None
    balance_after: Optional[Decimal] = None
    bank_id: Optional[str] = None
    bank_name: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "LedgerRecord":
        bank_id = row.get("banco_id")
        return cls(
            id=str(row.get("id", "")),
            date=parse_date(row.get("data_movimentacao")),
            amount=parse_amount(row.get("valor")),
            direction=(row.get("tipo_movimentacao") or "").lower(),
            description=row.get("descricao") or "",
            category=row.get("categoria"),
            balance_after=parse_amount(row.get("saldo_posterior")),
            bank_id=str(bank_id) if bank_id is not None else None,
            bank_name=_nested(row, "bancos", "nome"),
        )


# ─── Contas a pagar ───

@dataclass(frozen=True)
class PayableRecord:
    """Título de contas_pagar."""
    id: str
    due_date: Optional[date]
    amount: Optional[Decimal]
    paid: bool = False
    description: str = ""
    category: Optional[str] = None
    category_color: Optional[str] = None
    supplier: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "PayableRecord":
        return cls(
            id=str(row.get("id", "")),
            due_date=parse_date(row.get("data_vencimento")),
            amount=parse_amount(_first_present(row, "valor_final", "valor")),
            paid=(row.get("status") or "").lower() == "pago",
            description=row.get("descricao") or "",
            category=_nested(row, "plano_contas", "nome"),
            category_color=_nested(row, "plano_contas", "cor"),
            supplier=_nested(row, "fornecedores", "nome"),
        )


# ─── Vendas ───

@dataclass(frozen=True)
class SaleRecord:
    """Venda concluída (tabela vendas)."""
    id: str
    date: Optional[date]
    amount: Optional[Decimal]
    notes: str = ""
    category: Optional[str] = None
    category_color: Optional[str] = None
    customer: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "SaleRecord":
        return cls(
            id=str(row.get("id", "")),
            date=parse_date(row.get("data_venda")),
            amount=parse_amount(_first_present(row, "valor_final", "valor")),
            notes=row.get("observacoes") or "",
            category=_nested(row, "plano_contas", "nome"),
            category_color=_nested(row, "plano_contas", "cor"),
            customer=_nested(row, "clientes", "nome"),
        )


RawRecord = Union[LedgerRecord, PayableRecord, SaleRecord]


# ─── Interface de leitura ───

class TransactionSource(Protocol):
    """Leitura das três fontes para uma janela de datas."""

    def list_ledger_movements(self, window: DateWindow) -> list[LedgerRecord]:
        ...

    def list_payables(self, window: DateWindow) -> list[PayableRecord]:
        ...

    def list_sales(self, window: DateWindow) -> list[SaleRecord]:
        ...
