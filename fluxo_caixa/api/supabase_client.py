"""
Cliente HTTP para a API REST do Supabase (PostgREST).

Responsabilidades:
- Autenticação por chave (apikey + Bearer)
- Rate limiting (100ms entre requests)
- Retry com backoff exponencial (respeitando Retry-After)
- Paginação automática (limit/offset)
- Leitura das três fontes do fluxo de caixa
"""

import logging
import time

import requests

from fluxo_caixa.config import (
    SUPABASE_URL,
    SUPABASE_KEY,
    LEDGER_TABLE,
    PAYABLES_TABLE,
    SALES_TABLE,
    MIN_REQUEST_INTERVAL,
    MAX_RETRIES,
    RETRY_BACKOFF,
    PAGE_SIZE,
    REQUEST_TIMEOUT,
)
from fluxo_caixa.models.cashflow_models import DateWindow
from fluxo_caixa.models.source_models import LedgerRecord, PayableRecord, SaleRecord

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = (429, 500, 502, 503, 504)


class SupabaseClient:
    """Cliente de baixo nível para o endpoint /rest/v1."""

    def __init__(
        self,
        url: str = None,
        api_key: str = None,
        session: requests.Session = None,
    ):
        self.url = (url or SUPABASE_URL).rstrip("/")
        self.api_key = api_key or SUPABASE_KEY
        if not self.url or not self.api_key:
            raise ValueError("SUPABASE_URL e SUPABASE_KEY precisam estar configurados")
        self.session = session or requests.Session()
        self._last_request_time = 0.0

    # ─── HTTP primitivos ───

    def _get_headers(self) -> dict:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    def _throttle(self):
        elapsed = time.time() - self._last_request_time
        if elapsed < MIN_REQUEST_INTERVAL:
            time.sleep(MIN_REQUEST_INTERVAL - elapsed)
        self._last_request_time = time.time()

    @staticmethod
    def _retry_delay(response, attempt: int) -> float:
        """Retry-After em segundos quando o servidor informa; senão backoff exponencial."""
        retry_after = response.headers.get("Retry-After", "") if response is not None else ""
        if retry_after.strip().isdigit():
            return float(retry_after)
        return RETRY_BACKOFF * (2 ** attempt)

    def _request(self, method: str, path: str, **kwargs) -> dict | list | None:
        last_error = None
        for attempt in range(MAX_RETRIES):
            self._throttle()
            try:
                url = f"{self.url}/rest/v1{path}"
                resp = self.session.request(
                    method, url, headers=self._get_headers(), timeout=REQUEST_TIMEOUT, **kwargs
                )
                resp.raise_for_status()
                if resp.status_code == 204 or not resp.content:
                    return None
                return resp.json()
            except requests.exceptions.HTTPError as e:
                status = e.response.status_code if e.response is not None else 0
                # 429 / 5xx → retry com backoff
                if status in RETRYABLE_STATUS:
                    last_error = e
                    delay = self._retry_delay(e.response, attempt)
                    logger.warning(
                        "Supabase %s %s retornou %s (tentativa %d, nova em %.1fs)",
                        method, path, status, attempt + 1, delay,
                    )
                    time.sleep(delay)
                    continue
                raise
            except requests.exceptions.ConnectionError as e:
                last_error = e
                logger.warning("Falha de conexão com Supabase em %s (tentativa %d)", path, attempt + 1)
                time.sleep(RETRY_BACKOFF * (2 ** attempt))
                continue

        raise last_error

    def get(self, path: str, params: list | dict = None):
        return self._request("GET", path, params=params)

    # ─── Paginação ───

    def fetch_all_rows(
        self,
        table: str,
        params: list[tuple[str, str]] = None,
        page_size: int = PAGE_SIZE,
    ) -> list[dict]:
        """Busca todas as linhas de uma tabela, página a página."""
        base_params = list(params or [])
        all_rows = []
        offset = 0

        while True:
            page_params = base_params + [("limit", str(page_size)), ("offset", str(offset))]
            result = self.get(f"/{table}", params=page_params)

            if not isinstance(result, list):
                break

            all_rows.extend(result)

            if len(result) < page_size:
                break
            offset += page_size

        return all_rows


class SupabaseSource:
    """Fonte de transações sobre as tabelas do Supabase."""

    def __init__(self, client: SupabaseClient = None):
        self.client = client or SupabaseClient()

    @staticmethod
    def _window_params(column: str, window: DateWindow) -> list[tuple[str, str]]:
        return [
            (column, f"gte.{window.start.isoformat()}"),
            (column, f"lte.{window.end.isoformat()}"),
            ("order", f"{column}.desc"),
        ]

    def list_ledger_movements(self, window: DateWindow) -> list[LedgerRecord]:
        """
        Movimentações bancárias ativas na janela (com nome do banco).

        Se nenhuma traz saldo posterior, inclui o último lançamento com saldo
        anterior à janela para que o saldo atual continue conhecido.
        """
        params = [("select", "*,bancos(nome)"), ("ativo", "eq.true")]
        params += self._window_params("data_movimentacao", window)
        rows = self.client.fetch_all_rows(LEDGER_TABLE, params)
        records = [LedgerRecord.from_row(r) for r in rows]

        if not any(r.balance_after is not None for r in records):
            records += self._latest_balance_before(window)
        return records

    def _latest_balance_before(self, window: DateWindow) -> list[LedgerRecord]:
        params = [
            ("select", "*,bancos(nome)"),
            ("ativo", "eq.true"),
            ("saldo_posterior", "not.is.null"),
            ("data_movimentacao", f"lt.{window.start.isoformat()}"),
            ("order", "data_movimentacao.desc"),
            ("limit", "1"),
        ]
        rows = self.client.get(f"/{LEDGER_TABLE}", params=params) or []
        return [LedgerRecord.from_row(r) for r in rows]

    def list_payables(self, window: DateWindow) -> list[PayableRecord]:
        """Contas a pagar com vencimento na janela, mais as não pagas vencidas antes dela."""
        select = ("select", "*,fornecedores(nome),plano_contas(nome,cor)")
        rows = self.client.fetch_all_rows(
            PAYABLES_TABLE, [select] + self._window_params("data_vencimento", window),
        )
        backlog = self.client.fetch_all_rows(PAYABLES_TABLE, [
            select,
            ("data_vencimento", f"lt.{window.start.isoformat()}"),
            ("or", "(status.is.null,status.neq.pago)"),
            ("order", "data_vencimento.desc"),
        ])
        if backlog:
            logger.info("%d conta(s) não paga(s) com vencimento anterior à janela", len(backlog))
        return [PayableRecord.from_row(r) for r in rows + backlog]

    def list_sales(self, window: DateWindow) -> list[SaleRecord]:
        """Vendas ativas na janela."""
        params = [("select", "*,clientes(nome),plano_contas(nome,cor)"), ("ativo", "eq.true")]
        params += self._window_params("data_venda", window)
        rows = self.client.fetch_all_rows(SALES_TABLE, params)
        return [SaleRecord.from_row(r) for r in rows]
