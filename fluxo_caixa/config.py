"""
Configuração centralizada do motor de fluxo de caixa.
Carrega variáveis de ambiente (.env local) e define os limites padrão.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Carrega .env a partir da raiz do projeto (apenas local)
PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(PROJECT_ROOT / ".env")


def _get_env(key: str, default: str = None) -> str | None:
    return os.getenv(key, default)


def _get_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_int(key: str, default: int) -> int:
    return int(_get_float(key, default))


# ─── Supabase (PostgREST) ───

SUPABASE_URL = _get_env("SUPABASE_URL", "")
SUPABASE_KEY = _get_env("SUPABASE_KEY", "")

LEDGER_TABLE = "movimentacoes_bancarias"
PAYABLES_TABLE = "contas_pagar"
SALES_TABLE = "vendas"

# ─── API ───

MIN_REQUEST_INTERVAL = 0.1  # 100ms entre requests
MAX_RETRIES = 3
RETRY_BACKOFF = 1.0  # segundos
PAGE_SIZE = 1000
REQUEST_TIMEOUT = 30  # segundos

# ─── Janelas de leitura ───

LOOKBACK_DAYS = _get_int("FLUXO_LOOKBACK_DAYS", 180)
LOOKAHEAD_DAYS = _get_int("FLUXO_LOOKAHEAD_DAYS", 90)

# ─── Indicadores ───

HEALTHY_BALANCE_THRESHOLD = _get_float("FLUXO_SALDO_SAUDAVEL", 10000.0)
DAYS_PER_MONTH = 30

# ─── Projeções ───

TRAILING_WINDOW_DAYS = _get_int("FLUXO_JANELA_HISTORICO_DIAS", 30)
PROJECTION_HORIZONS = (7, 30, 90)
CONFIDENCE_TABLE = {7: 85, 15: 78, 30: 75, 90: 60}
POSITIVE_VARIATION_RATIO = 0.10  # 10% do saldo inicial

# ─── Alertas ───

LOW_BALANCE_FLOOR = _get_float("FLUXO_SALDO_MINIMO", 20000.0)
UPCOMING_WINDOW_DAYS = _get_int("FLUXO_JANELA_VENCIMENTO_DIAS", 7)
SHORT_RUNWAY_DAYS = _get_int("FLUXO_DIAS_CAIXA_MINIMO", 30)

# ─── Gráfico ───

CHART_MONTHS = 6
