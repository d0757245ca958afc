"""
Motor do Fluxo de Caixa.

Orquestra uma atualização completa:
1. Lê as três fontes em paralelo (falha de uma fonte vira lista vazia)
2. Unifica → indicadores → projeções → alertas → gráfico
3. Publica o resultado no cache somente se a atualização ainda é a mais recente
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Callable, Optional

import pandas as pd

from fluxo_caixa.config import LOOKBACK_DAYS, LOOKAHEAD_DAYS, CHART_MONTHS
from fluxo_caixa.models.cashflow_models import (
    Alert,
    DateWindow,
    DroppedRecord,
    EngineConfig,
    Indicators,
    Movement,
    Projection,
)
from fluxo_caixa.models.source_models import TransactionSource
from fluxo_caixa.services import alert_service
from fluxo_caixa.services.chart_service import build_monthly_chart
from fluxo_caixa.services.indicator_service import calculate_indicators
from fluxo_caixa.services.projection_service import build_projections
from fluxo_caixa.services.unifier_service import unify

logger = logging.getLogger(__name__)

SOURCE_READERS = {
    "ledger": "list_ledger_movements",
    "payables": "list_payables",
    "sales": "list_sales",
}


@dataclass
class CashFlowResult:
    """Tudo o que uma atualização produz."""
    generation: int
    computed_at: datetime
    movements: list[Movement] = field(default_factory=list)
    dropped: list[DroppedRecord] = field(default_factory=list)
    indicators: Indicators = field(default_factory=Indicators)
    projections: list[Projection] = field(default_factory=list)
    alerts: list[Alert] = field(default_factory=list)
    chart: Optional[pd.DataFrame] = None
    source_errors: dict[str, str] = field(default_factory=dict)


class ResultCache:
    """
    Último resultado publicado, versionado por geração.

    Cada atualização pede uma geração nova; só publica quem ainda for a
    geração mais recente pedida.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._requested = 0
        self._result: Optional[CashFlowResult] = None

    def next_generation(self) -> int:
        with self._lock:
            self._requested += 1
            return self._requested

    @property
    def latest_requested(self) -> int:
        return self._requested

    @property
    def result(self) -> Optional[CashFlowResult]:
        return self._result

    def commit(self, result: CashFlowResult) -> bool:
        with self._lock:
            if result.generation != self._requested:
                return False
            self._result = result
            return True

    def update_alerts(self, transform: Callable[[list[Alert]], list[Alert]]) -> bool:
        """Aplica `transform` aos alertas do resultado publicado."""
        with self._lock:
            if self._result is None:
                return False
            self._result = replace(self._result, alerts=transform(self._result.alerts))
            return True


def run_pipeline(
    ledger: list,
    payables: list,
    sales: list,
    now: datetime,
    config: EngineConfig,
    generation: int = 0,
    chart_months: int = CHART_MONTHS,
) -> CashFlowResult:
    """Pipeline síncrono e determinístico sobre os registros já lidos."""
    today = now.date()
    unified = unify(ledger, payables, sales, today)
    movements = unified.movements

    indicators = calculate_indicators(movements, now, config)
    projections = build_projections(movements, indicators, today, config)
    alerts = alert_service.generate_alerts(
        indicators, movements, today, now, config, projections=projections,
    )

    return CashFlowResult(
        generation=generation,
        computed_at=now,
        movements=movements,
        dropped=unified.dropped,
        indicators=indicators,
        projections=projections,
        alerts=alerts,
        chart=build_monthly_chart(movements, today, chart_months),
    )


class CashFlowEngine:
    """Fachada consumida pela camada de apresentação."""

    def __init__(
        self,
        source: TransactionSource,
        config: EngineConfig = None,
        clock: Callable[[], datetime] = None,
        lookback_days: int = LOOKBACK_DAYS,
        lookahead_days: int = LOOKAHEAD_DAYS,
    ):
        self.source = source
        self.config = config or EngineConfig()
        self.clock = clock or datetime.now
        self.lookback_days = lookback_days
        self.lookahead_days = lookahead_days
        self.cache = ResultCache()

    # ─── Leitura das fontes ───

    def _read_source(self, name: str, window: DateWindow) -> list:
        reader = getattr(self.source, SOURCE_READERS[name])
        return list(reader(window) or [])

    def _read_all(self, window: DateWindow) -> tuple[dict[str, list], dict[str, str]]:
        records: dict[str, list] = {}
        errors: dict[str, str] = {}

        with ThreadPoolExecutor(max_workers=len(SOURCE_READERS)) as pool:
            futures = {name: pool.submit(self._read_source, name, window) for name in SOURCE_READERS}
            for name, future in futures.items():
                try:
                    records[name] = future.result()
                except Exception as e:
                    logger.warning("Falha ao ler a fonte %s: %s", name, e)
                    records[name] = []
                    errors[name] = str(e) or type(e).__name__

        return records, errors

    # ─── Atualização ───

    def window_for(self, today: date) -> DateWindow:
        return DateWindow.around(today, self.lookback_days, self.lookahead_days)

    def refresh(self) -> CashFlowResult:
        """
        Relê as fontes e recalcula tudo.

        Retorna o resultado calculado; ele só é publicado no cache se nenhuma
        atualização mais nova tiver começado nesse meio tempo.
        """
        generation = self.cache.next_generation()
        now = self.clock()
        records, errors = self._read_all(self.window_for(now.date()))

        result = run_pipeline(
            records["ledger"],
            records["payables"],
            records["sales"],
            now,
            self.config,
            generation=generation,
        )
        result.source_errors = errors

        if self.cache.commit(result):
            logger.info(
                "Fluxo de caixa atualizado (geração %d): %d movimentações, %d descartadas, %d alertas",
                generation, len(result.movements), len(result.dropped), len(result.alerts),
            )
        else:
            logger.info("Resultado da geração %d descartado: existe atualização mais recente", generation)
        return result

    # ─── Consulta ───

    @property
    def result(self) -> Optional[CashFlowResult]:
        return self.cache.result

    def get_indicators(self) -> Optional[Indicators]:
        return self.result.indicators if self.result else None

    def get_projections(self) -> list[Projection]:
        return list(self.result.projections) if self.result else []

    def get_alerts(self) -> list[Alert]:
        """Somente alertas ativos."""
        return alert_service.active_alerts(self.result.alerts) if self.result else []

    def get_movements(self) -> list[Movement]:
        return list(self.result.movements) if self.result else []

    def get_diagnostics(self) -> dict:
        if not self.result:
            return {"dropped": [], "dropped_count": 0, "source_errors": {}}
        return {
            "dropped": list(self.result.dropped),
            "dropped_count": len(self.result.dropped),
            "source_errors": dict(self.result.source_errors),
        }

    def get_chart(self) -> Optional[pd.DataFrame]:
        return self.result.chart if self.result else None

    # ─── Alertas ───

    def _transition(self, alert_id: str, transform) -> bool:
        if not self.result or not any(a.id == alert_id for a in self.result.alerts):
            return False
        return self.cache.update_alerts(lambda alerts: transform(alerts, alert_id))

    def resolve_alert(self, alert_id: str) -> bool:
        """Marca o alerta como resolvido (apenas em memória)."""
        return self._transition(alert_id, alert_service.resolve_alert)

    def dismiss_alert(self, alert_id: str) -> bool:
        """Marca o alerta como ignorado (apenas em memória)."""
        return self._transition(alert_id, alert_service.dismiss_alert)
