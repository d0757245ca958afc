from datetime import date, datetime, timedelta
from decimal import Decimal

from fluxo_caixa.models.cashflow_models import (
    ALERT_DISMISSED,
    ALERT_RESOLVED,
    KIND_OUTFLOW,
    ORIGIN_PAYABLE,
    PRIORITY_HIGH,
    PRIORITY_MEDIUM,
    PROJECTION_CRITICAL,
    SEVERITY_CRITICAL,
    SEVERITY_INFO,
    SEVERITY_WARNING,
    STATUS_EXPECTED,
    STATUS_OVERDUE,
    STATUS_REALIZED,
    EngineConfig,
    Indicators,
    Movement,
    Projection,
)
from fluxo_caixa.services.alert_service import (
    ALERT_BALANCE_UNAVAILABLE,
    ALERT_LOW_BALANCE,
    ALERT_OVERDUE,
    ALERT_PROJECTED_DEFICIT,
    ALERT_SHORT_RUNWAY,
    ALERT_UPCOMING,
    active_alerts,
    dismiss_alert,
    generate_alerts,
    resolve_alert,
)

NOW = datetime(2024, 3, 15, 9, 30)
TODAY = NOW.date()
CONFIG = EngineConfig(low_balance_floor=Decimal("20000"))


def _payable(id_, day, amount, status):
    return Movement(
        id=id_,
        date=day,
        kind=KIND_OUTFLOW,
        amount=Decimal(amount),
        status=status,
        origin=ORIGIN_PAYABLE,
        origin_id=id_,
    )


def _indicators(balance, **kwargs):
    return Indicators(current_balance=Decimal(balance), has_balance=True, **kwargs)


def _by_id(alerts):
    return {a.id: a for a in alerts}


def test_low_balance_warning_when_positive():
    indicators = _indicators("3000")

    alerts = generate_alerts(indicators, [], TODAY, NOW, CONFIG)
    low = [a for a in alerts if a.id == ALERT_LOW_BALANCE]

    assert len(low) == 1
    assert low[0].severity == SEVERITY_WARNING
    assert low[0].impact == Decimal("3000")
    assert low[0].priority == PRIORITY_HIGH
    assert len(low[0].suggested_actions) == 3
    assert "R$ 3.000,00" in low[0].description


def test_low_balance_critical_at_or_below_zero():
    for balance in ("0", "-150.00"):
        alerts = generate_alerts(_indicators(balance), [], TODAY, NOW, CONFIG)

        assert _by_id(alerts)[ALERT_LOW_BALANCE].severity == SEVERITY_CRITICAL


def test_no_low_balance_alert_at_floor():
    alerts = generate_alerts(_indicators("20000"), [], TODAY, NOW, CONFIG)

    assert ALERT_LOW_BALANCE not in _by_id(alerts)


def test_overdue_payables_are_aggregated():
    movements = [
        _payable("conta_1", TODAY - timedelta(days=3), "1500.00", STATUS_OVERDUE),
        _payable("conta_2", TODAY - timedelta(days=10), "3000.00", STATUS_OVERDUE),
        _payable("conta_3", TODAY - timedelta(days=10), "999.00", STATUS_REALIZED),
    ]

    alerts = generate_alerts(_indicators("50000"), movements, TODAY, NOW, CONFIG)
    overdue = [a for a in alerts if a.id == ALERT_OVERDUE]

    assert len(overdue) == 1
    assert overdue[0].count == 2
    assert overdue[0].impact == Decimal("4500.00")
    assert overdue[0].severity == SEVERITY_WARNING


def test_overdue_payables_critical_when_balance_cannot_cover():
    movements = [_payable("conta_1", TODAY - timedelta(days=1), "4500.00", STATUS_OVERDUE)]

    alerts = generate_alerts(_indicators("1000"), movements, TODAY, NOW, CONFIG)

    assert _by_id(alerts)[ALERT_OVERDUE].severity == SEVERITY_CRITICAL


def test_upcoming_payables_within_window():
    movements = [
        _payable("conta_1", TODAY, "100.00", STATUS_EXPECTED),
        _payable("conta_2", TODAY + timedelta(days=7), "200.00", STATUS_EXPECTED),
        _payable("conta_3", TODAY + timedelta(days=8), "400.00", STATUS_EXPECTED),
        _payable("conta_4", TODAY - timedelta(days=1), "800.00", STATUS_OVERDUE),
    ]

    alerts = generate_alerts(_indicators("50000"), movements, TODAY, NOW, CONFIG)
    upcoming = _by_id(alerts)[ALERT_UPCOMING]

    assert upcoming.count == 2
    assert upcoming.impact == Decimal("300.00")
    assert upcoming.severity == SEVERITY_WARNING
    assert upcoming.priority == PRIORITY_MEDIUM


def _projection(status, closing):
    return Projection(
        horizon_days=30,
        label="Próximos 30 dias",
        start=TODAY,
        end=TODAY + timedelta(days=30),
        opening_balance=Decimal("50000"),
        projected_inflow=Decimal("0"),
        projected_outflow=Decimal("0"),
        closing_balance=Decimal(closing),
        variation=Decimal(closing) - Decimal("50000"),
        variation_pct=None,
        confidence=75,
        status=status,
    )


def test_projected_deficit_alert():
    projections = [_projection(PROJECTION_CRITICAL, "-1200.00")]

    alerts = generate_alerts(
        _indicators("50000"), [], TODAY, NOW, CONFIG, projections=projections,
    )
    deficit = _by_id(alerts)[ALERT_PROJECTED_DEFICIT]

    assert deficit.severity == SEVERITY_CRITICAL
    assert deficit.impact == Decimal("-1200.00")


def test_short_runway_is_informational():
    indicators = _indicators("50000", days_of_cash=12, period_outflow=Decimal("125000"))

    alerts = generate_alerts(indicators, [], TODAY, NOW, CONFIG)

    assert _by_id(alerts)[ALERT_SHORT_RUNWAY].severity == SEVERITY_INFO


def test_no_alerts_for_healthy_state():
    indicators = _indicators("50000", days_of_cash=None)

    assert generate_alerts(indicators, [], TODAY, NOW, CONFIG) == []


def test_alerts_are_ranked_by_severity_then_priority():
    indicators = _indicators("1000", days_of_cash=5)
    movements = [
        _payable("conta_1", TODAY + timedelta(days=2), "100.00", STATUS_EXPECTED),
        _payable("conta_2", TODAY - timedelta(days=2), "5000.00", STATUS_OVERDUE),
    ]

    alerts = generate_alerts(indicators, movements, TODAY, NOW, CONFIG)

    assert [a.id for a in alerts] == [ALERT_OVERDUE, ALERT_LOW_BALANCE, ALERT_UPCOMING, ALERT_SHORT_RUNWAY]
    assert all(a.created_at == NOW for a in alerts)


def test_resolve_and_dismiss_are_in_memory_transitions():
    alerts = generate_alerts(
        _indicators("3000"),
        [_payable("conta_1", TODAY - timedelta(days=1), "10.00", STATUS_OVERDUE)],
        TODAY,
        NOW,
        CONFIG,
    )

    resolved = resolve_alert(alerts, ALERT_LOW_BALANCE)
    dismissed = dismiss_alert(resolved, ALERT_OVERDUE)

    assert _by_id(resolved)[ALERT_LOW_BALANCE].status == ALERT_RESOLVED
    assert _by_id(dismissed)[ALERT_OVERDUE].status == ALERT_DISMISSED
    assert active_alerts(dismissed) == []
    assert all(a.is_active for a in alerts)


def test_unknown_balance_is_informational_and_never_escalates():
    indicators = Indicators(current_balance=Decimal("0"), days_of_cash=None, has_balance=False)
    movements = [
        _payable("conta_1", TODAY - timedelta(days=2), "500.00", STATUS_OVERDUE),
        _payable("conta_2", TODAY + timedelta(days=2), "300.00", STATUS_EXPECTED),
    ]
    projections = [_projection(PROJECTION_CRITICAL, "-800.00")]

    alerts = _by_id(generate_alerts(indicators, movements, TODAY, NOW, CONFIG, projections=projections))

    assert set(alerts) == {ALERT_BALANCE_UNAVAILABLE, ALERT_OVERDUE, ALERT_UPCOMING}
    assert alerts[ALERT_BALANCE_UNAVAILABLE].severity == SEVERITY_INFO
    assert alerts[ALERT_OVERDUE].severity == SEVERITY_WARNING
    assert alerts[ALERT_UPCOMING].severity == SEVERITY_WARNING
    assert alerts[ALERT_UPCOMING].priority == PRIORITY_MEDIUM
