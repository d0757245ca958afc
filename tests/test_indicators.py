from datetime import date, datetime
from decimal import Decimal

from fluxo_caixa.models.cashflow_models import (
    KIND_INFLOW,
    KIND_OUTFLOW,
    LIQUIDITY_CAUTION,
    LIQUIDITY_CRITICAL,
    LIQUIDITY_HEALTHY,
    ORIGIN_LEDGER,
    ORIGIN_PAYABLE,
    ORIGIN_SALE,
    STATUS_EXPECTED,
    STATUS_REALIZED,
    TREND_NEGATIVE,
    TREND_POSITIVE,
    EngineConfig,
    Movement,
)
from fluxo_caixa.services.indicator_service import (
    calculate_indicators,
    classify_liquidity,
    current_balance,
    days_of_cash,
    month_bounds,
)

NOW = datetime(2024, 3, 15, 10, 0)


def _mov(id_, day, kind, amount, origin=ORIGIN_SALE, status=STATUS_REALIZED, balance=None):
    return Movement(
        id=id_,
        date=day,
        kind=kind,
        amount=Decimal(amount),
        status=status,
        origin=origin,
        origin_id=id_,
        running_balance=Decimal(balance) if balance is not None else None,
    )


def test_month_bounds_handles_leap_february():
    assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(date(2024, 12, 31)) == (date(2024, 12, 1), date(2024, 12, 31))


def test_balance_comes_from_latest_ledger_entry_never_summed():
    movements = [
        _mov("bank_2", date(2024, 3, 14), KIND_OUTFLOW, "500", origin=ORIGIN_LEDGER, balance="12000"),
        _mov("bank_1", date(2024, 3, 10), KIND_INFLOW, "9000", origin=ORIGIN_LEDGER, balance="12500"),
        _mov("venda_1", date(2024, 3, 15), KIND_INFLOW, "7000"),
    ]

    assert current_balance(movements) == Decimal("12000")


def test_ledger_entries_without_balance_are_ignored():
    movements = [
        _mov("bank_2", date(2024, 3, 14), KIND_OUTFLOW, "500", origin=ORIGIN_LEDGER),
        _mov("bank_1", date(2024, 3, 10), KIND_INFLOW, "9000", origin=ORIGIN_LEDGER, balance="3000"),
    ]

    assert current_balance(movements) == Decimal("3000")


def test_missing_balance_defaults_to_zero():
    movements = [
        _mov("venda_1", date(2024, 3, 5), KIND_INFLOW, "100"),
        _mov("conta_1", date(2024, 3, 6), KIND_OUTFLOW, "50", origin=ORIGIN_PAYABLE),
    ]

    indicators = calculate_indicators(movements, NOW)

    assert indicators.current_balance == Decimal("0")
    assert indicators.has_balance is False
    assert indicators.liquidity_status == LIQUIDITY_CRITICAL
    assert indicators.days_of_cash is None


def test_period_totals_use_current_month_and_realized_only():
    movements = [
        _mov("venda_1", date(2024, 3, 1), KIND_INFLOW, "1000"),
        _mov("venda_2", date(2024, 3, 31), KIND_INFLOW, "500"),
        _mov("venda_old", date(2024, 2, 29), KIND_INFLOW, "9999"),
        _mov("conta_1", date(2024, 3, 10), KIND_OUTFLOW, "400", origin=ORIGIN_PAYABLE),
        _mov("conta_2", date(2024, 3, 20), KIND_OUTFLOW, "800", origin=ORIGIN_PAYABLE, status=STATUS_EXPECTED),
        _mov("bank_1", date(2024, 3, 14), KIND_OUTFLOW, "200", origin=ORIGIN_LEDGER, balance="20000"),
    ]

    indicators = calculate_indicators(movements, NOW)

    assert indicators.period_inflow == Decimal("1500")
    assert indicators.period_inflow_count == 2
    assert indicators.period_outflow == Decimal("600")
    assert indicators.period_outflow_count == 2
    assert indicators.net_result == Decimal("900")
    assert indicators.projected_balance_30d == Decimal("20900")
    assert indicators.trend == TREND_POSITIVE
    assert indicators.liquidity_status == LIQUIDITY_HEALTHY
    assert indicators.computed_at == NOW
    assert indicators.has_balance is True


def test_days_of_cash():
    assert days_of_cash(Decimal("30000"), Decimal("9000")) == 100
    assert days_of_cash(Decimal("1000"), Decimal("9000")) == 3
    assert days_of_cash(Decimal("-500"), Decimal("9000")) == 0


def test_days_of_cash_not_applicable_without_outflow():
    assert days_of_cash(Decimal("30000"), Decimal("0")) is None

    indicators = calculate_indicators(
        [_mov("bank_1", date(2024, 3, 1), KIND_INFLOW, "10", origin=ORIGIN_LEDGER, balance="5000")],
        NOW,
    )
    assert indicators.days_of_cash is None


def test_liquidity_ladder_uses_configured_threshold():
    threshold = Decimal("10000")

    assert classify_liquidity(Decimal("10000.01"), threshold) == LIQUIDITY_HEALTHY
    assert classify_liquidity(Decimal("10000"), threshold) == LIQUIDITY_CAUTION
    assert classify_liquidity(Decimal("0.01"), threshold) == LIQUIDITY_CAUTION
    assert classify_liquidity(Decimal("0"), threshold) == LIQUIDITY_CRITICAL
    assert classify_liquidity(Decimal("-1"), threshold) == LIQUIDITY_CRITICAL


def test_custom_threshold_changes_classification():
    movements = [_mov("bank_1", date(2024, 3, 1), KIND_INFLOW, "10", origin=ORIGIN_LEDGER, balance="15000")]

    default = calculate_indicators(movements, NOW)
    strict = calculate_indicators(movements, NOW, EngineConfig(healthy_threshold=Decimal("50000")))

    assert default.liquidity_status == LIQUIDITY_HEALTHY
    assert strict.liquidity_status == LIQUIDITY_CAUTION


def test_trend_is_negative_when_outflow_is_not_below_inflow():
    movements = [
        _mov("venda_1", date(2024, 3, 2), KIND_INFLOW, "500"),
        _mov("conta_1", date(2024, 3, 3), KIND_OUTFLOW, "500", origin=ORIGIN_PAYABLE),
    ]

    assert calculate_indicators(movements, NOW).trend == TREND_NEGATIVE
