from decimal import Decimal

import pytest

from apps.conversions.calculator import (
    FIXED,
    LEGACY,
    PERCENTAGE,
    CommissionRule,
    compute_commission,
    resolve_commission_rule,
)


def test_percentage_commission_is_exact():
    result = compute_commission(Decimal("100.00"), CommissionRule.percentage("10"))
    assert result == Decimal("10.00")
    assert str(result) == "10.00"


def test_percentage_of_webhook_payout():
    assert compute_commission(Decimal("200.00"), CommissionRule.percentage(15)) == Decimal("30.00")


def test_fixed_cut_ignores_payout():
    assert compute_commission(Decimal("999.99"), CommissionRule.fixed("12.50")) == Decimal("12.50")


def test_no_rule_yields_zero():
    assert compute_commission(Decimal("50.00"), CommissionRule.none()) == Decimal("0.00")


def test_rounds_half_up_to_cents():
    # 33.33 * 15% = 4.9995
    assert compute_commission(Decimal("33.33"), CommissionRule.percentage("15")) == Decimal("5.00")
    # 0.10 * 5% = 0.005
    assert compute_commission(Decimal("0.10"), CommissionRule.percentage("5")) == Decimal("0.01")


def test_repeated_small_commissions_do_not_drift():
    total = sum(
        (compute_commission(Decimal("0.10"), CommissionRule.percentage("10")) for _ in range(10)),
        Decimal("0"),
    )
    assert total == Decimal("0.10")


def test_float_inputs_are_rejected():
    with pytest.raises(TypeError):
        compute_commission(100.0, CommissionRule.percentage("10"))
    with pytest.raises(TypeError):
        CommissionRule.percentage(10.0)


def test_unknown_rule_kind():
    with pytest.raises(ValueError):
        compute_commission(Decimal("1"), CommissionRule("tiered", Decimal("1")))


def test_unified_precedence_order():
    rule = resolve_commission_rule(link_rate="5.00", percent="15", cut="2.00")
    assert rule == CommissionRule(FIXED, Decimal("5.00"))

    rule = resolve_commission_rule(percent="15", cut="2.00")
    assert rule == CommissionRule(PERCENTAGE, Decimal("15"))

    rule = resolve_commission_rule(cut="2.00")
    assert rule == CommissionRule(FIXED, Decimal("2.00"))

    assert resolve_commission_rule() is None


def test_legacy_precedence_requires_percentage():
    assert resolve_commission_rule(link_rate="5.00", cut="2.00", precedence=LEGACY) is None
    rule = resolve_commission_rule(link_rate="5.00", percent="15", precedence=LEGACY)
    assert rule == CommissionRule(PERCENTAGE, Decimal("15"))


def test_unknown_precedence():
    with pytest.raises(ValueError):
        resolve_commission_rule(percent="10", precedence="first-match")
