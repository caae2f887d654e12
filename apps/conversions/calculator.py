"""
Commission arithmetic.

Everything here is pure and works on ``Decimal`` only; floats are refused
so rounding never depends on binary representation.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

PERCENTAGE = "percentage"
FIXED = "fixed"
NONE = "none"

UNIFIED = "unified"
LEGACY = "legacy"

CENT = Decimal("0.01")
HUNDRED = Decimal("100")

Money = Union[Decimal, int, str]


def to_decimal(value: Money) -> Decimal:
    if isinstance(value, float):
        raise TypeError("Monetary values must be Decimal, int or str, not float")
    if isinstance(value, Decimal):
        return value
    return Decimal(value)


@dataclass(frozen=True)
class CommissionRule:
    kind: str
    value: Decimal = Decimal("0")

    @classmethod
    def percentage(cls, percent: Money) -> "CommissionRule":
        return cls(PERCENTAGE, to_decimal(percent))

    @classmethod
    def fixed(cls, amount: Money) -> "CommissionRule":
        return cls(FIXED, to_decimal(amount))

    @classmethod
    def none(cls) -> "CommissionRule":
        return cls(NONE)


def compute_commission(payout: Money, rule: CommissionRule) -> Decimal:
    payout = to_decimal(payout)
    if rule.kind == PERCENTAGE:
        commission = payout * rule.value / HUNDRED
    elif rule.kind == FIXED:
        commission = rule.value
    elif rule.kind == NONE:
        commission = Decimal("0")
    else:
        raise ValueError(f"Unknown commission rule kind: {rule.kind}")
    return commission.quantize(CENT, rounding=ROUND_HALF_UP)


def resolve_commission_rule(
    link_rate: Optional[Money] = None,
    percent: Optional[Money] = None,
    cut: Optional[Money] = None,
    precedence: str = UNIFIED,
) -> Optional[CommissionRule]:
    """
    Pick the rule that applies to a publisher/offer pair.

    ``unified``: link fixed rate, then percentage, then fixed cut.
    ``legacy``: percentage only.
    Returns None when nothing usable is configured.
    """
    if precedence == LEGACY:
        return CommissionRule.percentage(percent) if percent is not None else None
    if precedence != UNIFIED:
        raise ValueError(f"Unknown commission precedence: {precedence}")

    if link_rate is not None:
        return CommissionRule.fixed(link_rate)
    if percent is not None:
        return CommissionRule.percentage(percent)
    if cut is not None:
        return CommissionRule.fixed(cut)
    return None
