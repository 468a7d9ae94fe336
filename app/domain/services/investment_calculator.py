"""
INVESTMENT CALCULATOR
Convert $ amounts <-> whole shares and resolve bonus tiers

RULES:
- Base shares round UP (ceil): "investment amount will be rounded up if required"
- Bonus shares round half-up
- Highest qualifying tier wins, no tier means 0% bonus
- Pure functions, no I/O, no hidden state
"""

from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Sequence, Union

from app.domain.models import BonusTier, InvestmentCalculation, InvestmentConfig

Number = Union[Decimal, int, float, str]

ZERO = Decimal('0')


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            return ZERO
    if not result.is_finite() or result < ZERO:
        return ZERO
    return result


def resolve_bonus_tier(amount: Number, tiers: Sequence[BonusTier]) -> Optional[BonusTier]:
    """Tier with the largest threshold not exceeding the amount"""
    amount = _to_decimal(amount)
    best: Optional[BonusTier] = None
    for tier in tiers:
        if tier.threshold_amount <= amount:
            if best is None or tier.threshold_amount > best.threshold_amount:
                best = tier
    return best


def next_bonus_tier(amount: Number, tiers: Sequence[BonusTier]) -> Optional[BonusTier]:
    """Smallest tier the amount has not reached yet"""
    amount = _to_decimal(amount)
    upcoming = [tier for tier in tiers if tier.threshold_amount > amount]
    if not upcoming:
        return None
    return min(upcoming, key=lambda tier: tier.threshold_amount)


def calculate(amount: Number, config: InvestmentConfig) -> InvestmentCalculation:
    """
    Convert an investment amount into base and bonus shares

    Args:
        amount: Investment amount in dollars (negatives treated as 0)
        config: Offering terms

    Returns:
        Frozen calculation snapshot
    """
    amount = _to_decimal(amount)

    if config.share_price <= ZERO:
        base_shares = 0
    else:
        exact = amount / config.share_price
        base_shares = int(exact.to_integral_value(rounding=ROUND_CEILING))

    tier = resolve_bonus_tier(amount, config.bonus_tiers)
    bonus_percent = tier.bonus_percent if tier else ZERO

    bonus_exact = Decimal(base_shares) * bonus_percent / Decimal('100')
    bonus_shares = int(bonus_exact.to_integral_value(rounding=ROUND_HALF_UP))

    return InvestmentCalculation(
        amount=amount,
        base_shares=base_shares,
        bonus_percent=bonus_percent,
        bonus_shares=bonus_shares,
    )


def round_shares(shares: Number) -> int:
    """Whole shares, fractional input rounded half-up"""
    return int(_to_decimal(shares).to_integral_value(rounding=ROUND_HALF_UP))


def shares_to_amount(shares: Number, config: InvestmentConfig) -> Decimal:
    """Amount needed for a share count: shares * share price"""
    if config.share_price <= ZERO:
        return ZERO
    return Decimal(round_shares(shares)) * config.share_price


class InvestmentCalculator:
    """
    Investment Calculator
    Binds the pure conversions to a single offering
    """

    def __init__(self, config: InvestmentConfig):
        self.config = config

    def calculate(self, amount: Number) -> InvestmentCalculation:
        return calculate(amount, self.config)

    def shares_to_amount(self, shares: Number) -> Decimal:
        return shares_to_amount(shares, self.config)

    def next_tier(self, amount: Number) -> Optional[BonusTier]:
        return next_bonus_tier(amount, self.config.bonus_tiers)

    def amount_to_next_tier(self, amount: Number) -> Optional[Decimal]:
        """Additional investment needed to reach the next bonus tier"""
        tier = self.next_tier(amount)
        if tier is None:
            return None
        return tier.threshold_amount - _to_decimal(amount)

    def is_within_bounds(self, amount: Number) -> bool:
        amount = _to_decimal(amount)
        if amount < self.config.min_investment:
            return False
        if self.config.max_investment is not None and amount > self.config.max_investment:
            return False
        return True
