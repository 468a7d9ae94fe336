"""
Offering API Routes
Expose offering terms and the amount -> shares calculation
"""

from fastapi import APIRouter, Query, Request
from typing import List, Optional
from decimal import Decimal
from pydantic import BaseModel

from app.domain.models import InvestmentConfig
from app.domain.services.investment_calculator import InvestmentCalculator
from app.utils.formatting import format_currency, format_number, format_share_price

router = APIRouter()


# Response models
class BonusTierInfo(BaseModel):
    threshold_amount: float
    bonus_percent: float


class OfferingInfo(BaseModel):
    share_price: float
    share_price_label: str
    security_type: str
    min_investment: float
    max_investment: Optional[float] = None
    bonus_tiers: List[BonusTierInfo]


class CalculationInfo(BaseModel):
    amount: float
    base_shares: int
    bonus_percent: float
    bonus_shares: int
    total_shares: int
    within_bounds: bool
    formatted_amount: str
    formatted_shares: str
    next_tier: Optional[BonusTierInfo] = None
    amount_to_next_tier: Optional[float] = None


def _offering(request: Request) -> InvestmentConfig:
    return request.app.state.config_engine.offering


@router.get("", response_model=OfferingInfo)
async def get_offering(request: Request):
    """
    Get the active offering terms
    """
    offering = _offering(request)
    return OfferingInfo(
        share_price=float(offering.share_price),
        share_price_label=format_share_price(offering.share_price, offering.security_type),
        security_type=offering.security_type,
        min_investment=float(offering.min_investment),
        max_investment=float(offering.max_investment) if offering.max_investment is not None else None,
        bonus_tiers=[
            BonusTierInfo(
                threshold_amount=float(t.threshold_amount),
                bonus_percent=float(t.bonus_percent),
            )
            for t in offering.bonus_tiers
        ],
    )


@router.get("/calculation", response_model=CalculationInfo)
async def get_calculation(request: Request, amount: Decimal = Query(..., ge=0)):
    """
    Convert an amount into shares with the applicable bonus
    """
    calculator = InvestmentCalculator(_offering(request))
    calculation = calculator.calculate(amount)
    next_tier = calculator.next_tier(amount)
    to_next = calculator.amount_to_next_tier(amount)

    return CalculationInfo(
        amount=float(calculation.amount),
        base_shares=calculation.base_shares,
        bonus_percent=float(calculation.bonus_percent),
        bonus_shares=calculation.bonus_shares,
        total_shares=calculation.total_shares,
        within_bounds=calculator.is_within_bounds(amount),
        formatted_amount=format_currency(calculation.amount, 2),
        formatted_shares=format_number(calculation.total_shares),
        next_tier=BonusTierInfo(
            threshold_amount=float(next_tier.threshold_amount),
            bonus_percent=float(next_tier.bonus_percent),
        ) if next_tier else None,
        amount_to_next_tier=float(to_next) if to_next is not None else None,
    )
