"""
CONFIG ENGINE
Load, validate, and expose the offering terms

RESPONSIBILITIES:
- Load offering.yml
- Validate share price, bounds and bonus tiers
- Expose a read-only InvestmentConfig

RULES:
- Fail fast on invalid config
- Deterministic output (tiers sorted by threshold)
"""

import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from app.domain.models import BonusTier, InvestmentConfig

logger = logging.getLogger(__name__)


FALLBACK_CONFIG = InvestmentConfig(
    share_price=Decimal('1.00'),
    min_investment=Decimal('500'),
    max_investment=None,
    security_type="Common Stock",
    bonus_tiers=(
        BonusTier(threshold_amount=Decimal('1000'), bonus_percent=Decimal('5')),
        BonusTier(threshold_amount=Decimal('5000'), bonus_percent=Decimal('10')),
        BonusTier(threshold_amount=Decimal('10000'), bonus_percent=Decimal('15')),
    ),
)


def _decimal(value: Any, name: str) -> Decimal:
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{name} must be a number, got {value!r}")
    if not result.is_finite():
        raise ValueError(f"{name} must be finite")
    return result


def parse_offering(data: Dict[str, Any]) -> InvestmentConfig:
    """Build and validate an InvestmentConfig from a plain mapping"""
    if 'share_price' not in data:
        raise ValueError("share_price is required")

    share_price = _decimal(data['share_price'], "share_price")
    min_investment = _decimal(data.get('min_investment', 0), "min_investment")
    max_raw = data.get('max_investment')
    max_investment = _decimal(max_raw, "max_investment") if max_raw is not None else None

    if share_price <= Decimal('0'):
        raise ValueError("share_price must be positive")
    if min_investment < Decimal('0'):
        raise ValueError("min_investment cannot be negative")
    if max_investment is not None and max_investment < min_investment:
        raise ValueError("max_investment must be >= min_investment")

    tiers = []
    for tier_data in data.get('bonus_tiers') or []:
        tiers.append(BonusTier(
            threshold_amount=_decimal(tier_data['threshold_amount'], "threshold_amount"),
            bonus_percent=_decimal(tier_data['bonus_percent'], "bonus_percent"),
        ))

    thresholds = [t.threshold_amount for t in tiers]
    if len(thresholds) != len(set(thresholds)):
        raise ValueError("Duplicate bonus tier thresholds found in configuration")

    return InvestmentConfig(
        share_price=share_price,
        min_investment=min_investment,
        max_investment=max_investment,
        security_type=str(data.get('security_type') or "Common Stock"),
        bonus_tiers=tuple(sorted(tiers, key=lambda t: t.threshold_amount)),
    )


class ConfigEngine:
    """
    Configuration Engine
    Single source of truth for the offering terms
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else None
        self._offering: Optional[InvestmentConfig] = None

    def load_all(self) -> None:
        """Load offering terms, falling back to built-in terms without a path"""
        if self.config_path is None:
            logger.warning("No offering config path set; using fallback offering")
            self._offering = FALLBACK_CONFIG
            return

        if not self.config_path.exists():
            raise FileNotFoundError(f"Offering config not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            data = yaml.safe_load(f) or {}

        self._offering = parse_offering(data.get('offering', data))

    @property
    def offering(self) -> InvestmentConfig:
        if self._offering is None:
            raise RuntimeError("Configuration not loaded")
        return self._offering
