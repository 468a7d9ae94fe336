from decimal import Decimal
from pathlib import Path

import pytest

from app.domain.services.config_engine import ConfigEngine, FALLBACK_CONFIG, parse_offering


def test_repository_offering_file_loads():
    config_path = Path(__file__).resolve().parents[2] / "config" / "offering.yml"
    engine = ConfigEngine(config_path)
    engine.load_all()

    offering = engine.offering
    assert offering.share_price == Decimal("1.0")
    assert offering.min_investment == Decimal("500")
    assert [t.bonus_percent for t in offering.bonus_tiers] == [Decimal("5"), Decimal("10"), Decimal("15")]


def test_tiers_are_sorted_by_threshold():
    offering = parse_offering({
        "share_price": "0.80",
        "min_investment": 100,
        "bonus_tiers": [
            {"threshold_amount": 5000, "bonus_percent": 10},
            {"threshold_amount": 1000, "bonus_percent": 5},
        ],
    })
    assert [t.threshold_amount for t in offering.bonus_tiers] == [Decimal("1000"), Decimal("5000")]
    assert offering.max_investment is None
    assert offering.security_type == "Common Stock"


@pytest.mark.parametrize(
    "data,message",
    [
        ({}, "share_price is required"),
        ({"share_price": 0}, "share_price must be positive"),
        ({"share_price": "abc"}, "share_price must be a number"),
        ({"share_price": 1, "min_investment": -1}, "min_investment cannot be negative"),
        ({"share_price": 1, "min_investment": 500, "max_investment": 100}, "max_investment must be >= min_investment"),
        (
            {
                "share_price": 1,
                "bonus_tiers": [
                    {"threshold_amount": 1000, "bonus_percent": 5},
                    {"threshold_amount": 1000, "bonus_percent": 7},
                ],
            },
            "Duplicate bonus tier thresholds",
        ),
        (
            {"share_price": 1, "bonus_tiers": [{"threshold_amount": 1000, "bonus_percent": -5}]},
            "Bonus percent cannot be negative",
        ),
    ],
)
def test_invalid_offering_fails_fast(data, message):
    with pytest.raises(ValueError, match=message):
        parse_offering(data)


def test_missing_file_raises(tmp_path):
    engine = ConfigEngine(tmp_path / "missing.yml")
    with pytest.raises(FileNotFoundError):
        engine.load_all()


def test_no_path_uses_fallback():
    engine = ConfigEngine()
    engine.load_all()
    assert engine.offering is FALLBACK_CONFIG


def test_offering_before_load_raises():
    with pytest.raises(RuntimeError):
        ConfigEngine().offering


def test_top_level_mapping_without_offering_key(tmp_path):
    path = tmp_path / "offering.yml"
    path.write_text("share_price: 2\nmin_investment: 10\n")
    engine = ConfigEngine(path)
    engine.load_all()
    assert engine.offering.share_price == Decimal("2")
