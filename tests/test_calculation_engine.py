"""
Calculation engine tests: divisibility adjuster, the five customer-type
calculators, input validation and the registry.

Tests:
1-8.   Divisibility adjuster
9-17.  Calculators, concrete cases
18-21. Properties across customer types
22-29. Input validation
30-33. Registry and strategy descriptions
"""

import math
from decimal import Decimal

import pytest

from granite.calculators import engine
from granite.calculators.base import format_number
from granite.calculators.divisibility import adjust_for_divisibility, reduce_to_multiple_of_three
from granite.calculators.granite_shops import GraniteShopsCalculator
from granite.calculators.registry import (
    CALCULATOR_REGISTRY, describe_strategy, get_calculator, has_calculator, list_calculators,
)
from granite.calculators.validation import validate_inputs
from granite.enums import CUSTOMER_TYPES
from granite.errors import ComputationAnomaly, UnsupportedCustomerType, ValidationFailed


# ============================================================
# Divisibility adjuster
# ============================================================

def test_adjust_already_divisible():
    """150 - 3 = 147 is already a multiple of 3."""
    assert adjust_for_divisibility(150, 3) == 147


def test_adjust_steps_down_to_multiple_of_three():
    assert adjust_for_divisibility(149, 3) == 144  # 146 → 145 → 144
    assert adjust_for_divisibility(145, 2) == 141  # 143 → 142 → 141


def test_adjust_smaller_than_allowance_is_zero():
    assert adjust_for_divisibility(2, 3) == 0
    assert adjust_for_divisibility(1, 2) == 0


def test_adjust_result_is_never_negative():
    # 4 - 3 = 1 → steps down to 0
    assert adjust_for_divisibility(4, 3) == 0
    assert adjust_for_divisibility(3, 3) == 0


def test_adjust_fractional_input_hits_ceiling_and_falls_back():
    """997.5 never reaches a multiple of 3 one inch at a time."""
    assert adjust_for_divisibility(1000.5, 3) == 0
    assert adjust_for_divisibility(1000.5, 3, floor_fallback=-1) == -1


def test_strict_adjust_raises_anomaly_at_ceiling():
    with pytest.raises(ComputationAnomaly) as exc_info:
        reduce_to_multiple_of_three(1000.5, 3)
    assert exc_info.value.value == 1000.5
    assert exc_info.value.status_code == 422


def test_adjust_records_anomaly_in_given_list():
    anomalies = []
    assert adjust_for_divisibility(147, 3, anomalies=anomalies) == 144
    assert anomalies == []
    assert adjust_for_divisibility(1000.5, 3, anomalies=anomalies) == 0
    assert len(anomalies) == 1
    assert "exceeded 100 iterations" in anomalies[0]


def test_calculators_use_floor_fallback(monkeypatch):
    monkeypatch.setattr(GraniteShopsCalculator, "floor_fallback", 1)
    result = get_calculator("granite_shops").calculate(1000.5, 100)
    assert result.final_length == 1
    assert result.final_breadth == 96
    assert result.calculation_steps[-1].endswith("dimension set to 1")


# ============================================================
# Calculators: concrete cases
# ============================================================

def test_retail_square_slab():
    result = engine.calculate(144, 144, "retail")
    assert result.final_length == 144
    assert result.final_breadth == 144
    assert result.area == 144.00
    assert result.raw_calculation == "(144 × 144) ÷ 144"


def test_granite_shops_divisible_dimensions():
    result = engine.calculate(150, 146, "granite_shops")
    assert result.final_length == 147
    assert result.final_breadth == 144
    assert result.area == 147.00
    assert result.raw_calculation == "((150 - 3) × (146 - 2)) ÷ 144 (adjusted for divisibility by 3)"
    assert result.calculation_steps[0] == "Length: 150 - 3 = 147, adjusted for divisibility by 3 = 147"
    assert result.calculation_steps[2] == "Square Inches: 147 × 144 = 21168"
    assert result.calculation_steps[3] == "Square Feet: 21168 ÷ 144 = 147.00"


def test_granite_shops_steps_down():
    result = engine.calculate(149, 145, "granite_shops")
    assert result.final_length == 144
    assert result.final_breadth == 141
    assert result.area == 141.00


def test_outstation_parties_match_granite_shops():
    for length, breadth in [(150, 146), (149, 145), (97, 61), (2, 1), (1000.5, 100)]:
        wholesale = engine.calculate(length, breadth, "granite_shops")
        outstation = engine.calculate(length, breadth, "outstation_parties")
        assert outstation.final_length == wholesale.final_length
        assert outstation.final_breadth == wholesale.final_breadth
        assert outstation.area == wholesale.area


def test_builders_keep_breadth():
    result = engine.calculate(150, 100, "builders")
    assert result.final_length == 147
    assert result.final_breadth == 100
    assert result.area == 102.08


def test_exporters_flat_deduction():
    result = engine.calculate(10, 5, "exporters")
    assert result.final_length == 7
    assert result.final_breadth == 3
    assert result.area == 0.15  # 21 / 144 = 0.1458


def test_exporters_minimum_slab_is_zero():
    result = engine.calculate(3, 2, "exporters")
    assert result.final_length == 0
    assert result.final_breadth == 0
    assert result.area == 0


def test_area_rounds_half_up():
    """3 × 6 / 144 = 0.125 → 0.13, not banker's 0.12."""
    assert engine.calculate(3, 6, "retail").area == 0.13


def test_fractional_wholesale_input_records_anomaly():
    result = engine.calculate(1000.5, 100, "granite_shops")
    assert result.final_length == 0
    assert result.final_breadth == 96
    assert result.area == 0
    assert len(result.anomalies) == 1
    assert result.calculation_steps[-1].startswith("Warning:")


# ============================================================
# Properties
# ============================================================

SAMPLE_DIMENSIONS = [(1, 1), (3, 2), (10, 5), (96.5, 48.25), (150, 146), (9999, 10000)]


def test_area_is_finite_and_non_negative_for_all_types():
    for customer_type in CUSTOMER_TYPES:
        for length, breadth in SAMPLE_DIMENSIONS:
            area = engine.calculate(length, breadth, customer_type).area
            assert math.isfinite(area)
            assert area >= 0


def test_wholesale_whole_inch_lengths_are_multiples_of_three():
    for customer_type in ("granite_shops", "outstation_parties", "builders"):
        for length in range(3, 400):
            final_length = engine.calculate(length, 50, customer_type).final_length
            assert final_length % 3 == 0
            assert final_length <= length - 3


def test_calculation_is_deterministic():
    first = engine.calculate(149, 145, "granite_shops")
    second = engine.calculate(149, 145, "granite_shops")
    assert first == second


def test_trail_contains_raw_calculation_and_steps():
    result = engine.calculate(150, 100, "builders")
    trail = result.as_trail()
    assert trail.splitlines()[0] == result.raw_calculation
    assert len(trail.splitlines()) == 1 + len(result.calculation_steps)


# ============================================================
# Input validation
# ============================================================

def test_numeric_strings_are_accepted():
    result = engine.calculate("150", " 146 ", "granite_shops")
    assert result.area == 147.00


def test_zero_dimension_rejected():
    with pytest.raises(ValidationFailed) as exc_info:
        engine.calculate(0, 10, "retail")
    assert exc_info.value.messages == ["Length must be greater than 0"]
    assert exc_info.value.violations[0].field == "length"


def test_dimension_ceiling():
    assert validate_inputs(10000, 10000, "retail").is_valid
    result = validate_inputs(10001, 10, "retail")
    assert result.messages == ["Length cannot exceed 10,000 inches"]


def test_all_violations_collected_at_once():
    result = validate_inputs("abc", None, "wholesale")
    assert not result.is_valid
    assert result.messages[0] == "Length must be a valid number"
    assert result.messages[1] == "Breadth is required"
    assert result.messages[2].startswith("Invalid customer type: wholesale")
    assert [v.field for v in result.violations] == ["length", "breadth", "customer_type"]


def test_booleans_and_non_finite_are_not_numbers():
    assert validate_inputs(True, 10, "retail").messages == ["Length must be a valid number"]
    assert validate_inputs(10, float("nan"), "retail").messages == ["Breadth must be a valid number"]
    assert validate_inputs(10, "inf", "retail").messages == ["Breadth must be a valid number"]


def test_integer_too_large_for_float_is_rejected():
    with pytest.raises(ValidationFailed) as exc_info:
        engine.calculate(10 ** 400, 100, "retail")
    assert exc_info.value.messages == ["Length must be a valid number"]
    assert validate_inputs(10, Decimal("sNaN"), "retail").messages == ["Breadth must be a valid number"]


def test_missing_customer_type():
    result = validate_inputs(10, 10, "")
    assert result.messages == ["Customer type is required"]


def test_validation_error_payload():
    with pytest.raises(ValidationFailed) as exc_info:
        engine.calculate(-5, 10, "retail")
    payload = exc_info.value.to_dict()
    assert payload["error"] == "Validation failed"
    assert payload["error_type"] == "validation"
    assert payload["details"] == [
        {"field": "length", "value": -5, "reason": "Length must be greater than 0"},
    ]


# ============================================================
# Registry
# ============================================================

def test_registry_covers_every_customer_type():
    assert sorted(list_calculators()) == sorted(CUSTOMER_TYPES)
    for customer_type in CUSTOMER_TYPES:
        assert has_calculator(customer_type)
        assert get_calculator(customer_type).customer_type == customer_type
    assert len(CALCULATOR_REGISTRY) == 5


def test_unknown_customer_type_raises():
    with pytest.raises(UnsupportedCustomerType) as exc_info:
        get_calculator("wholesale")
    assert isinstance(exc_info.value, ValueError)
    assert "retail" in exc_info.value.available
    assert not has_calculator("wholesale")


def test_describe_strategy():
    assert describe_strategy("retail") == "Direct calculation: (Length × Breadth) ÷ 144"
    assert describe_strategy("exporters") == "Simple deduction: (Length-3) × (Breadth-2) ÷ 144"
    assert "divisibility by 3" in describe_strategy("outstation_parties")
    with pytest.raises(UnsupportedCustomerType):
        describe_strategy("nope")


def test_format_number():
    assert format_number(150.0) == "150"
    assert format_number(96.5) == "96.5"
    assert format_number(7) == "7"
