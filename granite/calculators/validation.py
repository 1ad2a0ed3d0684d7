"""
Input gate in front of every calculation.

All problems are collected before anything is raised so a form can show
every bad field at once.
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from ..errors import ValidationFailed, Violation
from .registry import has_calculator, list_calculators

MAX_DIMENSION = 10000


@dataclass
class ValidationResult:
    length: Optional[float] = None
    breadth: Optional[float] = None
    customer_type: Optional[str] = None
    violations: list = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.violations

    @property
    def messages(self) -> list:
        return [v.reason for v in self.violations]

    def raise_for_errors(self) -> "ValidationResult":
        if self.violations:
            raise ValidationFailed(self.violations)
        return self


def parse_dimension(value: Any) -> Optional[float]:
    """Parse a numeric dimension from user input. Returns None if not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            number = float(value)
        except (OverflowError, ValueError):
            return None
    else:
        try:
            number = float(str(value).strip())
        except (ValueError, TypeError):
            return None
    if not math.isfinite(number):
        return None
    return number


def check_dimension(name: str, value: Any, violations: list) -> Optional[float]:
    """Validate one dimension, appending to violations. Returns the parsed number or None."""
    label = name.capitalize()
    if value is None or (isinstance(value, str) and not value.strip()):
        violations.append(Violation(name, value, f"{label} is required"))
        return None

    number = parse_dimension(value)
    if number is None:
        violations.append(Violation(name, value, f"{label} must be a valid number"))
        return None
    if number <= 0:
        violations.append(Violation(name, value, f"{label} must be greater than 0"))
        return None
    if number > MAX_DIMENSION:
        violations.append(Violation(name, value, f"{label} cannot exceed 10,000 inches"))
        return None
    return number


def check_customer_type(value: Any, violations: list) -> Optional[str]:
    if not value:
        violations.append(Violation("customer_type", value, "Customer type is required"))
        return None
    token = getattr(value, "value", value)
    if not isinstance(token, str) or not has_calculator(token):
        violations.append(Violation(
            "customer_type", value,
            f"Invalid customer type: {value}. "
            f"Valid types are: {', '.join(list_calculators())}",
        ))
        return None
    return token


def validate_inputs(length: Any, breadth: Any, customer_type: Any) -> ValidationResult:
    """Validate raw calculation inputs without raising."""
    violations = []
    result = ValidationResult(violations=violations)
    result.length = check_dimension("length", length, violations)
    result.breadth = check_dimension("breadth", breadth, violations)
    result.customer_type = check_customer_type(customer_type, violations)
    return result
