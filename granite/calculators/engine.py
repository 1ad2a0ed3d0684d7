"""
Entry point for square-footage calculation: validate, resolve, calculate.
"""

import logging

from .base import CalculationResult
from .registry import get_calculator
from .validation import validate_inputs

logger = logging.getLogger(__name__)


def calculate(length, breadth, customer_type) -> CalculationResult:
    """
    Calculate the billable area of one slab.

    Raises ValidationFailed with every violation when the input is bad.
    """
    checked = validate_inputs(length, breadth, customer_type)
    if not checked.is_valid:
        logger.info("Calculation rejected for (%r, %r, %r): %s",
                    length, breadth, customer_type, checked.messages)
    checked.raise_for_errors()

    calculator = get_calculator(checked.customer_type)
    return calculator.calculate(checked.length, checked.breadth)
