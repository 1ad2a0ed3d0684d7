"""
Abstract base class for all customer-type calculators.

Input: length and breadth in inches, already validated (see validation.py)
Output: CalculationResult (final dimensions, square feet, and the audit trail)
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from decimal import Decimal, ROUND_HALF_UP

from ..errors import CalculationError
from .divisibility import MAX_ITERATIONS, adjust_for_divisibility

logger = logging.getLogger(__name__)

SQ_INCHES_PER_SQ_FT = 144


@dataclass(frozen=True)
class CalculationResult:
    """Transient result of one calculation. Produced fresh on every request."""
    final_length: float
    final_breadth: float
    area: float
    calculation_steps: list = field(default_factory=list)
    raw_calculation: str = ""
    anomalies: list = field(default_factory=list)

    def as_trail(self) -> str:
        """Flatten to the text stored on a slab entry."""
        return "\n".join([self.raw_calculation] + list(self.calculation_steps))

    def to_dict(self) -> dict:
        return asdict(self)


def format_number(value) -> str:
    """Render a dimension the way an operator writes it: 150, not 150.0."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, float):
        return format(value, ".12g")
    return str(value)


class BaseCalculator(ABC):
    """All customer-type calculators inherit from this."""

    customer_type: str = ""
    description: str = ""
    max_iterations: int = MAX_ITERATIONS
    floor_fallback: float = 0

    @abstractmethod
    def calculate(self, length: float, breadth: float) -> CalculationResult:
        """
        Takes validated raw dimensions in inches.
        Returns a CalculationResult.
        """
        pass

    # --- Helper methods for all calculators ---

    def sq_ft_from_dimensions(self, length_in: float, breadth_in: float) -> float:
        """Calculate square footage from dimensions in inches."""
        return (length_in * breadth_in) / SQ_INCHES_PER_SQ_FT

    def round_area(self, value: float) -> float:
        """Two decimal places, half-up (not Python's banker's rounding)."""
        return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))

    def adjust(self, raw: float, subtrahend: float, anomalies: list) -> float:
        """
        Divisibility adjustment that records, rather than raises, a ceiling hit.
        """
        return adjust_for_divisibility(
            raw, subtrahend,
            floor_fallback=self.floor_fallback,
            max_iterations=self.max_iterations,
            anomalies=anomalies,
        )

    def make_result(self, length: float, breadth: float,
                    final_length: float, final_breadth: float,
                    length_step: str, breadth_step: str,
                    raw_calculation: str, anomalies: list = None) -> CalculationResult:
        """Compute the area, sanity-check it, and assemble the trail."""
        if final_length == 0 or final_breadth == 0:
            logger.warning(
                "%s calculation resulted in zero dimensions "
                "(length %s -> %s, breadth %s -> %s)",
                self.customer_type, length, final_length, breadth, final_breadth,
            )

        square_inches = final_length * final_breadth
        square_feet = self.sq_ft_from_dimensions(final_length, final_breadth)

        if not math.isfinite(square_feet) or square_feet < 0:
            raise CalculationError(
                f"{self.customer_type} calculation produced an invalid area",
                field="area",
                value=square_feet,
                reason="area must be finite and non-negative",
            )

        steps = [
            length_step,
            breadth_step,
            f"Square Inches: {format_number(final_length)} × "
            f"{format_number(final_breadth)} = {format_number(square_inches)}",
            f"Square Feet: {format_number(square_inches)} ÷ {SQ_INCHES_PER_SQ_FT} "
            f"= {square_feet:.2f}",
        ]
        anomalies = list(anomalies or [])
        for message in anomalies:
            steps.append(f"Warning: {message}; dimension set to {format_number(self.floor_fallback)}")

        return CalculationResult(
            final_length=final_length,
            final_breadth=final_breadth,
            area=self.round_area(square_feet),
            calculation_steps=steps,
            raw_calculation=raw_calculation,
            anomalies=anomalies,
        )
