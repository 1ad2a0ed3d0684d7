"""
Exporters calculator.

Flat deductions only: (Length - 3) × (Breadth - 2), floored at zero.
No divisibility pass.
"""

from .base import BaseCalculator, CalculationResult, format_number
from .divisibility import BREADTH_ALLOWANCE, LENGTH_ALLOWANCE


class ExportersCalculator(BaseCalculator):

    customer_type = "exporters"
    description = "Simple deduction: (Length-3) × (Breadth-2) ÷ 144"

    def calculate(self, length: float, breadth: float) -> CalculationResult:
        final_length = max(length - LENGTH_ALLOWANCE, 0)
        final_breadth = max(breadth - BREADTH_ALLOWANCE, 0)

        l_txt, b_txt = format_number(length), format_number(breadth)
        return self.make_result(
            length, breadth,
            final_length=final_length,
            final_breadth=final_breadth,
            length_step=f"Length: {l_txt} - 3 = {format_number(final_length)}",
            breadth_step=f"Breadth: {b_txt} - 2 = {format_number(final_breadth)}",
            raw_calculation=f"(({l_txt} - 3) × ({b_txt} - 2)) ÷ 144",
        )
