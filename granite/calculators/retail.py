"""
Retail calculator.

Direct square footage: (Length × Breadth) ÷ 144. No allowance, no rounding
of dimensions.
"""

from .base import BaseCalculator, CalculationResult, format_number


class RetailCalculator(BaseCalculator):

    customer_type = "retail"
    description = "Direct calculation: (Length × Breadth) ÷ 144"

    def calculate(self, length: float, breadth: float) -> CalculationResult:
        l_txt, b_txt = format_number(length), format_number(breadth)
        return self.make_result(
            length, breadth,
            final_length=length,
            final_breadth=breadth,
            length_step=f"Length: {l_txt} inches (no adjustment)",
            breadth_step=f"Breadth: {b_txt} inches (no adjustment)",
            raw_calculation=f"({l_txt} × {b_txt}) ÷ 144",
        )
