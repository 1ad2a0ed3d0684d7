"""
Granite Shops (wholesale) calculator.

Length - 3" and breadth - 2", each then stepped down to a multiple of 3.
"""

from .base import BaseCalculator, CalculationResult, format_number
from .divisibility import BREADTH_ALLOWANCE, LENGTH_ALLOWANCE


class GraniteShopsCalculator(BaseCalculator):

    customer_type = "granite_shops"
    description = "Length-3 and Breadth-2 with divisibility by 3 adjustment"

    def calculate(self, length: float, breadth: float) -> CalculationResult:
        anomalies = []
        final_length = self.adjust(length, LENGTH_ALLOWANCE, anomalies)
        final_breadth = self.adjust(breadth, BREADTH_ALLOWANCE, anomalies)

        l_txt, b_txt = format_number(length), format_number(breadth)
        return self.make_result(
            length, breadth,
            final_length=final_length,
            final_breadth=final_breadth,
            length_step=(
                f"Length: {l_txt} - 3 = {format_number(length - LENGTH_ALLOWANCE)}, "
                f"adjusted for divisibility by 3 = {format_number(final_length)}"
            ),
            breadth_step=(
                f"Breadth: {b_txt} - 2 = {format_number(breadth - BREADTH_ALLOWANCE)}, "
                f"adjusted for divisibility by 3 = {format_number(final_breadth)}"
            ),
            raw_calculation=(
                f"(({l_txt} - 3) × ({b_txt} - 2)) ÷ 144 (adjusted for divisibility by 3)"
            ),
            anomalies=anomalies,
        )
