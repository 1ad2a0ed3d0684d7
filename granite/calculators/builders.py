"""
Builders calculator.

Length - 3" stepped down to a multiple of 3; breadth is used as measured.
"""

from .base import BaseCalculator, CalculationResult, format_number
from .divisibility import LENGTH_ALLOWANCE


class BuildersCalculator(BaseCalculator):

    customer_type = "builders"
    description = "Length-3 with divisibility by 3 adjustment, original breadth"

    def calculate(self, length: float, breadth: float) -> CalculationResult:
        anomalies = []
        final_length = self.adjust(length, LENGTH_ALLOWANCE, anomalies)

        l_txt, b_txt = format_number(length), format_number(breadth)
        return self.make_result(
            length, breadth,
            final_length=final_length,
            final_breadth=breadth,
            length_step=(
                f"Length: {l_txt} - 3 = {format_number(length - LENGTH_ALLOWANCE)}, "
                f"adjusted for divisibility by 3 = {format_number(final_length)}"
            ),
            breadth_step=f"Breadth: {b_txt} inches (no adjustment)",
            raw_calculation=(
                f"(({l_txt} - 3) × {b_txt}) ÷ 144 (length adjusted for divisibility by 3)"
            ),
            anomalies=anomalies,
        )
