"""
Error taxonomy for the measurement core.

Every error carries structured detail (field, value, reason) so the HTTP
layer or any other caller can render an actionable message. None of these
are meant to crash the process; the HTTP layer maps each one to a status
code in ``register_exception_handlers``.
"""

from dataclasses import asdict, dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Violation:
    """One field-level validation problem."""
    field: str
    value: Any
    reason: str

    def to_dict(self) -> dict:
        data = asdict(self)
        # Values may be arbitrary user input, so stringify anything JSON cannot carry
        if not isinstance(data["value"], (str, int, float, bool, type(None))):
            data["value"] = str(data["value"])
        return data

class MeasurementError(Exception):
    """Base class for all measurement core errors."""

    status_code = 500
    error_type = "measurement"

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Any = None, reason: Optional[str] = None):
        self.message = message
        self.field = field
        self.value = value
        self.reason = reason or message
        super().__init__(message)

    def details(self) -> list:
        return [Violation(self.field or "", self.value, self.reason).to_dict()]

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "error_type": self.error_type,
            "details": self.details(),
        }

class ValidationFailed(MeasurementError):
    """One or more field-level violations. Recoverable by fixing input."""

    status_code = 400
    error_type = "validation"

    def __init__(self, violations: list):
        self.violations = list(violations)
        super().__init__("Validation failed")

    @property
    def messages(self) -> list:
        return [v.reason for v in self.violations]

    def details(self) -> list:
        return [v.to_dict() for v in self.violations]

class UnsupportedCustomerType(MeasurementError, ValueError):
    status_code = 400
    error_type = "unsupported_customer_type"

    def __init__(self, customer_type: Any, available: list):
        self.available = list(available)
        super().__init__(
            f"Unsupported customer type: {customer_type}. "
            f"Available: {', '.join(self.available)}",
            field="customer_type",
            value=customer_type,
        )

class CalculationError(MeasurementError):
    """A calculator produced a non-finite or negative area."""

    status_code = 422
    error_type = "calculation"

class ComputationAnomaly(MeasurementError):
    """
    The divisibility adjuster hit its iteration ceiling.

    Raised internally only. Callers receive a zero dimension and the
    anomaly is logged and recorded on the calculation result.
    """

    status_code = 422
    error_type = "computation_anomaly"

class SheetNotFound(MeasurementError):
    status_code = 404
    error_type = "sheet_not_found"

    def __init__(self, sheet_id: Any):
        super().__init__("Measurement sheet not found", field="sheet_id",
                         value=sheet_id)

class LineItemNotFound(MeasurementError):
    status_code = 404
    error_type = "line_item_not_found"

    def __init__(self, entry_id: Any):
        super().__init__("Slab entry not found", field="entry_id",
                         value=entry_id)

class CustomerNotFound(MeasurementError):
    status_code = 404
    error_type = "customer_not_found"

    def __init__(self, customer_id: Any):
        super().__init__("Customer not found", field="customer_id",
                         value=customer_id)

class SheetLocked(MeasurementError):
    """Edits attempted on a completed sheet while the guard is enabled."""

    status_code = 409
    error_type = "sheet_locked"

    def __init__(self, sheet_id: Any):
        super().__init__("Measurement sheet is completed and cannot be edited",
                         field="sheet_id", value=sheet_id)

class SequenceAllocationConflict(MeasurementError):
    """Two writers allocated the same serial. Retried by the service layer."""

    status_code = 409
    error_type = "sequence_conflict"

    def __init__(self, sheet_id: Any, attempts: int = 1):
        self.attempts = attempts
        super().__init__(
            f"Serial number allocation conflict after {attempts} attempt(s)",
            field="sheet_id", value=sheet_id,
        )
