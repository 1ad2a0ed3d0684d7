"""
Calculator registry: maps customer-type tokens to calculator classes.
"""

from ..errors import UnsupportedCustomerType
from .base import BaseCalculator
from .builders import BuildersCalculator
from .exporters import ExportersCalculator
from .granite_shops import GraniteShopsCalculator
from .outstation_parties import OutstationPartiesCalculator
from .retail import RetailCalculator

CALCULATOR_REGISTRY: dict[str, type] = {
    "retail": RetailCalculator,
    "granite_shops": GraniteShopsCalculator,
    "builders": BuildersCalculator,
    "outstation_parties": OutstationPartiesCalculator,
    "exporters": ExportersCalculator,
}


def get_calculator(customer_type: str) -> BaseCalculator:
    """Returns an instance of the calculator for a customer type, or raises UnsupportedCustomerType."""
    key = getattr(customer_type, "value", customer_type)
    if key not in CALCULATOR_REGISTRY:
        raise UnsupportedCustomerType(customer_type, list(CALCULATOR_REGISTRY.keys()))
    return CALCULATOR_REGISTRY[key]()


def has_calculator(customer_type: str) -> bool:
    """Check if a calculator exists for a customer type."""
    return getattr(customer_type, "value", customer_type) in CALCULATOR_REGISTRY


def list_calculators() -> list[str]:
    """List all registered customer-type tokens."""
    return list(CALCULATOR_REGISTRY.keys())


def describe_strategy(customer_type: str) -> str:
    """One-sentence description of the rule used for a customer type."""
    return get_calculator(customer_type).description
