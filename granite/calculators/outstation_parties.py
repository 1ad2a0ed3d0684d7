"""
Outstation Parties calculator: same rule as Granite Shops.
"""

from .granite_shops import GraniteShopsCalculator


class OutstationPartiesCalculator(GraniteShopsCalculator):

    customer_type = "outstation_parties"
    description = "Same as Granite Shops: Length-3 and Breadth-2 with divisibility by 3"
