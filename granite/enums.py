import enum


class CustomerType(str, enum.Enum):
    """Customer categories. Each one maps to exactly one calculator."""
    RETAIL = "retail"
    GRANITE_SHOPS = "granite_shops"
    BUILDERS = "builders"
    OUTSTATION_PARTIES = "outstation_parties"
    EXPORTERS = "exporters"


CUSTOMER_TYPE_LABELS = {
    CustomerType.RETAIL: "Retail",
    CustomerType.GRANITE_SHOPS: "Granite Shops (Wholesalers)",
    CustomerType.BUILDERS: "Builders",
    CustomerType.OUTSTATION_PARTIES: "Outstation Parties",
    CustomerType.EXPORTERS: "Exporters",
}


class SheetStatus(str, enum.Enum):
    DRAFT = "draft"
    COMPLETED = "completed"


class SlabCategory(str, enum.Enum):
    F = "F"
    LD = "LD"
    D = "D"
    S = "S"


CUSTOMER_TYPES = [t.value for t in CustomerType]
SLAB_CATEGORIES = [c.value for c in SlabCategory]
