import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint, Column, DateTime, Float, ForeignKey, Integer,
    Sequence, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import CUSTOMER_TYPES, SLAB_CATEGORIES, SheetStatus


def utcnow() -> datetime:
    """Naive UTC timestamp; the columns are stored without a zone."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


def _in_list(column: str, values: list) -> str:
    return "%s IN (%s)" % (column, ", ".join("'%s'" % v for v in values))


# Sheet numbers come from a real sequence where the database has one
# (PostgreSQL); elsewhere from the sheet_number_counters table. SQLite skips
# this object in create_all.
MEASUREMENT_SHEET_SEQ = Sequence("measurement_sheet_seq", start=1, metadata=Base.metadata)


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    phone_number = Column(String(20), nullable=False)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    sheets = relationship("MeasurementSheet", back_populates="customer",
                          cascade="all, delete-orphan")


class MeasurementSheet(Base):
    """An ordered ledger of slab entries for one customer order."""
    __tablename__ = "measurement_sheets"

    id = Column(String(36), primary_key=True, default=new_id)
    sheet_number = Column(String(20), unique=True, nullable=False)  # MS-0001
    customer_id = Column(String(36), ForeignKey("customers.id", ondelete="CASCADE"),
                         nullable=False, index=True)
    # VARCHAR + CHECK rather than a DB enum; tokens from enums.CustomerType
    customer_type = Column(String(50), nullable=False, index=True)
    total_area = Column(Float, nullable=False, default=0.0)  # Always Σ slab_entries.area
    status = Column(String(20), nullable=False, default=SheetStatus.DRAFT.value, index=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    customer = relationship("Customer", back_populates="sheets")
    slab_entries = relationship("SlabEntry", back_populates="sheet",
                                order_by="SlabEntry.serial_number",
                                cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(_in_list("customer_type", CUSTOMER_TYPES),
                        name="ck_measurement_sheets_customer_type"),
        CheckConstraint(_in_list("status", [s.value for s in SheetStatus]),
                        name="ck_measurement_sheets_status"),
    )

    @property
    def customer_name(self):
        return self.customer.name if self.customer else None

    @property
    def customer_phone(self):
        return self.customer.phone_number if self.customer else None


class SlabEntry(Base):
    """One measured slab: a line item on a measurement sheet."""
    __tablename__ = "slab_entries"

    id = Column(String(36), primary_key=True, default=new_id)
    sheet_id = Column(String(36), ForeignKey("measurement_sheets.id", ondelete="CASCADE"),
                      nullable=False, index=True)
    serial_number = Column(Integer, nullable=False)  # Dense 1..N within the sheet
    block_number = Column(String(50), nullable=False, index=True)

    # Raw measurement (inches)
    length = Column(Float, nullable=False)
    breadth = Column(Float, nullable=False)
    category = Column(String(5), nullable=False, index=True)

    # Derived by the calculator for the sheet's customer type
    final_length = Column(Float, nullable=False)
    final_breadth = Column(Float, nullable=False)
    area = Column(Float, nullable=False)  # Square feet, 2 dp
    calculation_trail = Column(Text)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    sheet = relationship("MeasurementSheet", back_populates="slab_entries")

    __table_args__ = (
        UniqueConstraint("sheet_id", "serial_number", name="uq_slab_entries_sheet_serial"),
        CheckConstraint("length > 0", name="ck_slab_entries_length"),
        CheckConstraint("breadth > 0", name="ck_slab_entries_breadth"),
        CheckConstraint("area >= 0", name="ck_slab_entries_area"),
        CheckConstraint(_in_list("category", SLAB_CATEGORIES),
                        name="ck_slab_entries_category"),
    )


class SheetNumberCounter(Base):
    """Named monotonic counters for databases without sequences."""
    __tablename__ = "sheet_number_counters"

    name = Column(String(50), primary_key=True)
    value = Column(Integer, nullable=False, default=0)
