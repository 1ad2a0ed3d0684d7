import hashlib
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel


# --- Domain values (frozen; returned by the service and stored in the cache) ---

class Customer(BaseModel):
    id: str
    name: str
    phone_number: str
    email: Optional[str] = None
    address: str
    created_at: datetime
    updated_at: datetime
    class Config:
        from_attributes = True
        frozen = True


class SlabEntry(BaseModel):
    id: str
    sheet_id: str
    serial_number: int
    block_number: str
    length: float
    breadth: float
    category: str
    final_length: float
    final_breadth: float
    area: float
    calculation_trail: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    class Config:
        from_attributes = True
        frozen = True


class MeasurementSheet(BaseModel):
    id: str
    sheet_number: str
    customer_id: str
    customer_type: str
    status: str
    total_area: float
    created_at: datetime
    updated_at: datetime
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    entries: Optional[List[SlabEntry]] = None  # Only populated for the "full" read
    class Config:
        from_attributes = True
        frozen = True


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int
    class Config:
        frozen = True


class SheetPage(BaseModel):
    sheets: List[MeasurementSheet]
    pagination: Pagination
    class Config:
        frozen = True


class EntryPage(BaseModel):
    entries: List[SlabEntry]
    pagination: Optional[Pagination] = None
    class Config:
        frozen = True


class CustomerTypeCount(BaseModel):
    customer_type: str
    count: int


class SheetStatistics(BaseModel):
    total_sheets: int
    draft_sheets: int
    completed_sheets: int
    sheets_today: int
    sheets_this_week: int
    total_area: float  # Completed sheets only
    customer_type_breakdown: List[CustomerTypeCount] = []
    class Config:
        frozen = True


# --- Inputs ---

class CustomerBase(BaseModel):
    name: str
    phone_number: str
    email: Optional[str] = None
    address: str


class CustomerCreate(CustomerBase):
    pass


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class SlabEntryFields(BaseModel):
    """
    Raw operator input for one slab.

    Dimensions stay untyped here and are checked by the measurement validator.
    """
    block_number: Optional[str] = None
    length: Optional[Any] = None
    breadth: Optional[Any] = None
    category: Optional[str] = None


class SlabEntryCreate(SlabEntryFields):
    sheet_id: str


class SlabEntryBatchCreate(BaseModel):
    sheet_id: str
    entries: List[SlabEntryFields]


class SlabEntryBatchUpdateItem(SlabEntryFields):
    id: str


class MeasurementSheetCreate(BaseModel):
    customer_id: str
    customer_type: str


class MeasurementSheetUpdate(BaseModel):
    status: Optional[str] = None
    customer_type: Optional[str] = None


class SheetSearchParams(BaseModel):
    search: Optional[str] = None
    customer_type: Optional[str] = None
    status: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    block_number: Optional[str] = None
    page: int = 1
    limit: int = 50
    sort_by: str = "created_at"
    sort_order: str = "DESC"

    def fingerprint(self) -> str:
        """Stable short hash used in the search cache key."""
        payload = self.model_dump_json(exclude_none=True)
        return hashlib.sha1(payload.encode("utf-8")).hexdigest()[:16]


# --- Calculation ---

class CalculationRequest(BaseModel):
    length: Optional[Any] = None
    breadth: Optional[Any] = None
    customer_type: Optional[str] = None


class CalculationResponse(BaseModel):
    customer_type: str
    description: str
    final_length: float
    final_breadth: float
    area: float
    calculation_steps: List[str]
    raw_calculation: str
    anomalies: List[str] = []


class CustomerTypeInfo(BaseModel):
    token: str
    label: str
    description: str
