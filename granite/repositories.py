"""
Repositories: the only code that builds queries against the ORM models.

They never commit; the service owns the transaction boundary.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from . import models
from .aggregates import sum_areas
from .enums import SheetStatus

SORT_COLUMNS = {
    "created_at": models.MeasurementSheet.created_at,
    "updated_at": models.MeasurementSheet.updated_at,
    "sheet_number": models.MeasurementSheet.sheet_number,
    "customer_name": models.Customer.name,
    "total_area": models.MeasurementSheet.total_area,
}


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


class CustomerRepository:

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, customer_id: str) -> Optional[models.Customer]:
        return self.db.query(models.Customer).filter(models.Customer.id == customer_id).first()

    def create(self, **fields) -> models.Customer:
        customer = models.Customer(**fields)
        self.db.add(customer)
        self.db.flush()
        return customer

    def update(self, customer: models.Customer, **changes) -> models.Customer:
        for name, value in changes.items():
            setattr(customer, name, value)
        self.db.flush()
        return customer

    def search(self, skip: int = 0, limit: int = 100) -> list:
        return self.db.query(models.Customer).order_by(models.Customer.name).offset(skip).limit(limit).all()


class SheetRepository:

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, sheet_id: str, refresh: bool = False) -> Optional[models.MeasurementSheet]:
        query = self.db.query(models.MeasurementSheet).options(
            joinedload(models.MeasurementSheet.customer)
        ).filter(models.MeasurementSheet.id == sheet_id)
        if refresh:
            query = query.populate_existing()
        return query.first()

    def create(self, sheet_number: str, customer_id: str, customer_type: str) -> models.MeasurementSheet:
        sheet = models.MeasurementSheet(
            sheet_number=sheet_number,
            customer_id=customer_id,
            customer_type=customer_type,
            status=SheetStatus.DRAFT.value,
            total_area=0.0,
        )
        self.db.add(sheet)
        self.db.flush()
        return sheet

    def update(self, sheet: models.MeasurementSheet, **changes) -> models.MeasurementSheet:
        for name, value in changes.items():
            setattr(sheet, name, value)
        self.db.flush()
        return sheet

    def delete(self, sheet: models.MeasurementSheet) -> None:
        self.db.delete(sheet)
        self.db.flush()

    def entry_count(self, sheet_id: str) -> int:
        return self.db.query(models.SlabEntry).filter(models.SlabEntry.sheet_id == sheet_id).count()

    def search(self, search: str = None, customer_type: str = None, status: str = None,
               start_date: datetime = None, end_date: datetime = None,
               block_number: str = None, page: int = 1, limit: int = 50,
               sort_by: str = "created_at", sort_order: str = "DESC"):
        """Filter, sort and paginate sheets. Returns (rows, total)."""
        query = self.db.query(models.MeasurementSheet).join(
            models.Customer, models.MeasurementSheet.customer_id == models.Customer.id
        ).options(joinedload(models.MeasurementSheet.customer))

        if search and search.strip():
            like = f"%{search.strip()}%"
            query = query.filter(or_(
                models.MeasurementSheet.sheet_number.ilike(like),
                models.Customer.name.ilike(like),
                models.Customer.phone_number.ilike(like),
            ))
        if customer_type:
            query = query.filter(models.MeasurementSheet.customer_type == customer_type)
        if status:
            query = query.filter(models.MeasurementSheet.status == status)
        if start_date:
            query = query.filter(models.MeasurementSheet.created_at >= start_date)
        if end_date:
            query = query.filter(models.MeasurementSheet.created_at <= end_date)
        if block_number:
            # EXISTS, so a sheet with several matching slabs is listed once
            query = query.filter(models.MeasurementSheet.slab_entries.any(
                models.SlabEntry.block_number.ilike(f"%{block_number}%")
            ))

        total = query.count()

        column = SORT_COLUMNS.get(sort_by, models.MeasurementSheet.created_at)
        order = column.asc() if str(sort_order).upper() == "ASC" else column.desc()
        page = max(page, 1)
        rows = query.order_by(order, models.MeasurementSheet.sheet_number).offset(
            (page - 1) * limit
        ).limit(limit).all()
        return rows, total

    def recent(self, limit: int = 10) -> list:
        return self.db.query(models.MeasurementSheet).options(
            joinedload(models.MeasurementSheet.customer)
        ).order_by(
            models.MeasurementSheet.created_at.desc(),
            models.MeasurementSheet.sheet_number.desc(),
        ).limit(limit).all()

    def statistics(self, now: datetime = None) -> dict:
        now = now or models.utcnow()
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        sheets = self.db.query(models.MeasurementSheet)
        Sheet = models.MeasurementSheet

        breakdown = self.db.query(Sheet.customer_type, func.count(Sheet.id)).group_by(
            Sheet.customer_type
        ).order_by(func.count(Sheet.id).desc(), Sheet.customer_type).all()

        completed_areas = self.db.query(Sheet.total_area).filter(
            Sheet.status == SheetStatus.COMPLETED.value
        ).all()

        return {
            "total_sheets": sheets.count(),
            "draft_sheets": sheets.filter(Sheet.status == SheetStatus.DRAFT.value).count(),
            "completed_sheets": sheets.filter(Sheet.status == SheetStatus.COMPLETED.value).count(),
            "sheets_today": sheets.filter(Sheet.created_at >= today).count(),
            "sheets_this_week": sheets.filter(Sheet.created_at >= today - timedelta(days=7)).count(),
            "total_area": sum_areas(a for (a,) in completed_areas if a is not None),
            "customer_type_breakdown": [
                {"customer_type": customer_type, "count": count}
                for customer_type, count in breakdown
            ],
        }


class SlabEntryRepository:

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, entry_id: str, refresh: bool = False) -> Optional[models.SlabEntry]:
        query = self.db.query(models.SlabEntry).filter(models.SlabEntry.id == entry_id)
        if refresh:
            query = query.populate_existing()
        return query.first()

    def find_many(self, entry_ids: list) -> list:
        return self.db.query(models.SlabEntry).filter(models.SlabEntry.id.in_(entry_ids)).all()

    def create(self, sheet_id: str, serial_number: int, **fields) -> models.SlabEntry:
        entry = models.SlabEntry(sheet_id=sheet_id, serial_number=serial_number, **fields)
        self.db.add(entry)
        return entry

    def update(self, entry: models.SlabEntry, **changes) -> models.SlabEntry:
        for name, value in changes.items():
            setattr(entry, name, value)
        return entry

    def delete(self, entry: models.SlabEntry) -> None:
        self.db.delete(entry)
        self.db.flush()

    def list_for_sheet(self, sheet_id: str, page: int = None, limit: int = None):
        """Entries in serial order. Returns (rows, total); total is None when unpaginated."""
        query = self.db.query(models.SlabEntry).filter(
            models.SlabEntry.sheet_id == sheet_id
        ).order_by(models.SlabEntry.serial_number)
        if page and limit:
            total = query.count()
            return query.offset((page - 1) * limit).limit(limit).all(), total
        return query.all(), None

    def search(self, sheet_id: str = None, block_number: str = None,
               category: str = None) -> list:
        query = self.db.query(models.SlabEntry)
        if sheet_id:
            query = query.filter(models.SlabEntry.sheet_id == sheet_id)
        if block_number:
            query = query.filter(models.SlabEntry.block_number.ilike(f"%{block_number}%"))
        if category:
            query = query.filter(models.SlabEntry.category == category)
        return query.order_by(models.SlabEntry.sheet_id, models.SlabEntry.serial_number).all()

    def renumber(self, sheet_id: str) -> int:
        """
        Close gaps so serials run 1..N again. Returns how many rows moved.

        Rows are moved in ascending order; each target slot is already free,
        so UNIQUE(sheet_id, serial_number) holds after every statement.
        """
        self.db.flush()
        rows = self.db.query(models.SlabEntry.id, models.SlabEntry.serial_number).filter(
            models.SlabEntry.sheet_id == sheet_id
        ).order_by(models.SlabEntry.serial_number).all()

        moved = 0
        for position, (entry_id, serial) in enumerate(rows, start=1):
            if serial != position:
                self.db.query(models.SlabEntry).filter(models.SlabEntry.id == entry_id).update(
                    {models.SlabEntry.serial_number: position},
                    synchronize_session="fetch",
                )
                moved += 1
        return moved
