"""
MeasurementService: the unit-of-work layer over sheets and slab entries.

Each public write is one transaction: lock the sheet, validate and
calculate, write rows, recompute the sheet total, commit, then invalidate
the cache. Reads go through the cache and hand back frozen schemas, never
ORM rows.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models, schemas
from .aggregates import calculate_sheet_total
from .cache import CacheCoordinator, NullCache
from .calculators.registry import get_calculator
from .calculators.validation import check_customer_type, check_dimension
from .config import settings
from .enums import SLAB_CATEGORIES, SheetStatus
from .errors import (
    CustomerNotFound, LineItemNotFound, SequenceAllocationConflict,
    SheetLocked, SheetNotFound, ValidationFailed, Violation,
)
from .repositories import (
    CustomerRepository, SheetRepository, SlabEntryRepository, page_count,
)
from .sequences import SequenceAllocator, is_serial_conflict

logger = logging.getLogger(__name__)

MAX_BLOCK_NUMBER_LENGTH = 50


class MeasurementService:

    def __init__(self, db: Session, cache: CacheCoordinator = None,
                 allocator: SequenceAllocator = None):
        self.db = db
        self.cache = cache or CacheCoordinator(NullCache())
        self.allocator = allocator or SequenceAllocator()
        self.customers = CustomerRepository(db)
        self.sheets = SheetRepository(db)
        self.entries = SlabEntryRepository(db)

    # ==========================================================
    # Customers
    # ==========================================================

    def create_customer(self, data: schemas.CustomerCreate) -> schemas.Customer:
        try:
            customer = self.customers.create(**data.model_dump())
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return schemas.Customer.model_validate(customer)

    def get_customer(self, customer_id: str) -> schemas.Customer:
        def load():
            row = self.customers.find_by_id(customer_id)
            return schemas.Customer.model_validate(row) if row else None

        customer = self.cache.read_through(
            self.cache.keys.customer(customer_id), settings.CACHE_TTL_CUSTOMER,
            load, schemas.Customer,
        )
        if customer is None:
            raise CustomerNotFound(customer_id)
        return customer

    def list_customers(self, skip: int = 0, limit: int = 100) -> List[schemas.Customer]:
        return [schemas.Customer.model_validate(c) for c in self.customers.search(skip, limit)]

    def update_customer(self, customer_id: str, changes: schemas.CustomerUpdate) -> schemas.Customer:
        customer = self.customers.find_by_id(customer_id)
        if not customer:
            raise CustomerNotFound(customer_id)
        try:
            self.customers.update(customer, **changes.model_dump(exclude_unset=True, exclude_none=True))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.cache.invalidate(self.cache.rules.customer_changed(customer_id))
        return schemas.Customer.model_validate(customer)

    # ==========================================================
    # Sheets
    # ==========================================================

    def create_sheet(self, customer_id: str, customer_type: str) -> schemas.MeasurementSheet:
        """Open a new draft sheet with the next sheet number."""
        violations = []
        token = check_customer_type(customer_type, violations)
        if violations:
            raise ValidationFailed(violations)
        if not self.customers.find_by_id(customer_id):
            raise CustomerNotFound(customer_id)

        try:
            # Consumed even if the insert below fails
            sheet_number = self.allocator.allocate_sheet_number(self.db)
            sheet = self.sheets.create(sheet_number, customer_id, token)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        value = self._sheet_value(sheet)
        self.cache.invalidate(self.cache.rules.sheet_created(value.id))
        self.cache.prime(self.cache.keys.sheet(value.id), settings.CACHE_TTL_SHEET,
                         value, schemas.MeasurementSheet)
        logger.info("Created measurement sheet %s (%s) for customer %s",
                    value.sheet_number, token, customer_id)
        return value

    def get_sheet(self, sheet_id: str, include_entries: bool = False) -> schemas.MeasurementSheet:
        if include_entries:
            key, ttl = self.cache.keys.sheet_full(sheet_id), settings.CACHE_TTL_SHEET_FULL
        else:
            key, ttl = self.cache.keys.sheet(sheet_id), settings.CACHE_TTL_SHEET

        def load():
            row = self.sheets.find_by_id(sheet_id)
            if row is None:
                return None
            return self._sheet_value(row, include_entries)

        sheet = self.cache.read_through(key, ttl, load, schemas.MeasurementSheet)
        if sheet is None:
            raise SheetNotFound(sheet_id)
        return sheet

    def search_sheets(self, params: schemas.SheetSearchParams) -> schemas.SheetPage:
        def load():
            rows, total = self.sheets.search(**params.model_dump())
            return schemas.SheetPage(
                sheets=[self._sheet_value(row) for row in rows],
                pagination=schemas.Pagination(
                    page=params.page, limit=params.limit, total=total,
                    pages=page_count(total, params.limit),
                ),
            )

        return self.cache.read_through(
            self.cache.keys.sheet_search(params.fingerprint()), settings.CACHE_TTL_SEARCH,
            load, schemas.SheetPage,
        )

    def recent_sheets(self, limit: int = 10) -> List[schemas.MeasurementSheet]:
        return self.cache.read_through(
            self.cache.keys.recent_sheets(limit), settings.CACHE_TTL_RECENT,
            lambda: [self._sheet_value(row) for row in self.sheets.recent(limit)],
            List[schemas.MeasurementSheet],
        )

    def statistics(self) -> schemas.SheetStatistics:
        return self.cache.read_through(
            self.cache.keys.statistics(), settings.CACHE_TTL_STATS,
            lambda: schemas.SheetStatistics(**self.sheets.statistics()),
            schemas.SheetStatistics,
        )

    def update_sheet(self, sheet_id: str, changes: schemas.MeasurementSheetUpdate) -> schemas.MeasurementSheet:
        """
        Change status and/or customer type.

        Status only moves draft -> completed. Customer type is fixed once the
        sheet has entries, since their areas were calculated under it.
        """
        try:
            self.allocator.lock_sheet(self.db, sheet_id)
            sheet = self.sheets.find_by_id(sheet_id, refresh=True)
            updates = {}
            violations = []

            if changes.status is not None and changes.status != sheet.status:
                if changes.status not in [s.value for s in SheetStatus]:
                    violations.append(Violation("status", changes.status,
                                                f"Invalid status: {changes.status}"))
                elif sheet.status != SheetStatus.DRAFT.value:
                    violations.append(Violation(
                        "status", changes.status,
                        f"Cannot change status from {sheet.status} to {changes.status}",
                    ))
                else:
                    updates["status"] = changes.status

            if changes.customer_type is not None and changes.customer_type != sheet.customer_type:
                token = check_customer_type(changes.customer_type, violations)
                if token:
                    self._ensure_editable(sheet)
                    if self.sheets.entry_count(sheet_id):
                        violations.append(Violation(
                            "customer_type", changes.customer_type,
                            "Customer type cannot be changed once slab entries exist",
                        ))
                    else:
                        updates["customer_type"] = token

            if violations:
                raise ValidationFailed(violations)
            if updates:
                self.sheets.update(sheet, **updates)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.cache.invalidate(self.cache.rules.sheet_updated(sheet_id))
        value = self._sheet_value(sheet)
        if updates.get("status") == SheetStatus.COMPLETED.value:
            logger.info("Completed measurement sheet %s, total area %.2f sq ft",
                        value.sheet_number, value.total_area)
        return value

    def complete_sheet(self, sheet_id: str) -> schemas.MeasurementSheet:
        return self.update_sheet(sheet_id, schemas.MeasurementSheetUpdate(
            status=SheetStatus.COMPLETED.value))

    def delete_sheet(self, sheet_id: str) -> None:
        sheet = self.sheets.find_by_id(sheet_id)
        if not sheet:
            raise SheetNotFound(sheet_id)
        sheet_number = sheet.sheet_number
        try:
            self.sheets.delete(sheet)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.cache.invalidate(self.cache.rules.sheet_deleted(sheet_id))
        logger.info("Deleted measurement sheet %s", sheet_number)

    # ==========================================================
    # Slab entries: reads
    # ==========================================================

    def list_entries(self, sheet_id: str, page: Optional[int] = None,
                     limit: Optional[int] = None) -> schemas.EntryPage:
        def load():
            if not self.sheets.find_by_id(sheet_id):
                return None
            rows, total = self.entries.list_for_sheet(sheet_id, page, limit)
            pagination = None
            if total is not None:
                pagination = schemas.Pagination(page=page, limit=limit, total=total,
                                                pages=page_count(total, limit))
            return schemas.EntryPage(
                entries=[schemas.SlabEntry.model_validate(r) for r in rows],
                pagination=pagination,
            )

        result = self.cache.read_through(
            self.cache.keys.entries(sheet_id, page, limit), settings.CACHE_TTL_ENTRY_LIST,
            load, schemas.EntryPage,
        )
        if result is None:
            raise SheetNotFound(sheet_id)
        return result

    def get_entry(self, entry_id: str) -> schemas.SlabEntry:
        entry = self.entries.find_by_id(entry_id)
        if not entry:
            raise LineItemNotFound(entry_id)
        return schemas.SlabEntry.model_validate(entry)

    # ==========================================================
    # Slab entries: writes
    # ==========================================================

    def add_line_item(self, sheet_id: str, fields: schemas.SlabEntryFields) -> schemas.SlabEntry:
        return self.batch_add_line_items(sheet_id, [fields])[0]

    def batch_add_line_items(self, sheet_id: str,
                             fields_list: List[schemas.SlabEntryFields]) -> List[schemas.SlabEntry]:
        """
        Validate, calculate and append entries in one transaction.

        Either every entry is written with consecutive serials or none is.
        A serial collision rolls back and retries the whole batch.
        """
        if not fields_list:
            raise ValidationFailed([Violation("entries", [], "At least one slab entry is required")])
        if len(fields_list) > settings.MAX_BATCH_SIZE:
            raise ValidationFailed([Violation(
                "entries", len(fields_list),
                f"Cannot add more than {settings.MAX_BATCH_SIZE} entries at once",
            )])

        attempts = max(settings.SERIAL_ALLOCATION_ATTEMPTS, 1)
        for attempt in range(1, attempts + 1):
            try:
                created = self._insert_entries(sheet_id, fields_list)
                break
            except SequenceAllocationConflict:
                if attempt == attempts:
                    logger.error("Serial allocation on sheet %s failed after %d attempts",
                                 sheet_id, attempts)
                    raise SequenceAllocationConflict(sheet_id, attempts)
                logger.warning("Serial conflict on sheet %s, retrying (%d/%d)",
                               sheet_id, attempt, attempts)

        self.cache.invalidate(self.cache.rules.entries_changed(sheet_id))
        return created

    def update_line_item(self, entry_id: str, fields: schemas.SlabEntryFields) -> schemas.SlabEntry:
        """Re-run the calculation with the merged fields. None means keep the stored value."""
        return self.batch_update_line_items([
            schemas.SlabEntryBatchUpdateItem(id=entry_id, **fields.model_dump())
        ])[0]

    def batch_update_line_items(self, items: List[schemas.SlabEntryBatchUpdateItem]) -> List[schemas.SlabEntry]:
        if not items:
            raise ValidationFailed([Violation("entries", [], "At least one slab entry is required")])
        ids = [item.id for item in items]
        rows = {e.id: e for e in self.entries.find_many(ids)}
        for entry_id in ids:
            if entry_id not in rows:
                raise LineItemNotFound(entry_id)
        sheet_ids = sorted({e.sheet_id for e in rows.values()})

        try:
            sheets = {}
            # Fixed lock order across sheets
            for sheet_id in sheet_ids:
                self.allocator.lock_sheet(self.db, sheet_id)
                sheets[sheet_id] = self.sheets.find_by_id(sheet_id, refresh=True)
                self._ensure_editable(sheets[sheet_id])

            violations = []
            updates = []
            for index, item in enumerate(items):
                entry = self.entries.find_by_id(item.id, refresh=True)
                if entry is None:
                    raise LineItemNotFound(item.id)
                merged = schemas.SlabEntryFields(
                    block_number=entry.block_number if item.block_number is None else item.block_number,
                    length=entry.length if item.length is None else item.length,
                    breadth=entry.breadth if item.breadth is None else item.breadth,
                    category=entry.category if item.category is None else item.category,
                )
                prefix = f"entries[{index}]." if len(items) > 1 else ""
                prepared = self._prepare(merged, sheets[entry.sheet_id].customer_type,
                                         violations, prefix)
                updates.append((entry, prepared))
            if violations:
                raise ValidationFailed(violations)

            for entry, prepared in updates:
                self.entries.update(entry, **prepared)
            for sheet in sheets.values():
                calculate_sheet_total(sheet, self.db)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        for sheet_id in sheet_ids:
            self.cache.invalidate(self.cache.rules.entries_changed(sheet_id))
        return [schemas.SlabEntry.model_validate(entry) for entry, _ in updates]

    def delete_line_item(self, entry_id: str, renumber: bool = True) -> None:
        """Remove an entry. With renumber the remaining serials close up to 1..N."""
        entry = self.entries.find_by_id(entry_id)
        if not entry:
            raise LineItemNotFound(entry_id)
        sheet_id = entry.sheet_id

        try:
            self.allocator.lock_sheet(self.db, sheet_id)
            sheet = self.sheets.find_by_id(sheet_id, refresh=True)
            self._ensure_editable(sheet)
            entry = self.entries.find_by_id(entry_id, refresh=True)
            if entry is None:
                raise LineItemNotFound(entry_id)
            self.entries.delete(entry)
            if renumber:
                self.entries.renumber(sheet_id)
            calculate_sheet_total(sheet, self.db)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.cache.invalidate(self.cache.rules.entries_changed(sheet_id))
        logger.debug("Deleted slab entry %s from sheet %s", entry_id, sheet_id)

    # ==========================================================
    # Internals
    # ==========================================================

    def _insert_entries(self, sheet_id: str, fields_list: list) -> List[schemas.SlabEntry]:
        try:
            serials = self.allocator.allocate_serials(self.db, sheet_id, len(fields_list))
            sheet = self.sheets.find_by_id(sheet_id, refresh=True)
            self._ensure_editable(sheet)

            violations = []
            prepared = []
            for index, fields in enumerate(fields_list):
                prefix = f"entries[{index}]." if len(fields_list) > 1 else ""
                prepared.append(self._prepare(fields, sheet.customer_type, violations, prefix))
            if violations:
                raise ValidationFailed(violations)

            rows = [
                self.entries.create(sheet_id, serial, **columns)
                for serial, columns in zip(serials, prepared)
            ]
            calculate_sheet_total(sheet, self.db)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if is_serial_conflict(e):
                raise SequenceAllocationConflict(sheet_id) from e
            raise
        except Exception:
            self.db.rollback()
            raise
        return [schemas.SlabEntry.model_validate(row) for row in rows]

    def _prepare(self, fields: schemas.SlabEntryFields, customer_type: str,
                 violations: list, prefix: str = "") -> Optional[dict]:
        """Validate one entry and run its calculator. Appends to violations; returns columns or None."""
        found = []

        block_number = fields.block_number.strip() if isinstance(fields.block_number, str) else fields.block_number
        if not block_number:
            found.append(Violation("block_number", fields.block_number, "Block number is required"))
        elif len(block_number) > MAX_BLOCK_NUMBER_LENGTH:
            found.append(Violation("block_number", fields.block_number,
                                   f"Block number cannot exceed {MAX_BLOCK_NUMBER_LENGTH} characters"))

        length = check_dimension("length", fields.length, found)
        breadth = check_dimension("breadth", fields.breadth, found)

        if not fields.category:
            found.append(Violation("category", fields.category, "Category is required"))
        elif fields.category not in SLAB_CATEGORIES:
            found.append(Violation(
                "category", fields.category,
                f"Invalid category: {fields.category}. "
                f"Valid categories are: {', '.join(SLAB_CATEGORIES)}",
            ))

        if found:
            violations.extend(Violation(prefix + v.field, v.value, v.reason) for v in found)
            return None

        result = get_calculator(customer_type).calculate(length, breadth)
        return {
            "block_number": block_number,
            "length": length,
            "breadth": breadth,
            "category": fields.category,
            "final_length": result.final_length,
            "final_breadth": result.final_breadth,
            "area": result.area,
            "calculation_trail": result.as_trail(),
        }

    def _ensure_editable(self, sheet: models.MeasurementSheet) -> None:
        if (sheet.status == SheetStatus.COMPLETED.value
                and not settings.ALLOW_EDITS_ON_COMPLETED_SHEETS):
            raise SheetLocked(sheet.id)

    def _sheet_value(self, row: models.MeasurementSheet,
                     include_entries: bool = False) -> schemas.MeasurementSheet:
        value = schemas.MeasurementSheet.model_validate(row)
        if include_entries:
            value = value.model_copy(update={
                "entries": [schemas.SlabEntry.model_validate(e) for e in row.slab_entries],
            })
        return value
