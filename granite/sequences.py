"""
Sheet numbers and per-sheet serial numbers.

Sheet numbers (MS-0001, MS-0002, ...) come from one counter shared by every
process. On PostgreSQL that is the measurement_sheet_seq sequence; elsewhere
it is a row in sheet_number_counters bumped in its own short transaction.
Either way the value is consumed even if the sheet insert later rolls back:
gaps are possible, reuse is not.

Serial numbers are max(serial)+1 within one sheet. Allocation first takes a
write lock on the sheet row (an UPDATE of that row), so two writers on the
same sheet queue up while writers on different sheets do not touch each
other's rows. On SQLite the lock is the database-wide write lock.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models
from .config import settings
from .errors import SheetNotFound

logger = logging.getLogger(__name__)

SHEET_COUNTER = "measurement_sheet"


class SequenceAllocator:

    def __init__(self, prefix: str = None, width: int = None,
                 counter_name: str = SHEET_COUNTER):
        self.prefix = settings.SHEET_NUMBER_PREFIX if prefix is None else prefix
        self.width = settings.SHEET_NUMBER_WIDTH if width is None else width
        self.counter_name = counter_name

    # --- Sheet numbers ---

    def format_sheet_number(self, value: int) -> str:
        return f"{self.prefix}{value:0{self.width}d}"

    def next_sheet_value(self, db: Session) -> int:
        bind = db.get_bind()
        if bind.dialect.supports_sequences:
            return db.scalar(select(models.MEASUREMENT_SHEET_SEQ.next_value()))
        return self._bump_counter(bind)

    def allocate_sheet_number(self, db: Session) -> str:
        return self.format_sheet_number(self.next_sheet_value(db))

    def _bump_counter(self, bind) -> int:
        # Separate session: the increment commits on its own, like nextval()
        with Session(bind=bind) as counter_db:
            for _ in range(2):
                bumped = counter_db.query(models.SheetNumberCounter).filter(
                    models.SheetNumberCounter.name == self.counter_name
                ).update(
                    {models.SheetNumberCounter.value: models.SheetNumberCounter.value + 1},
                    synchronize_session=False,
                )
                if bumped:
                    value = counter_db.query(models.SheetNumberCounter.value).filter(
                        models.SheetNumberCounter.name == self.counter_name
                    ).scalar()
                    counter_db.commit()
                    return value

                # First sheet ever, so create the counter row
                try:
                    counter_db.add(models.SheetNumberCounter(name=self.counter_name, value=1))
                    counter_db.commit()
                    return 1
                except IntegrityError:
                    # Another writer created it first; go round and bump it
                    counter_db.rollback()
        raise RuntimeError(f"Could not allocate from counter {self.counter_name}")

    # --- Serial numbers ---

    def lock_sheet(self, db: Session, sheet_id: str) -> None:
        """
        Take the per-sheet write lock for the rest of db's transaction.

        On PostgreSQL this is a row lock, so writers on other sheets are not
        blocked. SQLite has a single database-wide write lock, so there every
        writer waits its turn regardless of which sheet it touches.

        Raises SheetNotFound (nothing written) if the sheet does not exist.
        """
        touched = db.query(models.MeasurementSheet).filter(
            models.MeasurementSheet.id == sheet_id
        ).update(
            {models.MeasurementSheet.updated_at: models.utcnow()},
            synchronize_session=False,
        )
        if not touched:
            raise SheetNotFound(sheet_id)

    def current_max_serial(self, db: Session, sheet_id: str) -> int:
        return db.query(
            func.coalesce(func.max(models.SlabEntry.serial_number), 0)
        ).filter(models.SlabEntry.sheet_id == sheet_id).scalar()

    def allocate_serials(self, db: Session, sheet_id: str, count: int = 1) -> list:
        """
        Lock the sheet and return the next `count` consecutive serials.

        The caller must insert the rows and commit in the same transaction.
        """
        if count < 1:
            return []
        self.lock_sheet(db, sheet_id)
        start = self.current_max_serial(db, sheet_id) + 1
        serials = list(range(start, start + count))
        logger.debug("Allocated serials %s-%s on sheet %s", serials[0], serials[-1], sheet_id)
        return serials


def is_serial_conflict(exc: IntegrityError) -> bool:
    """True if exc is the UNIQUE(sheet_id, serial_number) violation."""
    text = str(getattr(exc, "orig", exc))
    return ("uq_slab_entries_sheet_serial" in text
            or "slab_entries.serial_number" in text)
