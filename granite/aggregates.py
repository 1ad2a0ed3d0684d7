"""
Sheet totals.

total_area is recomputed from scratch after every entry write, never
adjusted by a delta, and inside the same transaction as the write.
"""

from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import Session

from . import models

CENT = Decimal("0.01")


def sum_areas(areas) -> float:
    """Exact decimal sum of 2 dp areas."""
    total = sum((Decimal(repr(float(a))) for a in areas), Decimal("0"))
    return float(total.quantize(CENT, rounding=ROUND_HALF_UP))


def calculate_sheet_total(sheet: models.MeasurementSheet, db: Session) -> float:
    """
    Recompute sheet.total_area from the entries currently in the transaction.

    Flushes pending entry changes first. Does not commit.
    """
    db.flush()
    areas = db.query(models.SlabEntry.area).filter(
        models.SlabEntry.sheet_id == sheet.id
    ).all()
    sheet.total_area = sum_areas(a for (a,) in areas)
    db.flush()
    return sheet.total_area
