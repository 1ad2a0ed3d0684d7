from fastapi import Depends
from sqlalchemy.orm import Session

from .cache import CacheCoordinator, get_cache
from .database import get_db
from .measurement_service import MeasurementService


def get_measurement_service(db: Session = Depends(get_db),
                            cache: CacheCoordinator = Depends(get_cache)) -> MeasurementService:
    return MeasurementService(db, cache)
