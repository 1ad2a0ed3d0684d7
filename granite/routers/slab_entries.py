from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from .. import schemas
from ..dependencies import get_measurement_service
from ..measurement_service import MeasurementService

router = APIRouter(prefix="/slab-entries", tags=["slab-entries"])


@router.post("/", response_model=schemas.SlabEntry, status_code=201)
def create_entry(entry: schemas.SlabEntryCreate,
                 service: MeasurementService = Depends(get_measurement_service)):
    return service.add_line_item(entry.sheet_id, entry)


@router.post("/batch", response_model=List[schemas.SlabEntry], status_code=201)
def create_entries(batch: schemas.SlabEntryBatchCreate,
                   service: MeasurementService = Depends(get_measurement_service)):
    return service.batch_add_line_items(batch.sheet_id, batch.entries)


@router.put("/batch", response_model=List[schemas.SlabEntry])
def update_entries(items: List[schemas.SlabEntryBatchUpdateItem],
                   service: MeasurementService = Depends(get_measurement_service)):
    return service.batch_update_line_items(items)


@router.get("/sheet/{sheet_id}", response_model=schemas.EntryPage)
def list_entries(sheet_id: str,
                 page: Optional[int] = Query(None, ge=1),
                 limit: Optional[int] = Query(None, ge=1, le=500),
                 service: MeasurementService = Depends(get_measurement_service)):
    return service.list_entries(sheet_id, page, limit)


@router.get("/{entry_id}", response_model=schemas.SlabEntry)
def get_entry(entry_id: str, service: MeasurementService = Depends(get_measurement_service)):
    return service.get_entry(entry_id)


@router.put("/{entry_id}", response_model=schemas.SlabEntry)
def update_entry(entry_id: str, update: schemas.SlabEntryFields,
                 service: MeasurementService = Depends(get_measurement_service)):
    return service.update_line_item(entry_id, update)


@router.delete("/{entry_id}")
def delete_entry(entry_id: str, renumber: bool = True,
                 service: MeasurementService = Depends(get_measurement_service)):
    service.delete_line_item(entry_id, renumber=renumber)
    return {"message": "Slab entry deleted"}
