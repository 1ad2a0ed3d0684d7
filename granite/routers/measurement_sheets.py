from datetime import datetime
from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from .. import schemas
from ..dependencies import get_measurement_service
from ..measurement_service import MeasurementService

router = APIRouter(prefix="/measurement-sheets", tags=["measurement-sheets"])


@router.post("/", response_model=schemas.MeasurementSheet, status_code=201)
def create_sheet(sheet: schemas.MeasurementSheetCreate,
                 service: MeasurementService = Depends(get_measurement_service)):
    return service.create_sheet(sheet.customer_id, sheet.customer_type)


@router.get("/", response_model=schemas.SheetPage)
def search_sheets(
    search: Optional[str] = None,
    customer_type: Optional[str] = None,
    status: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    block_number: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    sort_by: str = "created_at",
    sort_order: str = "DESC",
    service: MeasurementService = Depends(get_measurement_service),
):
    params = schemas.SheetSearchParams(
        search=search, customer_type=customer_type, status=status,
        start_date=start_date, end_date=end_date, block_number=block_number,
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
    )
    return service.search_sheets(params)


# Fixed paths before /{sheet_id}
@router.get("/recent", response_model=List[schemas.MeasurementSheet])
def recent_sheets(limit: int = Query(10, ge=1, le=100),
                  service: MeasurementService = Depends(get_measurement_service)):
    return service.recent_sheets(limit)


@router.get("/statistics", response_model=schemas.SheetStatistics)
def statistics(service: MeasurementService = Depends(get_measurement_service)):
    return service.statistics()


@router.get("/{sheet_id}", response_model=schemas.MeasurementSheet)
def get_sheet(sheet_id: str, include_entries: bool = False,
              service: MeasurementService = Depends(get_measurement_service)):
    return service.get_sheet(sheet_id, include_entries)


@router.patch("/{sheet_id}", response_model=schemas.MeasurementSheet)
def update_sheet(sheet_id: str, update: schemas.MeasurementSheetUpdate,
                 service: MeasurementService = Depends(get_measurement_service)):
    return service.update_sheet(sheet_id, update)


@router.post("/{sheet_id}/complete", response_model=schemas.MeasurementSheet)
def complete_sheet(sheet_id: str, service: MeasurementService = Depends(get_measurement_service)):
    return service.complete_sheet(sheet_id)


@router.delete("/{sheet_id}")
def delete_sheet(sheet_id: str, service: MeasurementService = Depends(get_measurement_service)):
    service.delete_sheet(sheet_id)
    return {"message": "Measurement sheet deleted"}
