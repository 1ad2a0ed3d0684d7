from fastapi import APIRouter, Depends
from typing import List

from .. import schemas
from ..dependencies import get_measurement_service
from ..measurement_service import MeasurementService

router = APIRouter(prefix="/customers", tags=["customers"])


@router.post("/", response_model=schemas.Customer, status_code=201)
def create_customer(customer: schemas.CustomerCreate,
                    service: MeasurementService = Depends(get_measurement_service)):
    return service.create_customer(customer)


@router.get("/", response_model=List[schemas.Customer])
def list_customers(skip: int = 0, limit: int = 100,
                   service: MeasurementService = Depends(get_measurement_service)):
    return service.list_customers(skip, limit)


@router.get("/{customer_id}", response_model=schemas.Customer)
def get_customer(customer_id: str, service: MeasurementService = Depends(get_measurement_service)):
    return service.get_customer(customer_id)


@router.patch("/{customer_id}", response_model=schemas.Customer)
def update_customer(customer_id: str, update: schemas.CustomerUpdate,
                    service: MeasurementService = Depends(get_measurement_service)):
    return service.update_customer(customer_id, update)
