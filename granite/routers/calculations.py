from fastapi import APIRouter
from typing import List

from .. import schemas
from ..calculators import engine
from ..calculators.registry import describe_strategy, list_calculators
from ..enums import CUSTOMER_TYPE_LABELS, CustomerType

router = APIRouter(prefix="/calculations", tags=["calculations"])


@router.post("/", response_model=schemas.CalculationResponse)
def calculate(request: schemas.CalculationRequest):
    """Preview the billable area of one slab without saving anything."""
    result = engine.calculate(request.length, request.breadth, request.customer_type)
    return schemas.CalculationResponse(
        customer_type=request.customer_type,
        description=describe_strategy(request.customer_type),
        **result.to_dict(),
    )


@router.get("/customer-types", response_model=List[schemas.CustomerTypeInfo])
def customer_types():
    return [
        schemas.CustomerTypeInfo(
            token=token,
            label=CUSTOMER_TYPE_LABELS[CustomerType(token)],
            description=describe_strategy(token),
        )
        for token in list_calculators()
    ]
