"""/v1/positions - investor positions"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from chainflow_credit.api.dependencies import get_facility
from chainflow_credit.api.v1.schemas import InvestorPositionResponse
from chainflow_credit.services.facility import CreditFacility

router = APIRouter()


@router.get("/positions", response_model=List[InvestorPositionResponse])
def list_positions(
    investor_id: Optional[str] = Query(None, description="Investor identifier"),
    facility: CreditFacility = Depends(get_facility),
):
    positions = facility.queries.list_positions(investor_id=investor_id)
    return [InvestorPositionResponse.model_validate(p) for p in positions]


@router.post("/positions/{position_id}/withdraw", response_model=InvestorPositionResponse)
def withdraw_position(position_id: str, facility: CreditFacility = Depends(get_facility)):
    """Withdraw principal; 409 when the pool's available capacity cannot cover it"""
    return InvestorPositionResponse.model_validate(facility.investments.withdraw_position(position_id))
