"""/v1/pools - credit pools and investor deposits"""

from typing import List

from fastapi import APIRouter, Depends

from chainflow_credit.api.dependencies import get_facility
from chainflow_credit.api.v1.schemas import CreditPoolResponse, InvestmentRequest, InvestorPositionResponse
from chainflow_credit.services.facility import CreditFacility

router = APIRouter()


@router.get("/pools", response_model=List[CreditPoolResponse])
def list_pools(facility: CreditFacility = Depends(get_facility)):
    return [CreditPoolResponse.model_validate(p) for p in facility.queries.list_pools()]


@router.get("/pools/{pool_id}", response_model=CreditPoolResponse)
def get_pool(pool_id: str, facility: CreditFacility = Depends(get_facility)):
    return CreditPoolResponse.model_validate(facility.queries.get_pool(pool_id))


@router.post("/pools/{pool_id}/investments", response_model=InvestorPositionResponse, status_code=201)
def invest(pool_id: str, request_body: InvestmentRequest, facility: CreditFacility = Depends(get_facility)):
    """
    Supply capital to a pool.

    Returns:
        The new position with its expected return at the pool's APY over the pool term
    """
    position = facility.investments.invest(request_body.investor_id, pool_id, request_body.amount)
    return InvestorPositionResponse.model_validate(position)
