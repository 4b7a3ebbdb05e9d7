"""GET /v1/payments - supplier payment orders"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from chainflow_credit.api.dependencies import get_facility
from chainflow_credit.api.v1.schemas import PaymentOrderResponse
from chainflow_credit.domain.models import PaymentStatus
from chainflow_credit.services.facility import CreditFacility

router = APIRouter()


@router.get("/payments", response_model=List[PaymentOrderResponse])
def list_payment_orders(
    application_id: Optional[str] = Query(None, description="Filter by credit application"),
    status: Optional[PaymentStatus] = Query(None, description="Filter by order status"),
    facility: CreditFacility = Depends(get_facility),
):
    orders = facility.queries.list_payment_orders(application_id=application_id, status=status)
    return [PaymentOrderResponse.model_validate(o) for o in orders]
