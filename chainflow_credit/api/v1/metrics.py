"""/v1/metrics - portfolio and payment dashboards"""

from fastapi import APIRouter, Depends

from chainflow_credit.api.dependencies import get_facility
from chainflow_credit.api.v1.schemas import PaymentStatsResponse, SystemMetricsResponse
from chainflow_credit.services.facility import CreditFacility

router = APIRouter()


@router.get("/metrics/system", response_model=SystemMetricsResponse)
def system_metrics(facility: CreditFacility = Depends(get_facility)):
    return SystemMetricsResponse.model_validate(facility.queries.system_metrics())


@router.get("/metrics/payments", response_model=PaymentStatsResponse)
def payment_stats(facility: CreditFacility = Depends(get_facility)):
    return PaymentStatsResponse.model_validate(facility.queries.payment_stats())
