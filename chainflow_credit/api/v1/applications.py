"""/v1/applications - credit application submission, lookup and the payment legs it starts"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from chainflow_credit.api.dependencies import get_facility
from chainflow_credit.api.v1.schemas import (
    CreditApplicationRequest,
    CreditApplicationResponse,
    PaymentOrderResponse,
    PixChargeResponse,
    SupplierPaymentRequest,
)
from chainflow_credit.domain.models import ApplicationStatus
from chainflow_credit.services.facility import CreditFacility

router = APIRouter()


@router.post("/applications", response_model=CreditApplicationResponse, status_code=201)
async def submit_application(
    request_body: CreditApplicationRequest,
    facility: CreditFacility = Depends(get_facility),
):
    """
    Score a trade-credit request and record the decision.

    Flow:
    1. Validate input (422 on malformed requests)
    2. Score the company after the analysis delay
    3. Reserve the approved amount in the pool matching the term (409 if the
       pool cannot cover the requested amount)

    Returns:
        The application, approved or rejected, with score, rate and risk tier
    """
    application = await facility.submit(request_body.to_domain())
    return CreditApplicationResponse.model_validate(application)


@router.get("/applications", response_model=List[CreditApplicationResponse])
def list_applications(
    status: Optional[ApplicationStatus] = Query(None, description="Filter by lifecycle status"),
    company_name: Optional[str] = Query(None, description="Case-insensitive company name fragment"),
    facility: CreditFacility = Depends(get_facility),
):
    applications = facility.queries.list_applications(status=status, company_name=company_name)
    return [CreditApplicationResponse.model_validate(a) for a in applications]


@router.get("/applications/{application_id}", response_model=CreditApplicationResponse)
def get_application(application_id: str, facility: CreditFacility = Depends(get_facility)):
    return CreditApplicationResponse.model_validate(facility.lifecycle.get(application_id))


@router.post(
    "/applications/{application_id}/supplier-payments",
    response_model=PaymentOrderResponse,
    status_code=201,
)
def initiate_supplier_payment(
    application_id: str,
    request_body: SupplierPaymentRequest,
    facility: CreditFacility = Depends(get_facility),
):
    """Pay the supplier out of the pool; settles asynchronously after the settlement delay"""
    order = facility.payments.initiate_supplier_payment(
        application_id, request_body.supplier_id, request_body.amount
    )
    return PaymentOrderResponse.model_validate(order)


@router.post("/applications/{application_id}/charges", response_model=PixChargeResponse, status_code=201)
def issue_buyer_charge(application_id: str, facility: CreditFacility = Depends(get_facility)):
    """Bill the buyer for principal plus interest, due at the end of the term"""
    charge = facility.payments.issue_buyer_charge(application_id)
    return PixChargeResponse.model_validate(charge)
