"""/v1/charges and /v1/settlements - buyer PIX charges and payment-network confirmations"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request

from chainflow_credit.api.dependencies import get_facility, get_request_id
from chainflow_credit.api.v1.schemas import (
    BuyerPaymentRequest,
    PixChargeResponse,
    SettlementWebhookRequest,
    SettlementWebhookResponse,
)
from chainflow_credit.domain.models import ChargeStatus
from chainflow_credit.services.facility import CreditFacility

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/charges", response_model=List[PixChargeResponse])
def list_charges(
    status: Optional[ChargeStatus] = Query(None, description="Filter by charge status"),
    buyer_tax_id: Optional[str] = Query(None, description="Filter by buyer CNPJ"),
    application_id: Optional[str] = Query(None, description="Filter by credit application"),
    facility: CreditFacility = Depends(get_facility),
):
    charges = facility.queries.list_charges(status=status, buyer_tax_id=buyer_tax_id, application_id=application_id)
    return [PixChargeResponse.model_validate(c) for c in charges]


@router.post("/charges/{charge_id}/payments", response_model=PixChargeResponse)
def confirm_buyer_payment(
    charge_id: str,
    request_body: BuyerPaymentRequest,
    facility: CreditFacility = Depends(get_facility),
):
    """
    Confirm the buyer paid the charge in full.

    Completes the application, distributes interest to the pool's investors
    and returns the principal to the pool. 422 when the amount does not match.
    """
    charge = facility.payments.confirm_buyer_payment(charge_id, request_body.paid_amount)
    return PixChargeResponse.model_validate(charge)


@router.post("/charges/{charge_id}/cancel", response_model=PixChargeResponse)
def cancel_buyer_charge(charge_id: str, facility: CreditFacility = Depends(get_facility)):
    return PixChargeResponse.model_validate(facility.payments.cancel_buyer_charge(charge_id))


@router.post("/charges/{charge_id}/resend", response_model=PixChargeResponse)
async def resend_buyer_charge(charge_id: str, facility: CreditFacility = Depends(get_facility)):
    """Refresh the settlement code and notify the buyer again"""
    charge = await facility.payments.resend_buyer_charge(charge_id)
    return PixChargeResponse.model_validate(charge)


@router.post("/settlements/webhook", response_model=SettlementWebhookResponse)
def settlement_webhook(
    request_body: SettlementWebhookRequest,
    request: Request,
    facility: CreditFacility = Depends(get_facility),
):
    """Route a settlement confirmation to the supplier payout or buyer charge it belongs to"""
    matched = facility.payments.process_settlement(request_body.settlement_code, request_body.paid_amount)
    logger.info(
        "Settlement processed",
        extra={
            "settlement_code": request_body.settlement_code,
            "matched": matched,
            "request_id": get_request_id(request),
        },
    )
    return SettlementWebhookResponse(settlement_code=request_body.settlement_code, matched=matched)
