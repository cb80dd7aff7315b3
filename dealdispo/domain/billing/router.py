"""Billing router - Square payment endpoints"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...auth import require_session
from ...services.square_service import PaymentError, SquarePaymentService, get_square_payment_service
from .schemas import PaymentConfigResponse, ProcessPaymentRequest, QuoteRequest, QuoteResponse
from .service import BillingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Billing"], dependencies=[Depends(require_session)])


def get_billing_service(
    payments: SquarePaymentService = Depends(get_square_payment_service),
) -> BillingService:
    """Dependency injection for BillingService"""
    return BillingService(payments)


def payment_error_response(e: PaymentError) -> JSONResponse:
    return JSONResponse(status_code=e.status_code, content=e.body)


# ============================================================================
# PAYMENTS
# ============================================================================


@router.get("/payment-config", response_model=PaymentConfigResponse)
async def get_payment_config(service: BillingService = Depends(get_billing_service)):
    """Square Web Payments settings and the base price"""
    return service.payment_config()


@router.post("/quote", response_model=QuoteResponse)
async def get_quote(body: QuoteRequest, service: BillingService = Depends(get_billing_service)):
    """Price after an optional discount code"""
    return service.quote(body.amount, body.discountCode)


@router.post("/process-payment")
async def process_payment(
    body: ProcessPaymentRequest,
    service: BillingService = Depends(get_billing_service),
):
    """Charge a card token for the given amount"""
    try:
        return await service.process_payment(body.sourceId, body.amount)
    except PaymentError as e:
        return payment_error_response(e)
