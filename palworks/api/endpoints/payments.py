import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel, Field

from palworks.api.services import Services, get_services
from palworks.checkout.webhooks import WebhookVerificationError
from palworks.integrations.policy.response_wrappers import IntegrationResponseError

logger = logging.getLogger(__name__)

api = APIRouter()
payments_api = api


class CreatePaymentIntentRequest(BaseModel):
    contract_id: str = Field(..., min_length=1)


class SimulatePaymentRequest(BaseModel):
    contract_id: str = Field(..., min_length=1)
    payment_method: str = Field(default="card", description="card, paypal, sofort, ...")


@api.post("/create-payment-intent", tags=["Payments"])
async def create_payment_intent(body: CreatePaymentIntentRequest, services: Services = Depends(get_services)):
    return await services.checkout.create_payment_intent(body.contract_id)


@api.post("/simulate", tags=["Payments"])
async def simulate_payment(body: SimulatePaymentRequest, services: Services = Depends(get_services)):
    """Demo checkout: no processor involved, outcome drawn from the configured success rate."""
    return await services.checkout.simulate_payment(body.contract_id, method=body.payment_method)


@api.post("/webhook", tags=["Payments"])
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(default=None, alias="Stripe-Signature"),
    services: Services = Depends(get_services),
):
    payload = await request.body()
    try:
        event = services.webhooks.verify(payload, stripe_signature)
    except WebhookVerificationError as e:
        logger.warning("[StripeWebhook] Rejected webhook: %s", e)
        raise HTTPException(status_code=400, detail=str(e)) from e

    try:
        return services.webhooks.handle_event(event)
    except IntegrationResponseError as e:
        raise HTTPException(
            status_code=400,
            detail={"message": str(e), "stage": "webhook_event_validation", "payload": e.payload},
        ) from e
