from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool
from app.core.context import AppContext, get_context
from app.schemas.payment import WebhookAck
from app.services.payment import PAYMENT_SUCCEEDED, extract_wallet_credit
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Webhooks"])


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    context: AppContext = Depends(get_context)
):
    """Handle Stripe webhooks"""

    # Signature verification needs the body exactly as Stripe sent it
    payload = await request.body()
    event = context.payments.construct_event(payload, request.headers.get("stripe-signature"))

    if event["type"] == PAYMENT_SUCCEEDED:
        credit = extract_wallet_credit(event)
        if credit:
            logger.info(f"[Webhook] Payment success: {credit.user_id} bought ${credit.amount}")
            # Publishing to the broker blocks, keep it off the event loop
            await run_in_threadpool(context.credits.enqueue, credit)
    else:
        logger.debug(f"[Webhook] Ignoring event {event['id']} of type {event['type']}")

    return WebhookAck(received=True)
