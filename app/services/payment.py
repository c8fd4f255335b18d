import logging
from typing import Any, Optional

import stripe

from app.core.exceptions import InvalidSignatureException, ProcessorException
from app.schemas.payment import WalletCredit
from app.services.wallet_store import is_valid_document_id

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"


class PaymentService:
    def __init__(self, secret_key: str, webhook_secret: str, currency: str = "usd", tolerance: int = 300):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.currency = currency
        self.tolerance = tolerance

    async def create_purchase_intent(self, amount: int, user_id: str) -> str:
        """Create a Stripe payment intent for `amount` dollars and return its client secret"""

        try:
            intent = await stripe.PaymentIntent.create_async(
                amount=amount * 100,  # cents
                currency=self.currency,
                metadata={"userId": user_id, "amount": str(amount)},
                api_key=self.secret_key,
            )
        except stripe.StripeError as e:
            message = e.user_message or str(e)
            logger.error("Stripe error: %s", message)
            raise ProcessorException(message) from e

        logger.info("[Stripe] Intent created: $%s for %s", amount, user_id)
        return intent.client_secret

    def construct_event(self, payload: bytes, signature: Optional[str]) -> stripe.Event:
        """Verify the webhook signature and parse the event"""

        if not signature:
            logger.warning("Webhook received without stripe-signature header")
            raise InvalidSignatureException("Missing stripe-signature header")

        try:
            return stripe.Webhook.construct_event(
                payload,
                signature,
                self.webhook_secret,
                tolerance=self.tolerance,
            )
        except stripe.SignatureVerificationError as e:
            logger.warning("Webhook signature verification failed: %s", e)
            raise InvalidSignatureException(str(e)) from e
        except ValueError as e:
            logger.warning("Webhook payload could not be parsed: %s", e)
            raise InvalidSignatureException(str(e)) from e


def extract_wallet_credit(event: stripe.Event) -> Optional[WalletCredit]:
    """
    Pull the wallet credit out of a verified `payment_intent.succeeded` event.

    The intent metadata is the source of truth. When it lacks an amount the
    intent's charged cents are used instead. Returns None when the event
    cannot be turned into a credit.
    """
    intent = event["data"]["object"]
    metadata = _lookup(intent, "metadata") or {}

    user_id = _lookup(metadata, "userId")
    if not user_id:
        logger.error("Event %s has no userId in payment intent metadata", event["id"])
        return None
    if not is_valid_document_id(str(user_id)):
        logger.error("Event %s carries userId %r that cannot name a wallet", event["id"], user_id)
        return None

    amount = _normalize_amount(_lookup(metadata, "amount"))
    if amount is None:
        cents = _lookup(intent, "amount_received") or _lookup(intent, "amount")
        if isinstance(cents, int) and cents % 100 == 0:
            amount = cents // 100

    if amount is None or amount <= 0:
        logger.error("Event %s carries no usable amount for user %s", event["id"], user_id)
        return None

    return WalletCredit(event_id=event["id"], user_id=str(user_id), amount=amount)


def _lookup(obj: Any, key: str) -> Any:
    try:
        return obj[key]
    except (KeyError, TypeError):
        return None


def _normalize_amount(raw: Any) -> Optional[int]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        return None
