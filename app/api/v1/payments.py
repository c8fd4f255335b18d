from fastapi import APIRouter, Depends
from app.core.config import settings
from app.core.context import AppContext, get_context
from app.core.exceptions import ErrorCode, InvalidRequestException
from app.schemas.payment import PurchaseCoinsRequest, PurchaseCoinsResponse
from app.services.wallet_store import is_valid_document_id
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Payments"])


@router.post("/purchase-coins", response_model=PurchaseCoinsResponse)
async def purchase_coins(
    purchase: PurchaseCoinsRequest,
    context: AppContext = Depends(get_context)
):
    """Create a Stripe payment intent for buying coins"""

    if not purchase.amount or not purchase.user_id:
        raise InvalidRequestException("Amount and userId are required.")

    if purchase.amount < 0 or purchase.amount > settings.MAX_PURCHASE_AMOUNT:
        raise InvalidRequestException(
            f"Amount must be a whole number of dollars between 1 and {settings.MAX_PURCHASE_AMOUNT}.",
            error_code=ErrorCode.INVALID_AMOUNT,
            details={"amount": purchase.amount}
        )

    if not is_valid_document_id(purchase.user_id):
        raise InvalidRequestException(
            "userId must not contain '/', be '.' or '..', be wrapped in double underscores, or exceed 1500 bytes.",
            error_code=ErrorCode.INVALID_USER_ID,
            details={"userId": purchase.user_id}
        )

    client_secret = await context.payments.create_purchase_intent(purchase.amount, purchase.user_id)

    return PurchaseCoinsResponse(client_secret=client_secret)
