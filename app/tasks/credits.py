import logging
from typing import Dict, Optional

from celery import Task
from prometheus_client import Counter

from app.core.celery_app import celery_app
from app.core.config import settings
from app.core.exceptions import StoreWriteError
from app.schemas.payment import WalletCredit
from app.services.wallet_store import WalletStore, create_firestore_client

logger = logging.getLogger(__name__)

WALLET_CREDITS = Counter("wallet_credits_total", "Wallet credit jobs processed", ["outcome"])
CREDITED_COINS = Counter("wallet_credited_coins_total", "Coins credited to wallets")

_wallet_store: Optional[WalletStore] = None


def get_wallet_store() -> WalletStore:
    """
    Get or create the worker's wallet store.

    Returns:
        WalletStore: Firestore-backed wallet store
    """
    global _wallet_store
    if _wallet_store is None:
        _wallet_store = WalletStore(
            create_firestore_client(settings),
            wallet_collection=settings.WALLET_COLLECTION,
            events_collection=settings.PROCESSED_EVENTS_COLLECTION,
        )
    return _wallet_store


class CreditTask(Task):
    """Base task class for wallet credit operations."""

    def on_retry(self, exc, task_id, args, kwargs, einfo):
        """Handle task retry."""
        WALLET_CREDITS.labels(outcome="retried").inc()
        logger.warning(f"Credit task {task_id} retrying after: {exc}")

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        """Handle task failure."""
        WALLET_CREDITS.labels(outcome="failed").inc()
        logger.error(f"Credit task {task_id} failed, wallet not credited: {exc} ({kwargs})", exc_info=einfo)


@celery_app.task(
    base=CreditTask,
    bind=True,
    autoretry_for=(StoreWriteError,),
    retry_backoff=True,
    retry_backoff_max=settings.CREDIT_RETRY_BACKOFF_MAX,
    retry_jitter=True,
    max_retries=settings.CREDIT_MAX_RETRIES,
)
def apply_wallet_credit(self, event_id: str, user_id: str, amount: int) -> Dict:
    """
    Apply a verified Stripe payment to a user's wallet.

    Args:
        event_id: Stripe event id, used to skip redelivered events
        user_id: Wallet to credit
        amount: Whole coins to add

    Returns:
        Dict describing the outcome
    """
    credit = WalletCredit(event_id=event_id, user_id=user_id, amount=amount)
    applied = get_wallet_store().apply_credit(credit)

    if applied:
        WALLET_CREDITS.labels(outcome="applied").inc()
        CREDITED_COINS.inc(amount)
    else:
        WALLET_CREDITS.labels(outcome="duplicate").inc()

    return {"event_id": event_id, "user_id": user_id, "amount": amount, "applied": applied}
