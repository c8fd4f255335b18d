import json
import logging

from google.api_core.exceptions import GoogleAPICallError, RetryError
from google.cloud import firestore
from google.cloud.firestore import Client

from app.core.config import Settings
from app.core.exceptions import StoreWriteError
from app.schemas.payment import WalletCredit

logger = logging.getLogger(__name__)

MAX_DOCUMENT_ID_BYTES = 1500


def is_valid_document_id(document_id: str) -> bool:
    """Whether `document_id` can name a single Firestore document."""
    if not document_id or "/" in document_id or document_id in (".", ".."):
        return False
    if document_id.startswith("__") and document_id.endswith("__") and len(document_id) >= 4:
        return False
    return len(document_id.encode("utf-8")) <= MAX_DOCUMENT_ID_BYTES


def create_firestore_client(settings: Settings) -> Client:
    """
    Build a Firestore client from the configured service account.

    The credential may be a path to a JSON key file or the JSON itself held
    in an environment variable. With neither set, application-default
    credentials are used.

    Returns:
        Client: Firestore client instance
    """
    kwargs = {}
    if settings.FIRESTORE_PROJECT_ID:
        kwargs["project"] = settings.FIRESTORE_PROJECT_ID

    if settings.FIREBASE_SERVICE_ACCOUNT_JSON:
        info = json.loads(settings.FIREBASE_SERVICE_ACCOUNT_JSON)
        return firestore.Client.from_service_account_info(info, **kwargs)
    if settings.FIREBASE_SERVICE_ACCOUNT:
        return firestore.Client.from_service_account_json(settings.FIREBASE_SERVICE_ACCOUNT, **kwargs)
    return firestore.Client(**kwargs)


class WalletStore:
    """Wallet balances held in Firestore, one document per user."""

    def __init__(
        self,
        client: Client,
        wallet_collection: str = "wallets",
        events_collection: str = "processed_events",
    ):
        self.client = client
        self.wallet_collection = wallet_collection
        self.events_collection = events_collection

    def apply_credit(self, credit: WalletCredit) -> bool:
        """
        Increment a wallet by a verified credit, at most once per Stripe event.

        The wallet increment and the processed-event marker are written in
        one transaction, so a redelivered event finds its marker and leaves
        the balance alone.

        Args:
            credit: Credit extracted from a verified webhook event

        Returns:
            bool: True if the wallet was credited, False if the event was
            already applied

        Raises:
            StoreWriteError: If Firestore rejected the write
        """
        # ValueError covers bad document paths and a transaction that ran out of attempts
        try:
            wallet_ref = self.client.collection(self.wallet_collection).document(credit.user_id)
            event_ref = self.client.collection(self.events_collection).document(credit.event_id)
            applied = _credit_once(self.client.transaction(), wallet_ref, event_ref, credit)
        except (GoogleAPICallError, RetryError, ValueError) as e:
            logger.exception(f"Failed to credit wallet {credit.user_id} for event {credit.event_id}")
            raise StoreWriteError(str(e), user_id=credit.user_id, event_id=credit.event_id) from e

        if applied:
            logger.info(f"Credited {credit.amount} coins to wallet {credit.user_id} (event {credit.event_id})")
        else:
            logger.info(f"Event {credit.event_id} already applied, wallet {credit.user_id} unchanged")
        return applied


@firestore.transactional
def _credit_once(transaction, wallet_ref, event_ref, credit: WalletCredit) -> bool:
    snapshot = event_ref.get(transaction=transaction)
    if snapshot.exists:
        return False

    transaction.set(
        wallet_ref,
        {"balance": firestore.Increment(credit.amount), "lastUpdated": firestore.SERVER_TIMESTAMP},
        merge=True,
    )
    transaction.create(
        event_ref,
        {"userId": credit.user_id, "amount": credit.amount, "processedAt": firestore.SERVER_TIMESTAMP},
    )
    return True
