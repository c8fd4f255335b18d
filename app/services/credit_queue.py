import logging

from kombu.exceptions import OperationalError

from app.core.exceptions import CreditQueueException
from app.schemas.payment import WalletCredit
from app.tasks.credits import apply_wallet_credit

logger = logging.getLogger(__name__)


class CreditQueue:
    """Hands verified wallet credits to the Celery worker."""

    def enqueue(self, credit: WalletCredit) -> str:
        """Queue a credit and return the task id.

        The task id is derived from the Stripe event id so a redelivered event
        is traceable to its first attempt.
        """
        task_id = f"wallet-credit-{credit.event_id}"
        try:
            apply_wallet_credit.apply_async(kwargs=credit.model_dump(), task_id=task_id)
        except OperationalError as e:
            logger.error("Could not queue credit for event %s: %s", credit.event_id, e)
            raise CreditQueueException(details={"event_id": credit.event_id}) from e

        logger.info("Queued %s coins for %s (event %s)", credit.amount, credit.user_id, credit.event_id)
        return task_id
