from typing import Dict, List, Set

from app.core.exceptions import CreditQueueException
from app.schemas.payment import WalletCredit


class FakeCreditQueue:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.credits: List[WalletCredit] = []

    def enqueue(self, credit: WalletCredit) -> str:
        if self.fail:
            raise CreditQueueException(details={"event_id": credit.event_id})
        self.credits.append(credit)
        return f"wallet-credit-{credit.event_id}"


class FakeWalletStore:
    """In-memory stand-in for the Firestore wallet store."""

    def __init__(self):
        self.balances: Dict[str, int] = {}
        self.processed: Set[str] = set()
        self.calls = 0

    def apply_credit(self, credit: WalletCredit) -> bool:
        self.calls += 1
        if credit.event_id in self.processed:
            return False
        self.processed.add(credit.event_id)
        self.balances[credit.user_id] = self.balances.get(credit.user_id, 0) + credit.amount
        return True
