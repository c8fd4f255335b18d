import asyncio
import time

import pytest

from app.schemas.payment import WalletCredit
from tests.fakes import FakeCreditQueue
from tests.stripe_helpers import make_event, sign_payload


def post_event(client, payload: bytes, signature=None):
    headers = {"Content-Type": "application/json"}
    if signature is not None:
        headers["stripe-signature"] = signature
    return client.post("/webhook", content=payload, headers=headers)


def test_webhook_missing_signature(client, credit_queue):
    response = post_event(client, make_event())

    assert response.status_code == 400
    assert response.json()["code"] == "WEBHOOK_6001"
    assert "Missing stripe-signature header" in response.json()["message"]
    assert credit_queue.credits == []


def test_webhook_invalid_signature(client, credit_queue):
    payload = make_event()

    response = post_event(client, payload, sign_payload(payload, secret="whsec_wrong"))

    assert response.status_code == 400
    assert response.json()["message"].startswith("Webhook Error:")
    assert credit_queue.credits == []


def test_webhook_rejects_tampered_body(client, credit_queue):
    signature = sign_payload(make_event())
    tampered = make_event(metadata={"userId": "u1", "amount": "10000"})

    response = post_event(client, tampered, signature)

    assert response.status_code == 400
    assert credit_queue.credits == []


def test_webhook_rejects_stale_timestamp(client, credit_queue):
    payload = make_event()

    response = post_event(client, payload, sign_payload(payload, timestamp=int(time.time()) - 3600))

    assert response.status_code == 400
    assert credit_queue.credits == []


def test_webhook_payment_succeeded_queues_credit(client, credit_queue):
    payload = make_event()

    response = post_event(client, payload, sign_payload(payload))

    assert response.status_code == 200
    assert response.json() == {"received": True}
    assert credit_queue.credits == [WalletCredit(event_id="evt_test_1", user_id="u1", amount=10)]


def test_webhook_accepts_numeric_metadata_amount(client, credit_queue):
    payload = make_event(metadata={"userId": "u1", "amount": 25})

    response = post_event(client, payload, sign_payload(payload))

    assert response.status_code == 200
    assert credit_queue.credits[0].amount == 25


def test_webhook_falls_back_to_charged_amount(client, credit_queue):
    payload = make_event(metadata={"userId": "u2"}, amount=1500)

    response = post_event(client, payload, sign_payload(payload))

    assert response.status_code == 200
    assert credit_queue.credits == [WalletCredit(event_id="evt_test_1", user_id="u2", amount=15)]


@pytest.mark.parametrize("metadata", [
    {},
    {"amount": "10"},
    {"userId": "u1", "amount": "-3"},
    {"userId": "u1", "amount": "lots"},
])
def test_webhook_acknowledges_unusable_metadata(client, credit_queue, metadata):
    payload = make_event(metadata=metadata, amount=1050)

    response = post_event(client, payload, sign_payload(payload))

    assert response.status_code == 200
    assert response.json() == {"received": True}
    assert credit_queue.credits == []


@pytest.mark.parametrize("event_type", ["payment_intent.created", "payment_intent.payment_failed", "charge.refunded"])
def test_webhook_ignores_other_events(client, credit_queue, event_type):
    payload = make_event(event_type=event_type)

    response = post_event(client, payload, sign_payload(payload))

    assert response.status_code == 200
    assert response.json() == {"received": True}
    assert credit_queue.credits == []


def test_webhook_reports_unqueued_credit(client, context):
    context.credits = FakeCreditQueue(fail=True)
    payload = make_event()

    response = post_event(client, payload, sign_payload(payload))

    assert response.status_code == 500
    assert response.json()["code"] == "SYS_9002"
    assert response.json()["details"] == {"event_id": "evt_test_1"}


@pytest.mark.parametrize("user_id", ["team/u1", "..", "__admin__"])
def test_webhook_acknowledges_user_id_that_cannot_name_a_wallet(client, credit_queue, user_id):
    payload = make_event(metadata={"userId": user_id, "amount": "10"})

    response = post_event(client, payload, sign_payload(payload))

    assert response.status_code == 200
    assert credit_queue.credits == []


def test_webhook_publishes_credit_off_the_event_loop(client, context):
    class LoopCheckingQueue(FakeCreditQueue):
        def enqueue(self, credit):
            try:
                asyncio.get_running_loop()
                self.on_loop = True
            except RuntimeError:
                self.on_loop = False
            return super().enqueue(credit)

    context.credits = LoopCheckingQueue()
    payload = make_event()

    response = post_event(client, payload, sign_payload(payload))

    assert response.status_code == 200
    assert context.credits.on_loop is False
    assert len(context.credits.credits) == 1
