import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_123")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")

import pytest
from fastapi.testclient import TestClient

from app.core.context import AppContext, get_context
from app.services.payment import PaymentService
from main import app
from tests.fakes import FakeCreditQueue
from tests.stripe_helpers import WEBHOOK_SECRET

SECRET_KEY = "sk_test_123"


@pytest.fixture
def payment_service():
    return PaymentService(secret_key=SECRET_KEY, webhook_secret=WEBHOOK_SECRET)


@pytest.fixture
def credit_queue():
    return FakeCreditQueue()


@pytest.fixture
def context(payment_service, credit_queue):
    return AppContext(payments=payment_service, credits=credit_queue)


@pytest.fixture
def client(context):
    app.dependency_overrides[get_context] = lambda: context
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
