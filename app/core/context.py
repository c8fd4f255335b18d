from dataclasses import dataclass

from fastapi import Request

from app.core.config import Settings
from app.services.credit_queue import CreditQueue
from app.services.payment import PaymentService


@dataclass
class AppContext:
    """External collaborators shared by every request, built once at startup."""

    payments: PaymentService
    credits: CreditQueue


def build_context(settings: Settings) -> AppContext:
    return AppContext(
        payments=PaymentService(
            secret_key=settings.STRIPE_SECRET_KEY,
            webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
            currency=settings.CURRENCY,
            tolerance=settings.STRIPE_WEBHOOK_TOLERANCE,
        ),
        credits=CreditQueue(),
    )


def get_context(request: Request) -> AppContext:
    return request.app.state.context
