from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App settings
    ENVIRONMENT: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 5001

    # Stripe
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_WEBHOOK_TOLERANCE: int = 300  # seconds
    CURRENCY: str = "usd"
    MAX_PURCHASE_AMOUNT: int = 999_999  # dollars, Stripe caps a charge at $999,999.99

    # Firestore
    FIREBASE_SERVICE_ACCOUNT: Optional[str] = None  # path to a service-account JSON file
    FIREBASE_SERVICE_ACCOUNT_JSON: Optional[str] = None  # the same JSON, inline
    FIRESTORE_PROJECT_ID: Optional[str] = None
    WALLET_COLLECTION: str = "wallets"
    PROCESSED_EVENTS_COLLECTION: str = "processed_events"

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Celery settings
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"
    CELERY_TASK_ALWAYS_EAGER: bool = False
    CELERY_TASK_TIME_LIMIT: int = 60
    CELERY_WORKER_PREFETCH_MULTIPLIER: int = 1
    CELERY_TASK_ACKS_LATE: bool = True
    CELERY_TASK_REJECT_ON_WORKER_LOST: bool = True

    # Wallet credits
    CREDIT_QUEUE: str = "wallet_credits"
    CREDIT_MAX_RETRIES: int = 8
    CREDIT_RETRY_BACKOFF_MAX: int = 600  # seconds

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
