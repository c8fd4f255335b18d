from enum import Enum
from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class ErrorCode(str, Enum):
    """Standardized error codes for the API."""
    # Validation errors (2xxx)
    INVALID_INPUT = "VAL_2001"
    INVALID_AMOUNT = "VAL_2002"
    INVALID_USER_ID = "VAL_2003"

    # External service errors (5xxx)
    PAYMENT_ERROR = "EXT_5003"

    # Webhook errors (6xxx)
    INVALID_SIGNATURE = "WEBHOOK_6001"

    # System errors (9xxx)
    INTERNAL_ERROR = "SYS_9001"
    SERVICE_UNAVAILABLE = "SYS_9002"


class APIException(HTTPException):
    """Base exception class for API errors with standardized error codes."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.details = details
        super().__init__(status_code=status_code, detail=message)


class InvalidRequestException(APIException):
    """Raised when a purchase request is missing or carries malformed fields."""
    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INVALID_INPUT,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class ProcessorException(APIException):
    """Raised when Stripe rejects or fails a payment intent call.

    The processor's own message is passed through to the caller.
    """
    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            error_code=ErrorCode.PAYMENT_ERROR,
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details
        )


class InvalidSignatureException(APIException):
    """Raised when a webhook payload fails Stripe signature verification."""
    def __init__(self, message: str):
        super().__init__(
            error_code=ErrorCode.INVALID_SIGNATURE,
            message=f"Webhook Error: {message}",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class CreditQueueException(APIException):
    """Raised when a verified credit could not be handed to the credit queue."""
    def __init__(
        self,
        message: str = "Wallet credit could not be queued",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            error_code=ErrorCode.SERVICE_UNAVAILABLE,
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details
        )


class StoreWriteError(Exception):
    """A wallet write to Firestore failed.

    Raised inside the credit worker only; it never reaches an HTTP client.

    Attributes:
        user_id: Wallet the credit was meant for
        event_id: Stripe event that produced the credit
    """

    user_id: str
    event_id: str

    def __init__(self, message: str, user_id: str, event_id: str):
        """Initialize the store write error.

        Args:
            message: Description of the underlying failure
            user_id: Wallet the credit was meant for
            event_id: Stripe event that produced the credit
        """
        self.user_id = user_id
        self.event_id = event_id
        super().__init__(message)
