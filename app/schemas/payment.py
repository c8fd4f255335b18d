from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, StrictInt


class PurchaseCoinsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: Optional[StrictInt] = None  # whole dollars; JSON true is not 1
    user_id: Optional[str] = Field(None, alias="userId")


class PurchaseCoinsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_secret: str = Field(..., alias="clientSecret")


class WebhookAck(BaseModel):
    received: bool = True


class WalletCredit(BaseModel):
    """A verified credit waiting to be applied to a wallet."""
    event_id: str
    user_id: str
    amount: int
