from typing import Optional

from pydantic import BaseModel, Field


class CheckoutOrder(BaseModel):
    """Parameters the client hands to the gateway's checkout widget."""
    session_id: int
    amount: int = Field(..., description="Amount in the currency's smallest unit")
    currency: str
    description: str
    # Set only when gateway keys are configured.
    order_id: Optional[str] = None
    key_id: Optional[str] = None


class PaymentCallback(BaseModel):
    session_id: int
    transaction_id: str = Field(..., min_length=1)
