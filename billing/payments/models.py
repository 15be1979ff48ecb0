from pydantic import BaseModel
from typing import Optional, Dict, Any

class CreateCheckoutSessionRequest(BaseModel):
    priceId: str

class CheckoutSessionCreated(BaseModel):
    sessionId: str

class CustomerPortalRequest(BaseModel):
    customerId: str

class CustomerPortalSession(BaseModel):
    url: str

class SetupInfo(BaseModel):
    publishableKey: Optional[str] = None
    basicPrice: Optional[str] = None
    proPrice: Optional[str] = None

class ErrorDetail(BaseModel):
    message: str

class ErrorEnvelope(BaseModel):
    error: ErrorDetail

    @classmethod
    def from_message(cls, message: str) -> 'ErrorEnvelope':
        return cls(error=ErrorDetail(message=message))

class WebhookEvent(BaseModel):
    type: str
    data: Dict[str, Any] = {}
