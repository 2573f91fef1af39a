# storefront/schemas/payment.py

from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime

Provider = Literal["toss", "stripe"]

class PaymentCreate(BaseModel):
    order_id: int = Field(..., alias="orderId")
    provider: Provider = "toss"
    success_url: Optional[str] = Field(None, alias="successUrl")
    fail_url: Optional[str] = Field(None, alias="failUrl")

    model_config = {"populate_by_name": True}

class PaymentConfirm(BaseModel):
    """
    결제 승인. amount 는 클라이언트가 보낸 금액으로, 주문 금액과 다르면 거절한다.
    """
    order_id: int = Field(..., alias="orderId")
    payment_key: str = Field(..., alias="paymentKey", min_length=1)
    amount: int = Field(..., ge=0)
    provider: Provider = "toss"

    model_config = {"populate_by_name": True}

class PaymentCancel(BaseModel):
    reason: str = Field("고객 요청", max_length=200)
    amount: Optional[int] = Field(None, gt=0, description="부분 환불 금액, 생략 시 잔액 전체")

class Refund(BaseModel):
    id: int
    amount: int
    reason: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }

class Payment(BaseModel):
    id: int
    order_id: int
    provider: str
    provider_payment_id: Optional[str] = None
    amount: int
    status: str
    refunded_amount: int = 0
    refunds: list[Refund] = []
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
