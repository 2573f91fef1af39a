# storefront/schemas/order.py

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class OrderItemIn(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=1, le=999)

class OrderCreate(BaseModel):
    """
    주문 생성. items 를 생략하면 장바구니로 주문한다.
    """
    items: Optional[list[OrderItemIn]] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    shipping_address: Optional[str] = None
    memo: Optional[str] = None

class OrderStatusUpdate(BaseModel):
    status: str

class OrderItem(BaseModel):
    id: int
    product_id: Optional[int] = None
    product_name: str
    unit_price: int
    quantity: int

    model_config = {
        "from_attributes": True
    }

class Order(BaseModel):
    id: int
    order_number: str
    user_id: Optional[int] = None
    status: str
    payment_status: str
    total_amount: int
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    shipping_address: Optional[str] = None
    memo: Optional[str] = None
    created_at: Optional[datetime] = None
    items: list[OrderItem] = []

    model_config = {
        "from_attributes": True
    }
