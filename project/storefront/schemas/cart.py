# storefront/schemas/cart.py

from pydantic import BaseModel, Field

class CartItemAdd(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1, le=999)

class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1, le=999)

class CartLine(BaseModel):
    product_id: int
    name: str
    unit_price: int
    quantity: int
    line_total: int
    in_stock: bool

class Cart(BaseModel):
    items: list[CartLine]
    total_amount: int
    total_quantity: int
