# storefront/schemas/product.py

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class ProductBase(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    image_url: Optional[str] = None
    translations: Optional[dict] = None

class ProductCreate(ProductBase):
    slug: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    price: int = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    is_active: bool = True

class ProductUpdate(ProductBase):
    slug: Optional[str] = None

class StockAdjust(BaseModel):
    delta: int = Field(..., description="재고 증감량 (음수면 차감)")
    reason: Optional[str] = None

class Product(ProductBase):
    id: int
    slug: str
    name: str
    price: int
    stock: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }

class ProductList(BaseModel):
    items: list[Product]
    total: int
    skip: int
    limit: int
