# storefront/models/product.py

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, JSON
from sqlalchemy.sql import func
from storefront.utils.database import Base

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True, index=True)
    price = Column(Integer, nullable=False, default=0)      # 원(KRW)
    stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True)
    image_url = Column(String, nullable=True)
    translations = Column(JSON, nullable=True)              # {"en": {"name": ..., "description": ...}}
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
