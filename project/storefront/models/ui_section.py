# storefront/models/ui_section.py

from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON
from sqlalchemy.sql import func
from storefront.utils.database import Base

class UISection(Base):
    __tablename__ = "ui_sections"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String, unique=True, nullable=False, index=True)   # hero, categories, ...
    type = Column(String, nullable=False)
    title = Column(String, nullable=True)
    data = Column(JSON, nullable=True)
    order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True)
    translations = Column(JSON, nullable=True)   # {"en": {"title": ...}}
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
