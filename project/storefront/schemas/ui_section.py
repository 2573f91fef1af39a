# storefront/schemas/ui_section.py

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class UISectionBase(BaseModel):
    type: Optional[str] = None
    title: Optional[str] = None
    data: Optional[dict] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None
    translations: Optional[dict[str, dict]] = None

class UISectionCreate(UISectionBase):
    key: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    order: int = 0
    is_active: bool = True

class UISectionUpdate(UISectionBase):
    pass

class UISection(UISectionBase):
    id: int
    key: str
    type: str
    order: int
    is_active: bool
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }

class SectionOrderUpdate(BaseModel):
    section_order: list[str] = Field(..., alias="sectionOrder")

    model_config = {"populate_by_name": True}

class SectionVisibilityUpdate(BaseModel):
    visible: bool
