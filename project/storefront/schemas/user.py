# storefront/schemas/user.py

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class UserBase(BaseModel):
    """
    사용자 입력/수정용 기본 스키마.
    """
    name: Optional[str] = None
    login: Optional[str] = None
    password: Optional[str] = None

class UserCreate(UserBase):
    """
    회원 가입. login, password 필수.
    """
    login: str = Field(..., min_length=3, max_length=64)
    password: str = Field(..., min_length=4)

class UserUpdate(UserBase):
    is_admin: Optional[bool] = None

class UserResponse(BaseModel):
    id: int
    name: Optional[str] = None
    login: str
    is_admin: bool = False
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
