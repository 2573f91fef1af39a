# storefront/models/user.py

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.sql import func
from storefront.utils.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    login = Column(String, unique=True, nullable=False)   # 로그인 ID
    name = Column(String, nullable=True)
    password = Column(String, nullable=True)              # passlib 해시
    is_admin = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
