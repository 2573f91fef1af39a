# storefront/models/language.py

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, JSON, UniqueConstraint
from sqlalchemy.sql import func
from storefront.utils.database import Base

class LanguageMetadata(Base):
    """지원 가능한 전체 언어 카탈로그."""
    __tablename__ = "language_metadata"

    code = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    native_name = Column(String, nullable=True)
    google_code = Column(String, nullable=False)
    direction = Column(String, nullable=False, default="ltr")
    flag_emoji = Column(String, nullable=True)


class LanguageSettings(Base):
    """활성 언어 목록과 기본 언어. 한 행만 쓴다."""
    __tablename__ = "language_settings"

    id = Column(Integer, primary_key=True)
    selected_languages = Column(JSON, nullable=False, default=list)
    default_language = Column(String, nullable=False, default="ko")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class LanguagePackEntry(Base):
    __tablename__ = "language_packs"
    __table_args__ = (UniqueConstraint("language_code", "namespace", "key", name="uq_language_pack_key"),)

    id = Column(Integer, primary_key=True, index=True)
    language_code = Column(String, nullable=False, index=True)
    namespace = Column(String, nullable=False, default="common")
    key = Column(String, nullable=False)
    value = Column(Text, nullable=True)
    category = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)
    version = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
