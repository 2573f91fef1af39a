# storefront/schemas/language.py

from pydantic import BaseModel, Field
from typing import Optional

class LanguageCodeRequest(BaseModel):
    language_code: str = Field(..., alias="languageCode")

    model_config = {"populate_by_name": True}

class LanguageReplaceRequest(BaseModel):
    from_language: str = Field(..., alias="fromLanguage")
    to_language: str = Field(..., alias="toLanguage")

    model_config = {"populate_by_name": True}

class Language(BaseModel):
    code: str
    name: str
    native_name: Optional[str] = None
    google_code: str
    direction: str = "ltr"
    flag_emoji: Optional[str] = None
    enabled: bool = False
    is_default: bool = False

class LanguagePackBase(BaseModel):
    value: Optional[str] = None
    category: Optional[str] = None
    is_active: Optional[bool] = None

class LanguagePackUpsert(LanguagePackBase):
    language_code: str = Field(..., alias="languageCode")
    namespace: str = "common"
    key: str = Field(..., min_length=1)

    model_config = {"populate_by_name": True}

class LanguagePackUpdate(LanguagePackBase):
    pass

class LanguagePack(BaseModel):
    id: int
    language_code: str
    namespace: str
    key: str
    value: Optional[str] = None
    category: Optional[str] = None
    is_active: bool = True
    version: int = 1

    model_config = {
        "from_attributes": True
    }

class TranslateRequest(BaseModel):
    text: str = Field(..., min_length=1)
    target: str
    source: str = "ko"

class AutoTranslateRequest(BaseModel):
    target_language: str = Field(..., alias="targetLanguage")
    source_language: Optional[str] = Field(None, alias="sourceLanguage")
    namespace: Optional[str] = None
    overwrite: bool = False

    model_config = {"populate_by_name": True}
