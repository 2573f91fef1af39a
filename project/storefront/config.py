# storefront/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str
    AUTH_SECRET_KEY: str
    AUTH_TOKEN_EXPIRE_MINUTES: int = 60
    ADMIN_LOGIN: str = "admin"
    ADMIN_PASSWORD: str = "admin"

    # 결제 게이트웨이
    TOSS_SECRET_KEY: str = ""
    TOSS_API_URL: str = "https://api.tosspayments.com/v1"
    STRIPE_SECRET_KEY: str = ""
    STRIPE_API_URL: str = "https://api.stripe.com/v1"
    STRIPE_CURRENCY: str = "krw"
    STRIPE_WEBHOOK_SECRET: str = ""

    GOOGLE_TRANSLATE_API_KEY: str = ""
    GOOGLE_TRANSLATE_URL: str = "https://translation.googleapis.com/language/translate/v2"
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # 캐시 / 다국어
    UI_CACHE_DIR: str = "public/cache/ui-sections"
    I18N_DIR: str = "public/i18n"
    UI_CACHE_TTL_SECONDS: int = 3600        # 스냅샷 유효 시간
    CACHE_REFRESH_INTERVAL: int = 300       # 0 이면 백그라운드 재생성 끔
    MAX_ACTIVE_LANGUAGES: int = 3
    DEFAULT_LANGUAGE: str = "ko"

    SSE_HEARTBEAT_SECONDS: float = 30.0
    LOW_STOCK_THRESHOLD: int = 5

    LOG_DIR: str = "log"
    LOG_PRINT: str = "1"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
