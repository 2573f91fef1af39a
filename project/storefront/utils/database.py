# storefront/utils/database.py

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.future import select
from sqlalchemy.pool import NullPool
from storefront.config import settings
from storefront.utils.security import hash_password

# ────────────── 모델 베이스 ──────────────
Base = declarative_base()

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# ────────────── 비동기 엔진 ──────────────
# SQLite 는 연결을 이벤트 루프 사이에서 공유하지 않도록 풀을 쓰지 않는다
engine_options = {"echo": False}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    engine_options["poolclass"] = NullPool

engine = create_async_engine(SQLALCHEMY_DATABASE_URL, **engine_options)

# ────────────── 비동기 세션 ──────────────
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# 지원 언어 카탈로그 (code, name, native_name, google_code, flag)
LANGUAGE_CATALOG = [
    ("ko", "Korean", "한국어", "ko", "🇰🇷"),
    ("en", "English", "English", "en", "🇺🇸"),
    ("ja", "Japanese", "日本語", "ja", "🇯🇵"),
    ("zh", "Chinese", "中文", "zh-CN", "🇨🇳"),
    ("fr", "French", "Français", "fr", "🇫🇷"),
    ("es", "Spanish", "Español", "es", "🇪🇸"),
    ("de", "German", "Deutsch", "de", "🇩🇪"),
    ("vi", "Vietnamese", "Tiếng Việt", "vi", "🇻🇳"),
]

DEFAULT_ACTIVE_LANGUAGES = ["ko", "en", "ja"]


# ────────────── DB 초기화 ──────────────
async def init_db():
    """
    테이블을 만들고 기본 데이터를 채운다.
        • 관리자 계정이 없으면 ADMIN_LOGIN / ADMIN_PASSWORD 로 생성
        • 언어 카탈로그가 비어 있으면 LANGUAGE_CATALOG 로 채움
        • 언어 설정 행이 없으면 ko, en, ja 활성 / 기본 언어 ko
    """
    # 모든 모델을 메타데이터에 등록
    from storefront.models.user import User
    from storefront.models.language import LanguageMetadata, LanguageSettings
    import storefront.models.product  # noqa: F401
    import storefront.models.cart  # noqa: F401
    import storefront.models.order  # noqa: F401
    import storefront.models.payment  # noqa: F401
    import storefront.models.ui_section  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(User.is_admin.is_(True)))
        if result.scalars().first() is None:
            session.add(User(
                name="Administrator",
                login=settings.ADMIN_LOGIN,
                password=hash_password(settings.ADMIN_PASSWORD),
                is_admin=True,
            ))

        result = await session.execute(select(LanguageMetadata))
        if not result.scalars().all():
            for code, name, native_name, google_code, flag in LANGUAGE_CATALOG:
                session.add(LanguageMetadata(
                    code=code,
                    name=name,
                    native_name=native_name,
                    google_code=google_code,
                    direction="ltr",
                    flag_emoji=flag,
                ))

        result = await session.execute(select(LanguageSettings))
        if result.scalars().first() is None:
            session.add(LanguageSettings(
                selected_languages=list(DEFAULT_ACTIVE_LANGUAGES),
                default_language=settings.DEFAULT_LANGUAGE,
            ))

        await session.commit()
