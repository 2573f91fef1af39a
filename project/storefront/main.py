# storefront/main.py

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
from dotenv import load_dotenv
from contextlib import asynccontextmanager, suppress

import asyncio
import os
import multiprocessing

# --- 환경 변수 로드 ---
load_dotenv()

from storefront.config import settings
from storefront.errors import AppError, app_error_handler
from storefront.utils.log import Log
from storefront.utils.database import init_db, AsyncSessionLocal
from storefront.middleware.db_middleware import DBSessionMiddleware
from storefront.services.events import EventBroadcaster
from storefront.services.language_manager import LanguageManager
from storefront.services.payment_gateways import build_gateways
from storefront.services.translate import GoogleTranslateClient
from storefront.services.ui_config_sync import UIConfigSyncService
from storefront.services.ui_sections_cache import UISectionsCacheService

# --- 기동 초기용 동기 로거 ---
boot_log = Log()
if os.environ.get("RUN_MAIN") == "true" or multiprocessing.current_process().name == "MainProcess":
    boot_log.log_info_sync(target="startup", message="main.py import 완료")


async def refresh_cache_periodically(ui_cache: UISectionsCacheService, interval: int, log: Log):
    """interval 초마다 캐시를 검사하고, 무효면 다시 만든다."""
    while True:
        await asyncio.sleep(interval)
        try:
            result = await ui_cache.refresh_if_stale()
            if result is not None:
                await log.log_info("ui_cache", "백그라운드 캐시 재생성", result)
        except Exception as e:
            await log.log_error("ui_cache", f"백그라운드 캐시 재생성 오류: {e}")


# ────────────── Lifespan ──────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    boot_log.log_info_sync(target="startup", message="lifespan: startup 시작")

    # DB 초기화
    await init_db()
    boot_log.log_info_sync(target="startup", message="DB 초기화 완료")

    app.state.log = Log()
    log = app.state.log
    await log.log_info(target="startup", message="Async Log 초기화")

    # 서비스 인스턴스는 여기서 한 번만 만든다
    app.state.events = EventBroadcaster()
    app.state.language_manager = LanguageManager(
        log=log,
        max_active=settings.MAX_ACTIVE_LANGUAGES,
        default_language=settings.DEFAULT_LANGUAGE,
    )
    app.state.ui_cache = UISectionsCacheService(
        settings.UI_CACHE_DIR,
        AsyncSessionLocal,
        app.state.language_manager,
        log=log,
        ttl_seconds=settings.UI_CACHE_TTL_SECONDS,
    )
    app.state.ui_sync = UIConfigSyncService(
        settings.I18N_DIR,
        app.state.language_manager,
        AsyncSessionLocal,
        log=log,
    )
    app.state.gateways = build_gateways(settings)
    app.state.translator = GoogleTranslateClient(
        settings.GOOGLE_TRANSLATE_API_KEY,
        settings.GOOGLE_TRANSLATE_URL,
        settings.HTTP_TIMEOUT_SECONDS,
        log=log,
    )
    await log.log_info("startup", "서비스 초기화", {"gateways": list(app.state.gateways)})

    refresh_task = None
    if settings.CACHE_REFRESH_INTERVAL > 0:
        refresh_task = asyncio.create_task(
            refresh_cache_periodically(app.state.ui_cache, settings.CACHE_REFRESH_INTERVAL, log)
        )

    yield

    # shutdown
    if refresh_task is not None:
        refresh_task.cancel()
        with suppress(asyncio.CancelledError):
            await refresh_task
    await log.log_info(target="shutdown", message="애플리케이션 종료")
    await log.shutdown()
    boot_log.log_info_sync(target="shutdown", message="Log 종료 완료")


# ────────────── FastAPI 앱 ──────────────
app = FastAPI(title="Storefront API", lifespan=lifespan)

app.add_exception_handler(AppError, app_error_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# request.state.db 용 DB 미들웨어
app.add_middleware(DBSessionMiddleware)

# ────────────── 라우터 ──────────────
from storefront.routes import (  # noqa: E402
    admin,
    auth,
    cache,
    cart,
    events,
    language,
    language_pack,
    order,
    payment,
    product,
    ui_config,
    ui_section,
)

app.include_router(admin.health_router, prefix="/api", tags=["health"])
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(product.router, prefix="/api/products", tags=["products"])
app.include_router(cart.router, prefix="/api/cart", tags=["cart"])
app.include_router(order.router, prefix="/api/orders", tags=["orders"])
app.include_router(payment.router, prefix="/api/payments", tags=["payments"])
app.include_router(ui_section.router, prefix="/api/ui-sections", tags=["ui-sections"])
app.include_router(cache.router, prefix="/api/cache", tags=["cache"])
app.include_router(language.public_router, prefix="/api/languages", tags=["languages"])
app.include_router(language_pack.router, prefix="/api/language-packs", tags=["language-packs"])
app.include_router(events.router, prefix="/api/events", tags=["events"])

app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
app.include_router(product.admin_router, prefix="/api/admin/products", tags=["admin"])
app.include_router(order.admin_router, prefix="/api/admin/orders", tags=["admin"])
app.include_router(ui_section.admin_router, prefix="/api/admin/ui-sections", tags=["admin"])
app.include_router(language.router, prefix="/api/admin/languages", tags=["admin"])
app.include_router(ui_config.router, prefix="/api/admin/ui-config", tags=["admin"])
app.include_router(language_pack.admin_router, prefix="/api/admin/language-packs", tags=["admin"])
app.include_router(language_pack.i18n_router, prefix="/api/admin/i18n", tags=["admin"])
app.include_router(events.admin_router, prefix="/api/admin/events", tags=["admin"])

# ────────────── uvicorn 실행 ──────────────
if __name__ == "__main__":
    boot_log.log_info_sync(target="startup", message="uvicorn.run 시작")
    uvicorn.run(
        "storefront.main:app",
        host="127.0.0.1",
        port=8000,
        log_level="info",
        reload=True
    )
