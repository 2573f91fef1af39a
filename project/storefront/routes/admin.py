# storefront/routes/admin.py

from fastapi import APIRouter, Depends, Request

from storefront.config import settings
from storefront.routes.auth import require_admin
from storefront.services.analytics import dashboard_service
from storefront.utils.db_service import ping_database

router = APIRouter()
health_router = APIRouter()


@health_router.get(
    "/health",
    summary="헬스 체크",
    responses={200: {"description": "{status, database}"}},
)
async def health(request: Request):
    database_ok = await ping_database(request.app.state.log)
    return {"status": "ok" if database_ok else "degraded", "database": database_ok}


@router.get("/dashboard", summary="관리자 대시보드")
async def dashboard(request: Request, _=Depends(require_admin)):
    try:
        return await dashboard_service(request, settings.LOW_STOCK_THRESHOLD)
    except Exception as e:
        await request.app.state.log.log_error("admin", f"대시보드 오류: {e}")
        raise
