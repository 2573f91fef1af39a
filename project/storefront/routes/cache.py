# storefront/routes/cache.py

from typing import Literal

from fastapi import APIRouter, Depends, Request

from storefront.errors import AppError, ErrorCode
from storefront.routes.auth import require_admin

router = APIRouter()


@router.get(
    "/ui-sections",
    summary="UI 섹션 캐시 상태/내용",
    responses={
        200: {"description": "action=status 면 {isValid, lastUpdated, languages, files}, action=read 면 스냅샷"},
        404: {"description": "해당 언어 스냅샷 없음"},
    },
)
async def read_ui_sections_cache(
    request: Request,
    action: Literal["status", "read"] = "status",
    language: str | None = None,
):
    ui_cache = request.app.state.ui_cache
    if action == "status":
        return await ui_cache.get_status()

    if not language:
        language = await request.app.state.language_manager.get_default_language_code(request.state.db)
    snapshot = await ui_cache.read_cache(language)
    if snapshot is None:
        raise AppError(ErrorCode.NOT_FOUND, f"캐시가 없습니다: {language}")
    return snapshot


@router.post(
    "/ui-sections",
    summary="UI 섹션 캐시 재생성",
    responses={200: {"description": "생성 결과"}, 500: {"description": "생성 실패"}},
)
async def generate_ui_sections_cache(request: Request, _=Depends(require_admin)):
    result = await request.app.state.ui_cache.generate_cache()
    if not result["success"]:
        raise AppError(ErrorCode.INTERNAL, "캐시 생성에 실패했습니다.", result)
    return result


@router.delete("/ui-sections", summary="UI 섹션 캐시 삭제")
async def clear_ui_sections_cache(request: Request, _=Depends(require_admin)):
    await request.app.state.ui_cache.clear_cache()
    return {"success": True}
