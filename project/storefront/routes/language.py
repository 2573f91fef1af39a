# storefront/routes/language.py

from fastapi import APIRouter, Depends, Request

from storefront.routes.auth import require_admin
from storefront.schemas.language import LanguageCodeRequest, LanguageReplaceRequest

router = APIRouter()
public_router = APIRouter()


async def _languages_changed(request: Request) -> None:
    """활성 언어가 바뀌면 언어별 스냅샷을 다시 만들어야 한다."""
    await request.app.state.ui_cache.clear_cache()


@public_router.get("", summary="활성 언어 목록 (공개)")
async def list_enabled_languages(request: Request):
    languages = await request.app.state.language_manager.get_enabled_languages(request.state.db)
    return {"success": True, "languages": languages}


@router.get(
    "",
    summary="언어 목록",
    responses={200: {"description": "전체 카탈로그(enabled, is_default 표시)와 활성 개수"}},
)
async def list_languages(request: Request, _=Depends(require_admin)):
    manager = request.app.state.language_manager
    db = request.state.db
    return {
        "success": True,
        "languages": await manager.get_all_languages(db),
        "activeCount": await manager.get_active_language_count(db),
        "maxActive": manager.max_active,
        "defaultLanguage": await manager.get_default_language_code(db),
    }


@router.post(
    "",
    summary="언어 활성화",
    responses={
        200: {"description": "활성화 완료"},
        400: {"description": "지원하지 않는 코드 또는 활성 언어 수 초과"},
        409: {"description": "이미 활성화된 언어"},
    },
)
async def add_language(body: LanguageCodeRequest, request: Request, _=Depends(require_admin)):
    try:
        language = await request.app.state.language_manager.add_language(request.state.db, body.language_code)
        await _languages_changed(request)
        return {"success": True, "language": language}
    except Exception as e:
        await request.app.state.log.log_error("language", f"언어 활성화 오류: {e}", {"code": body.language_code})
        raise


@router.delete(
    "/{code}",
    summary="언어 비활성화",
    responses={400: {"description": "기본 언어이거나 활성 상태가 아님"}},
)
async def remove_language(code: str, request: Request, _=Depends(require_admin)):
    try:
        await request.app.state.language_manager.remove_language(request.state.db, code)
        await _languages_changed(request)
        return {"success": True}
    except Exception as e:
        await request.app.state.log.log_error("language", f"언어 비활성화 오류: {e}", {"code": code})
        raise


@router.post(
    "/replace",
    summary="언어 교체",
    responses={400: {"description": "교체 불가. 변경 사항 없음"}},
)
async def replace_language(body: LanguageReplaceRequest, request: Request, _=Depends(require_admin)):
    try:
        result = await request.app.state.language_manager.switch_language(
            request.state.db, body.from_language, body.to_language
        )
        await _languages_changed(request)
        return {"success": True, **result}
    except Exception as e:
        await request.app.state.log.log_error("language", f"언어 교체 오류: {e}", {
            "from": body.from_language, "to": body.to_language
        })
        raise


@router.put("/default", summary="기본 언어 지정", responses={400: {"description": "활성 언어가 아님"}})
async def set_default_language(body: LanguageCodeRequest, request: Request, _=Depends(require_admin)):
    language = await request.app.state.language_manager.set_default_language(request.state.db, body.language_code)
    await _languages_changed(request)
    return {"success": True, "language": language}
