# storefront/routes/language_pack.py

from typing import List

from fastapi import APIRouter, Depends, Query, Request, status

from storefront.routes.auth import require_admin
from storefront.schemas.language import (
    AutoTranslateRequest,
    LanguagePack,
    LanguagePackUpdate,
    LanguagePackUpsert,
    TranslateRequest,
)
from storefront.services.language_pack import (
    auto_translate_service,
    delete_language_pack_service,
    read_language_pack_map_service,
    read_language_pack_service,
    read_language_packs_service,
    update_language_pack_service,
    upsert_language_pack_service,
)

router = APIRouter()
admin_router = APIRouter()
i18n_router = APIRouter()


@router.get("", summary="언어팩 (공개)", responses={200: {"description": "{language, namespace, translations: {key: value}}"}})
async def read_language_pack_map(request: Request, language: str | None = None, namespace: str | None = None):
    return await read_language_pack_map_service(language, namespace, request)


# ────────────── 관리자 ──────────────
@admin_router.get("", response_model=List[LanguagePack], summary="언어팩 목록")
async def list_language_packs(
    request: Request,
    language: str | None = None,
    namespace: str | None = None,
    q: str | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(200, ge=1, le=1000),
    _=Depends(require_admin),
):
    return await read_language_packs_service(request, language, namespace, q, skip, limit)


@admin_router.post(
    "",
    response_model=LanguagePack,
    summary="언어팩 저장 (있으면 수정)",
    responses={400: {"description": "지원하지 않는 언어"}},
)
async def upsert_language_pack(entry: LanguagePackUpsert, request: Request, _=Depends(require_admin)):
    try:
        return await upsert_language_pack_service(entry, request)
    except Exception as e:
        await request.app.state.log.log_error("language_pack", f"언어팩 저장 오류: {e}", {"key": entry.key})
        raise


@admin_router.post(
    "/auto-translate",
    summary="빠진 키 자동 번역",
    responses={400: {"description": "번역 API 미설정 또는 잘못된 언어"}, 502: {"description": "번역 API 오류"}},
)
async def auto_translate(body: AutoTranslateRequest, request: Request, _=Depends(require_admin)):
    try:
        return await auto_translate_service(body, request)
    except Exception as e:
        await request.app.state.log.log_error("language_pack", f"자동 번역 오류: {e}", {"target": body.target_language})
        raise


@admin_router.get("/{id}", response_model=LanguagePack, summary="언어팩 항목 조회")
async def read_language_pack(id: int, request: Request, _=Depends(require_admin)):
    return await read_language_pack_service(id, request)


@admin_router.put("/{id}", response_model=LanguagePack, summary="언어팩 항목 수정")
async def update_language_pack(id: int, entry: LanguagePackUpdate, request: Request, _=Depends(require_admin)):
    return await update_language_pack_service(id, entry, request)


@admin_router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT, summary="언어팩 항목 삭제")
async def delete_language_pack(id: int, request: Request, _=Depends(require_admin)):
    await delete_language_pack_service(id, request)


# ────────────── 번역 ──────────────
@i18n_router.post(
    "/translate",
    summary="텍스트 번역",
    responses={400: {"description": "번역 API 미설정"}, 502: {"description": "번역 API 오류"}},
)
async def translate(body: TranslateRequest, request: Request, _=Depends(require_admin)):
    translated = await request.app.state.translator.translate_text(body.text, body.target, body.source)
    return {"success": True, "text": body.text, "translated": translated, "target": body.target}
