# storefront/routes/ui_section.py

from typing import List

from fastapi import APIRouter, Depends, Request, status

from storefront.routes.auth import require_admin
from storefront.schemas.ui_section import UISection, UISectionCreate, UISectionUpdate
from storefront.services.ui_section import (
    create_section_service,
    delete_section_service,
    list_public_sections_service,
    read_section_service,
    read_sections_service,
    update_section_service,
)

router = APIRouter()
admin_router = APIRouter()


@router.get(
    "",
    summary="UI 섹션 (공개)",
    responses={200: {"description": "스냅샷이 있으면 source=cache, 없으면 source=database"}},
)
async def list_sections(request: Request, language: str | None = None):
    try:
        return await list_public_sections_service(language, request)
    except Exception as e:
        await request.app.state.log.log_error("ui_section", f"섹션 조회 오류: {e}", {"language": language})
        raise


# ────────────── 관리자 CRUD ──────────────
@admin_router.get("", response_model=List[UISection], summary="UI 섹션 목록 (비활성 포함)")
async def admin_list_sections(request: Request, _=Depends(require_admin)):
    return await read_sections_service(request)


@admin_router.get("/{id}", response_model=UISection, summary="UI 섹션 조회")
async def admin_read_section(id: int, request: Request, _=Depends(require_admin)):
    return await read_section_service(id, request)


@admin_router.post(
    "",
    response_model=UISection,
    status_code=status.HTTP_201_CREATED,
    summary="UI 섹션 생성",
    responses={409: {"description": "키 중복"}},
)
async def admin_create_section(section: UISectionCreate, request: Request, _=Depends(require_admin)):
    try:
        return await create_section_service(section, request)
    except Exception as e:
        await request.app.state.log.log_error("ui_section", f"섹션 생성 오류: {e}", {"key": section.key})
        raise


@admin_router.put("/{id}", response_model=UISection, summary="UI 섹션 수정")
async def admin_update_section(id: int, section: UISectionUpdate, request: Request, _=Depends(require_admin)):
    try:
        return await update_section_service(id, section, request)
    except Exception as e:
        await request.app.state.log.log_error("ui_section", f"섹션 수정 오류: {e}", {"id": id})
        raise


@admin_router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT, summary="UI 섹션 삭제")
async def admin_delete_section(id: int, request: Request, _=Depends(require_admin)):
    await delete_section_service(id, request)
