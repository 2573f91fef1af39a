# storefront/routes/ui_config.py

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from storefront.routes.auth import require_admin
from storefront.schemas.ui_section import SectionOrderUpdate, SectionVisibilityUpdate
from storefront.services.ui_section import apply_section_order_service, apply_section_visibility_service

router = APIRouter()

SYNC_RESPONSES = {
    200: {"description": "모든 활성 언어에 반영"},
    207: {"description": "일부 언어만 반영 (errors 참고)"},
    500: {"description": "반영된 언어 없음"},
}


def sync_status_code(result: dict) -> int:
    if result["success"]:
        return 200
    return 207 if result["updatedLanguages"] else 500


def sync_response(result: dict) -> JSONResponse:
    return JSONResponse(status_code=sync_status_code(result), content=result)


@router.put("/sections/order", summary="섹션 순서 변경", responses=SYNC_RESPONSES)
async def update_section_order(body: SectionOrderUpdate, request: Request, current_user=Depends(require_admin)):
    try:
        result = await apply_section_order_service(body.section_order, request, current_user.id)
        return sync_response(result)
    except Exception as e:
        await request.app.state.log.log_error("ui_config", f"섹션 순서 변경 오류: {e}")
        raise


@router.patch("/sections/{section_id}/visibility", summary="섹션 노출 변경", responses=SYNC_RESPONSES)
async def update_section_visibility(
    section_id: str, body: SectionVisibilityUpdate, request: Request, current_user=Depends(require_admin)
):
    try:
        result = await apply_section_visibility_service(section_id, body.visible, request, current_user.id)
        return sync_response(result)
    except Exception as e:
        await request.app.state.log.log_error("ui_config", f"섹션 노출 변경 오류: {e}", {"section": section_id})
        raise


@router.post("/sync", summary="전체 재동기화 (DB 기준)", responses=SYNC_RESPONSES)
async def force_full_sync(request: Request, _=Depends(require_admin)):
    result = await request.app.state.ui_sync.force_full_sync()
    return sync_response(result)


@router.get("/status", summary="동기화 상태와 파일 검사")
async def sync_status(request: Request, _=Depends(require_admin)):
    ui_sync = request.app.state.ui_sync
    return {
        "success": True,
        "status": ui_sync.get_sync_status(),
        "fileSystem": await ui_sync.validate_file_system(),
    }
