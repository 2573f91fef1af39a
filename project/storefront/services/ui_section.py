# storefront/services/ui_section.py

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from fastapi import Request

from storefront.errors import AppError, ErrorCode, not_found
from storefront.models.language import LanguagePackEntry
from storefront.models.ui_section import UISection as UISectionModel
from storefront.schemas.ui_section import UISectionCreate, UISectionUpdate
from storefront.services.ui_sections_cache import UISectionsCacheService, own_translation_data, section_to_dict


async def _invalidate(request: Request, action: str, data: dict) -> None:
    """섹션이 바뀌면 스냅샷을 지우고 클라이언트에 알린다."""
    await request.app.state.ui_cache.clear_cache()
    request.app.state.events.broadcast("ui-section-update", {"action": action, **data})


async def list_public_sections_service(language: str | None, request: Request) -> dict:
    """
    공개 섹션 목록. 스냅샷이 있으면 그대로, 없으면 DB 에서 만든다.
    """
    db = request.state.db
    log = request.app.state.log
    language_manager = request.app.state.language_manager

    codes = await language_manager.get_language_codes(db)
    default_code = await language_manager.get_default_language_code(db)
    if not language or language not in codes:
        language = default_code

    cached = await request.app.state.ui_cache.read_cache(language)
    if cached is not None:
        return {"source": "cache", **cached}

    result = await db.execute(
        select(UISectionModel).where(UISectionModel.is_active.is_(True)).order_by(UISectionModel.order)
    )
    sections = [section_to_dict(s) for s in result.scalars().all()]
    pack_rows = await db.execute(
        select(LanguagePackEntry.key, LanguagePackEntry.value).where(
            LanguagePackEntry.language_code == language,
            LanguagePackEntry.key.like("section.%"),
            LanguagePackEntry.is_active.is_(True),
        )
    )
    pack = {key: value for key, value in pack_rows.all() if value}
    localized = UISectionsCacheService.localize_sections(sections, language, pack)

    await log.log_info("ui_section", "캐시 없음, DB 조회", {"language": language, "count": len(localized)})
    return {
        "source": "database",
        "language": language,
        "lastUpdated": None,
        "sectionsCount": len(localized),
        "sections": localized,
    }


async def read_sections_service(request: Request) -> list[UISectionModel]:
    db = request.state.db
    result = await db.execute(select(UISectionModel).order_by(UISectionModel.order, UISectionModel.id))
    return result.scalars().all()


async def read_section_service(id: int, request: Request) -> UISectionModel:
    db = request.state.db
    db_section = await db.get(UISectionModel, id)
    if db_section is None:
        raise not_found("UI 섹션을 찾을 수 없습니다.")
    return db_section


async def read_section_by_key(db, key: str) -> UISectionModel | None:
    result = await db.execute(select(UISectionModel).where(UISectionModel.key == key))
    return result.scalar_one_or_none()


async def create_section_service(section: UISectionCreate, request: Request) -> UISectionModel:
    db = request.state.db
    log = request.app.state.log

    db_section = UISectionModel(**section.model_dump(exclude_none=True))
    db.add(db_section)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AppError(ErrorCode.CONFLICT, f"이미 있는 섹션 키입니다: {section.key}")
    await db.refresh(db_section)

    default_code = await request.app.state.language_manager.get_default_language_code(db)
    await request.app.state.ui_sync.sync_section_add(
        db_section.key, db_section.type, {default_code: db_section.data or {}}
    )
    await _invalidate(request, "created", {"sectionId": db_section.key})
    await log.log_info("ui_section", "섹션 생성", {"id": db_section.id, "key": db_section.key})
    return db_section


async def update_section_service(id: int, section_update: UISectionUpdate, request: Request) -> UISectionModel:
    db = request.state.db
    log = request.app.state.log

    db_section = await read_section_service(id, request)
    changes = section_update.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(db_section, key, value)
    await db.commit()
    await db.refresh(db_section)

    if "data" in changes or "translations" in changes:
        default_code = await request.app.state.language_manager.get_default_language_code(db)
        data_by_language = {default_code: db_section.data or {}}
        for language in (db_section.translations or {}):
            own_data = own_translation_data(db_section.translations, language)
            if own_data:
                data_by_language[language] = {**(db_section.data or {}), **own_data}
        await request.app.state.ui_sync.sync_section_update(db_section.key, data_by_language)
    if "is_active" in changes:
        await request.app.state.ui_sync.sync_section_visibility(db_section.key, bool(db_section.is_active))

    await _invalidate(request, "updated", {"sectionId": db_section.key})
    await log.log_info("ui_section", "섹션 수정", {"id": id, "fields": list(changes)})
    return db_section


async def delete_section_service(id: int, request: Request) -> None:
    db = request.state.db
    log = request.app.state.log

    db_section = await read_section_service(id, request)
    key = db_section.key
    await db.delete(db_section)
    await db.commit()

    await request.app.state.ui_sync.sync_section_delete(key)
    await _invalidate(request, "deleted", {"sectionId": key})
    await log.log_info("ui_section", "섹션 삭제", {"id": id, "key": key})


# ────────────── 관리자 UI 설정 ──────────────
async def apply_section_order_service(section_order: list[str], request: Request, user_id: int | None = None) -> dict:
    """
    DB 의 order 값을 새 순서로 바꾸고 언어별 문서에 동기화한다.
    """
    db = request.state.db

    for index, key in enumerate(section_order):
        await db.execute(update(UISectionModel).where(UISectionModel.key == key).values(order=index))
    await db.commit()

    result = await request.app.state.ui_sync.sync_section_order(section_order, user_id)
    await _invalidate(request, "reordered", {"sectionOrder": section_order})
    return result


async def apply_section_visibility_service(section_id: str, visible: bool, request: Request, user_id: int | None = None) -> dict:
    db = request.state.db

    db_section = await read_section_by_key(db, section_id)
    if db_section is not None:
        db_section.is_active = visible
        await db.commit()

    result = await request.app.state.ui_sync.sync_section_visibility(section_id, visible, user_id)
    await _invalidate(request, "visibility", {"sectionId": section_id, "visible": visible})
    return result
