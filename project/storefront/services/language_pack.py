# storefront/services/language_pack.py

from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from fastapi import Request

from storefront.errors import AppError, ErrorCode, not_found
from storefront.models.language import LanguagePackEntry
from storefront.schemas.language import AutoTranslateRequest, LanguagePackUpdate, LanguagePackUpsert


def _notify(request: Request, language_code: str, action: str, keys: list[str]) -> None:
    request.app.state.events.broadcast("language-pack-update", {
        "language": language_code, "action": action, "keys": keys
    })


async def _after_change(request: Request, language_code: str, action: str, keys: list[str]) -> None:
    """section.* 키가 바뀌면 섹션 스냅샷도 다시 만들어야 한다."""
    if any(key.startswith("section.") for key in keys):
        await request.app.state.ui_cache.clear_cache()
    _notify(request, language_code, action, keys)


async def read_language_pack_map_service(language: str | None, namespace: str | None, request: Request) -> dict:
    """
    공개 언어팩. 기본 언어 값 위에 요청 언어 값을 덮어쓴 {key: value}.
    """
    db = request.state.db
    language_manager = request.app.state.language_manager

    default_code = await language_manager.get_default_language_code(db)
    language = language or default_code

    codes = [default_code] if language == default_code else [default_code, language]
    values: dict[str, str] = {}
    for code in codes:
        stmt = select(LanguagePackEntry.key, LanguagePackEntry.value).where(
            LanguagePackEntry.language_code == code,
            LanguagePackEntry.is_active.is_(True),
        )
        if namespace:
            stmt = stmt.where(LanguagePackEntry.namespace == namespace)
        result = await db.execute(stmt)
        values.update({key: value for key, value in result.all() if value})

    return {"language": language, "namespace": namespace, "translations": values}


async def read_language_packs_service(
    request: Request,
    language: str | None = None,
    namespace: str | None = None,
    q: str | None = None,
    skip: int = 0,
    limit: int = 200,
) -> list[LanguagePackEntry]:
    db = request.state.db

    stmt = select(LanguagePackEntry)
    if language:
        stmt = stmt.where(LanguagePackEntry.language_code == language)
    if namespace:
        stmt = stmt.where(LanguagePackEntry.namespace == namespace)
    if q:
        stmt = stmt.where(LanguagePackEntry.key.ilike(f"%{q}%"))
    result = await db.execute(
        stmt.order_by(LanguagePackEntry.namespace, LanguagePackEntry.key, LanguagePackEntry.language_code)
        .offset(skip).limit(limit)
    )
    return result.scalars().all()


async def upsert_language_pack_service(entry: LanguagePackUpsert, request: Request) -> LanguagePackEntry:
    """
    (언어, 네임스페이스, 키) 가 있으면 값을 바꾸고 version 을 올린다. 없으면 새로 만든다.
    """
    db = request.state.db
    log = request.app.state.log

    meta = await request.app.state.language_manager.get_language_by_code(db, entry.language_code)
    if meta is None:
        raise AppError(ErrorCode.BAD_REQUEST, f"지원되지 않는 언어 코드입니다: {entry.language_code}")

    result = await db.execute(
        select(LanguagePackEntry).where(
            LanguagePackEntry.language_code == entry.language_code,
            LanguagePackEntry.namespace == entry.namespace,
            LanguagePackEntry.key == entry.key,
        )
    )
    db_entry = result.scalar_one_or_none()
    if db_entry is None:
        db_entry = LanguagePackEntry(
            language_code=entry.language_code,
            namespace=entry.namespace,
            key=entry.key,
            value=entry.value,
            category=entry.category,
            is_active=True if entry.is_active is None else entry.is_active,
        )
        db.add(db_entry)
        action = "created"
    else:
        for key, value in entry.model_dump(include={"value", "category", "is_active"}, exclude_unset=True).items():
            setattr(db_entry, key, value)
        db_entry.version = (db_entry.version or 1) + 1
        action = "updated"

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AppError(ErrorCode.CONFLICT, f"이미 있는 언어팩 키입니다: {entry.key}")
    await db.refresh(db_entry)

    await _after_change(request, db_entry.language_code, action, [db_entry.key])
    await log.log_info("language_pack", "언어팩 저장", {"id": db_entry.id, "key": db_entry.key, "action": action})
    return db_entry


async def read_language_pack_service(id: int, request: Request) -> LanguagePackEntry:
    db = request.state.db
    db_entry = await db.get(LanguagePackEntry, id)
    if db_entry is None:
        raise not_found("언어팩 항목을 찾을 수 없습니다.")
    return db_entry


async def update_language_pack_service(id: int, entry_update: LanguagePackUpdate, request: Request) -> LanguagePackEntry:
    db = request.state.db
    log = request.app.state.log

    db_entry = await read_language_pack_service(id, request)
    for key, value in entry_update.model_dump(exclude_unset=True).items():
        setattr(db_entry, key, value)
    db_entry.version = (db_entry.version or 1) + 1
    await db.commit()
    await db.refresh(db_entry)

    await _after_change(request, db_entry.language_code, "updated", [db_entry.key])
    await log.log_info("language_pack", "언어팩 수정", {"id": id})
    return db_entry


async def delete_language_pack_service(id: int, request: Request) -> None:
    db = request.state.db
    log = request.app.state.log

    db_entry = await read_language_pack_service(id, request)
    language_code, key = db_entry.language_code, db_entry.key
    await db.delete(db_entry)
    await db.commit()

    await _after_change(request, language_code, "deleted", [key])
    await log.log_info("language_pack", "언어팩 삭제", {"id": id, "key": key})


# ────────────── 자동 번역 ──────────────
async def auto_translate_service(body: AutoTranslateRequest, request: Request) -> dict:
    """
    원본 언어에는 있고 대상 언어에는 없는 키를 Google Translate 로 채운다.
    overwrite=True 면 이미 있는 값도 다시 번역한다.
    """
    db = request.state.db
    log = request.app.state.log
    language_manager = request.app.state.language_manager
    translator = request.app.state.translator

    source_code = body.source_language or await language_manager.get_default_language_code(db)
    if source_code == body.target_language:
        raise AppError(ErrorCode.BAD_REQUEST, "원본 언어와 대상 언어가 같습니다.")
    source = await language_manager.get_language_by_code(db, source_code)
    target = await language_manager.get_language_by_code(db, body.target_language)
    if source is None or target is None:
        raise AppError(ErrorCode.BAD_REQUEST, "지원되지 않는 언어 코드입니다.")

    def scoped(code):
        stmt = select(LanguagePackEntry).where(
            LanguagePackEntry.language_code == code,
            LanguagePackEntry.is_active.is_(True),
        )
        if body.namespace:
            stmt = stmt.where(LanguagePackEntry.namespace == body.namespace)
        return stmt

    source_entries = (await db.execute(scoped(source_code))).scalars().all()
    existing = {
        (e.namespace, e.key): e
        for e in (await db.execute(scoped(body.target_language))).scalars().all()
    }

    todo = [
        e for e in source_entries
        if e.value and (body.overwrite or (e.namespace, e.key) not in existing)
    ]
    if not todo:
        return {"success": True, "translated": 0, "keys": []}

    translated = await translator.translate_many([e.value for e in todo], target.google_code, source.google_code)

    keys = []
    for entry, value in zip(todo, translated):
        db_entry = existing.get((entry.namespace, entry.key))
        if db_entry is None:
            db.add(LanguagePackEntry(
                language_code=body.target_language,
                namespace=entry.namespace,
                key=entry.key,
                value=value,
                category=entry.category,
            ))
        else:
            db_entry.value = value
            db_entry.version = (db_entry.version or 1) + 1
        keys.append(entry.key)
    await db.commit()

    await _after_change(request, body.target_language, "auto-translated", keys)
    await log.log_info("language_pack", "자동 번역", {
        "source": source_code, "target": body.target_language, "count": len(keys)
    })
    return {"success": True, "translated": len(keys), "keys": keys}
