# storefront/services/ui_sections_cache.py

import os
import json
import glob
from datetime import datetime, timezone, timedelta

import aiofiles
from sqlalchemy.future import select

from storefront.models.language import LanguagePackEntry
from storefront.models.ui_section import UISection

MANIFEST_NAME = "manifest.json"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def own_translation(translations, language: str) -> dict:
    """섹션 자체 translations[language]. 형식이 맞지 않으면 빈 dict."""
    own = translations.get(language) if isinstance(translations, dict) else None
    return own if isinstance(own, dict) else {}


def own_translation_data(translations, language: str) -> dict:
    data = own_translation(translations, language).get("data")
    return data if isinstance(data, dict) else {}


def section_to_dict(section: UISection) -> dict:
    """DB 행을 캐시/응답용 dict 로 변환."""
    return {
        "id": section.id,
        "key": section.key,
        "title": section.title,
        "type": section.type,
        "order": section.order,
        "isActive": bool(section.is_active),
        "visible": bool(section.is_active),
        "data": section.data or {},
        "translations": section.translations or {},
        "updatedAt": section.updated_at.isoformat() if section.updated_at else None,
    }


class UISectionsCacheService:
    """
    UI 섹션 스냅샷 캐시.

    DB 의 활성 섹션을 언어별로 비정규화해서 cache_dir/sections-{lang}.json 으로 쓰고,
    manifest.json 에 생성 시각과 언어 목록을 남긴다.
    I/O 나 DB 오류는 "캐시 무효" 로 취급하고, 호출자는 DB 직접 조회로 돌아간다.
    잠금이 없으므로 동시에 재생성하면 마지막에 쓴 쪽이 남는다.
    """

    def __init__(self, cache_dir: str, session_factory, language_manager, log=None, ttl_seconds: int = 3600):
        self.cache_dir = cache_dir
        self.manifest_path = os.path.join(cache_dir, MANIFEST_NAME)
        self.session_factory = session_factory
        self.language_manager = language_manager
        self.log = log
        self.ttl = timedelta(seconds=ttl_seconds)

    def cache_path(self, language: str) -> str:
        return os.path.join(self.cache_dir, f"sections-{language}.json")

    # ==========================================================
    # 파일 I/O
    # ==========================================================
    async def _write_json(self, path: str, data: dict):
        os.makedirs(os.path.dirname(path), exist_ok=True)
        async with aiofiles.open(path, mode="w", encoding="utf-8") as f:
            await f.write(json.dumps(data, ensure_ascii=False, indent=2, default=str))

    async def _read_json(self, path: str) -> dict:
        async with aiofiles.open(path, mode="r", encoding="utf-8") as f:
            return json.loads(await f.read())

    # ==========================================================
    # 비정규화
    # ==========================================================
    async def _section_translations(self, db, language: str) -> dict[str, str]:
        result = await db.execute(
            select(LanguagePackEntry.key, LanguagePackEntry.value).where(
                LanguagePackEntry.language_code == language,
                LanguagePackEntry.key.like("section.%"),
                LanguagePackEntry.is_active.is_(True),
            )
        )
        return {key: value for key, value in result.all() if value}

    @staticmethod
    def localize_sections(sections: list[dict], language: str, pack: dict[str, str]) -> list[dict]:
        """
        언어팩(section.{key}.title, section.{key}.{field}) → 섹션 자체 translations → 원문 순서로 적용.
        자체 translations 의 data 는 원문 data 를 덮어쓰고, 언어팩은 그 위에 다시 덮어쓴다.
        """
        localized = []
        for section in sections:
            own = own_translation(section.get("translations"), language)
            own_data = own_translation_data(section.get("translations"), language)
            pack_key = (section.get("data") or {}).get("languagePackKey") or f"section.{section['key']}.title"
            title = pack.get(pack_key) or own.get("title") or section.get("title")

            data = {**(section.get("data") or {}), **own_data}
            for field in list(data.keys()):
                value = pack.get(f"section.{section['key']}.{field}")
                if value:
                    data[field] = value

            localized.append({
                **section,
                "title": title,
                "data": data,
                "languagePackKey": pack_key,
                "language": language,
            })
        return localized

    # ==========================================================
    # 공개 API
    # ==========================================================
    async def generate_cache(self) -> dict:
        """활성 섹션을 읽어 활성 언어마다 스냅샷을 쓰고 매니페스트를 갱신한다."""
        try:
            if self.log:
                await self.log.log_info("ui_cache", "UI 섹션 캐시 생성 시작")

            async with self.session_factory() as db:
                languages = await self.language_manager.get_language_codes(db)
                result = await db.execute(
                    select(UISection).where(UISection.is_active.is_(True)).order_by(UISection.order)
                )
                sections = [section_to_dict(s) for s in result.scalars().all()]
                packs = {lang: await self._section_translations(db, lang) for lang in languages}

            now = utc_now().isoformat()
            for language in languages:
                localized = self.localize_sections(sections, language, packs[language])
                await self._write_json(self.cache_path(language), {
                    "language": language,
                    "lastUpdated": now,
                    "sectionsCount": len(localized),
                    "sections": localized,
                })

            manifest = {
                "lastUpdated": now,
                "languages": languages,
                "sections": {
                    s["key"]: {
                        "type": s["type"],
                        "order": s["order"],
                        "isActive": s["isActive"],
                        "lastModified": s["updatedAt"] or now,
                    }
                    for s in sections
                },
            }
            await self._write_json(self.manifest_path, manifest)

            if self.log:
                await self.log.log_info("ui_cache", "UI 섹션 캐시 생성 완료", {
                    "languages": languages, "sections": len(sections)
                })
            return {"success": True, "languages": languages, "sectionsCount": len(sections)}
        except Exception as e:
            if self.log:
                await self.log.log_error("ui_cache", f"UI 섹션 캐시 생성 실패: {e}")
            return {"success": False, "languages": [], "sectionsCount": 0}

    async def read_cache(self, language: str) -> dict | None:
        try:
            return await self._read_json(self.cache_path(language))
        except (OSError, ValueError):
            return None

    async def read_manifest(self) -> dict | None:
        try:
            return await self._read_json(self.manifest_path)
        except (OSError, ValueError):
            return None

    async def is_cache_valid(self) -> bool:
        """매니페스트가 ttl 이내이고, 나열된 모든 언어 파일이 있어야 유효."""
        manifest = await self.read_manifest()
        if not manifest:
            return False
        try:
            last_updated = datetime.fromisoformat(manifest["lastUpdated"])
        except (KeyError, TypeError, ValueError):
            return False
        if last_updated.tzinfo is None:
            last_updated = last_updated.replace(tzinfo=timezone.utc)
        if utc_now() - last_updated > self.ttl:
            return False

        languages = manifest.get("languages") or []
        return all(os.path.exists(self.cache_path(lang)) for lang in languages)

    async def clear_cache(self) -> None:
        for path in glob.glob(os.path.join(self.cache_dir, "*.json")):
            try:
                os.remove(path)
            except FileNotFoundError:
                continue
        if self.log:
            await self.log.log_info("ui_cache", "UI 섹션 캐시 삭제")

    async def get_status(self) -> dict:
        manifest = await self.read_manifest() or {}
        files = sorted(os.path.basename(p) for p in glob.glob(os.path.join(self.cache_dir, "sections-*.json")))
        return {
            "isValid": await self.is_cache_valid(),
            "lastUpdated": manifest.get("lastUpdated"),
            "languages": manifest.get("languages", []),
            "files": files,
        }

    async def refresh_if_stale(self) -> dict | None:
        """백그라운드 주기 작업용. 유효하면 아무것도 하지 않는다."""
        if await self.is_cache_valid():
            return None
        return await self.generate_cache()
