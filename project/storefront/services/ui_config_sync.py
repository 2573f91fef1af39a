# storefront/services/ui_config_sync.py

import os
import json
from datetime import datetime, timezone

import aiofiles
from sqlalchemy.future import select

from storefront.errors import AppError, ErrorCode
from storefront.models.ui_section import UISection
from storefront.services.ui_sections_cache import own_translation_data

# get_sync_status 에 남기는 최근 오류 수
MAX_STATUS_ERRORS = 20


def generate_version(now: datetime | None = None) -> str:
    """YYYY.MM.DD.HHMM 형식 버전 문자열."""
    now = now or datetime.now()
    return f"{now:%Y.%m.%d.%H%M}"


def empty_document(language: str) -> dict:
    return {
        "version": generate_version(),
        "lastUpdated": datetime.now(timezone.utc).isoformat(),
        "language": language,
        "sectionOrder": [],
        "sections": {},
    }


class UIConfigSyncService:
    """
    관리자 화면의 섹션 변경(순서, 노출 여부 등)을 활성 언어별 sections.json 에 반영한다.

    언어마다 따로 읽고 쓰며, 결과는 {success, updatedLanguages, errors, timestamp}.
    일부 언어만 실패해도 이미 성공한 언어는 되돌리지 않는다.
    """

    def __init__(self, i18n_dir: str, language_manager, session_factory, log=None):
        self.i18n_dir = i18n_dir
        self.language_manager = language_manager
        self.session_factory = session_factory
        self.log = log
        self.status = {
            "isActive": True,
            "lastSync": None,
            "pendingChanges": 0,
            "errors": [],
        }

    def document_path(self, language: str) -> str:
        return os.path.join(self.i18n_dir, language, "sections.json")

    # ==========================================================
    # 파일 I/O
    # ==========================================================
    async def load_document(self, language: str, create_missing: bool = True) -> dict:
        """언어 문서를 읽는다. 파일이 없으면 빈 문서를, 손상됐으면 ValueError."""
        path = self.document_path(language)
        if not os.path.exists(path):
            if not create_missing:
                raise FileNotFoundError(path)
            return empty_document(language)

        async with aiofiles.open(path, mode="r", encoding="utf-8") as f:
            content = await f.read()
        data = json.loads(content)
        if not isinstance(data, dict) or not isinstance(data.get("sections", {}), dict):
            raise ValueError(f"손상된 언어 파일: {path}")
        data.setdefault("sectionOrder", [])
        data.setdefault("sections", {})
        data["language"] = language
        return data

    async def save_document(self, language: str, data: dict) -> None:
        path = self.document_path(language)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        async with aiofiles.open(path, mode="w", encoding="utf-8") as f:
            await f.write(json.dumps(data, ensure_ascii=False, indent=2))

    async def active_languages(self) -> list[str]:
        async with self.session_factory() as db:
            return await self.language_manager.get_language_codes(db)

    # ==========================================================
    # 공통 팬아웃
    # ==========================================================
    async def _fan_out(self, action: str, mutate, languages: list[str] | None = None) -> dict:
        """
        languages 각각에 대해 문서를 읽고 mutate(language, doc) 를 적용해 저장한다.
        """
        timestamp = datetime.now(timezone.utc).isoformat()
        version = generate_version()
        updated, errors = [], []

        if languages is None:
            languages = await self.active_languages()

        for language in languages:
            try:
                doc = await self.load_document(language)
                mutate(language, doc)
                doc["version"] = version
                doc["lastUpdated"] = timestamp
                await self.save_document(language, doc)
                updated.append(language)
            except Exception as e:
                errors.append({"language": language, "error": str(e)})
                if self.log:
                    await self.log.log_error("ui_sync", f"{action} 실패", {"language": language, "error": str(e)})

        result = {
            "success": not errors,
            "updatedLanguages": updated,
            "errors": errors,
            "timestamp": timestamp,
        }
        self._update_status(result)

        if self.log:
            await self.log.log_info("ui_sync", f"{action} 동기화", {
                "updated": updated, "errors": len(errors)
            })
        return result

    def _update_status(self, result: dict) -> None:
        if result["success"]:
            self.status.update(lastSync=result["timestamp"], pendingChanges=0, errors=[])
        else:
            self.status.update(
                lastSync=result["timestamp"],
                pendingChanges=self.status["pendingChanges"] + 1,
                errors=(self.status["errors"] + [e["error"] for e in result["errors"]])[-MAX_STATUS_ERRORS:],
            )

    # ==========================================================
    # 동기화 작업
    # ==========================================================
    async def sync_section_order(self, new_order: list[str], user_id: int | None = None) -> dict:
        order = list(new_order)

        def mutate(language, doc):
            doc["sectionOrder"] = list(order)

        return await self._fan_out("섹션 순서", mutate)

    async def sync_section_visibility(self, section_id: str, visible: bool, user_id: int | None = None) -> dict:
        def mutate(language, doc):
            section = dict(doc["sections"].get(section_id) or {})
            section["visible"] = visible
            doc["sections"][section_id] = section

        return await self._fan_out(f"섹션 노출({section_id})", mutate)

    async def sync_section_update(self, section_id: str, data_by_language: dict, user_id: int | None = None) -> dict:
        """언어별 섹션 데이터 갱신. 빠진 언어는 기본 언어 데이터로 채운다."""
        async with self.session_factory() as db:
            languages = await self.language_manager.get_language_codes(db)
            default_code = await self.language_manager.get_default_language_code(db)

        fallback = data_by_language.get(default_code)
        missing = [lang for lang in languages if lang not in data_by_language]
        if missing and fallback is None:
            raise AppError(ErrorCode.BAD_REQUEST, f"필수 언어 데이터가 없습니다: {', '.join(missing)}")

        def mutate(language, doc):
            section = dict(doc["sections"].get(section_id) or {})
            section["data"] = data_by_language.get(language, fallback)
            doc["sections"][section_id] = section

        return await self._fan_out(f"섹션 수정({section_id})", mutate, languages)

    async def sync_section_add(
        self,
        section_id: str,
        section_type: str,
        data_by_language: dict,
        insert_after: str | None = None,
        user_id: int | None = None,
    ) -> dict:
        def mutate(language, doc):
            doc["sections"][section_id] = {
                "type": section_type,
                "visible": True,
                "data": data_by_language.get(language) or next(iter(data_by_language.values()), {}),
            }
            order = [key for key in doc["sectionOrder"] if key != section_id]
            if insert_after and insert_after in order:
                order.insert(order.index(insert_after) + 1, section_id)
            else:
                order.append(section_id)
            doc["sectionOrder"] = order

        return await self._fan_out(f"섹션 추가({section_id})", mutate)

    async def sync_section_delete(self, section_id: str, user_id: int | None = None) -> dict:
        def mutate(language, doc):
            doc["sections"].pop(section_id, None)
            doc["sectionOrder"] = [key for key in doc["sectionOrder"] if key != section_id]

        return await self._fan_out(f"섹션 삭제({section_id})", mutate)

    async def force_full_sync(self) -> dict:
        """ui_sections 테이블 기준으로 활성 언어 문서를 모두 다시 만든다."""
        async with self.session_factory() as db:
            languages = await self.language_manager.get_language_codes(db)
            result = await db.execute(select(UISection).order_by(UISection.order))
            sections = result.scalars().all()

        def mutate(language, doc):
            doc["sectionOrder"] = [s.key for s in sections if s.is_active]
            doc["sections"] = {
                s.key: {
                    "type": s.type,
                    "visible": bool(s.is_active),
                    "data": {
                        **(s.data or {}),
                        **own_translation_data(s.translations, language),
                    },
                }
                for s in sections
            }

        return await self._fan_out("전체", mutate, languages)

    async def validate_file_system(self) -> dict:
        languages = await self.active_languages()
        missing, corrupted = [], []
        for language in languages:
            path = self.document_path(language)
            try:
                data = await self.load_document(language, create_missing=False)
                if not data.get("version") or not isinstance(data.get("sections"), dict):
                    corrupted.append(path)
            except FileNotFoundError:
                missing.append(path)
            except ValueError:
                corrupted.append(path)
        return {
            "valid": not missing and not corrupted,
            "missingFiles": missing,
            "corruptedFiles": corrupted,
        }

    def get_sync_status(self) -> dict:
        return dict(self.status, errors=list(self.status["errors"]))
