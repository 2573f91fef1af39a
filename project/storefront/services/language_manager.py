# storefront/services/language_manager.py

import time

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from storefront.errors import AppError, ErrorCode
from storefront.models.language import LanguageMetadata, LanguageSettings, LanguagePackEntry
from storefront.schemas.language import Language


class LanguageManager:
    """
    언어 관리 서비스.

    전체 카탈로그(language_metadata) 중 최대 max_active 개만 동시에 활성화할 수 있다.
    활성 목록과 기본 언어는 language_settings 한 행에 저장한다.
    이 규칙은 DB 제약이 아니라 호출 시점에 검사한다.
    """

    def __init__(self, log=None, max_active: int = 3, default_language: str = "ko", cache_seconds: int = 300):
        self.log = log
        self.max_active = max_active
        self.fallback_default = default_language
        self.cache_seconds = cache_seconds
        self._languages: list[Language] | None = None
        self._cache_expiry = 0.0

    # ==========================================================
    # 내부 헬퍼
    # ==========================================================
    async def _settings_row(self, db: AsyncSession) -> LanguageSettings | None:
        result = await db.execute(select(LanguageSettings).order_by(LanguageSettings.id).limit(1))
        return result.scalars().first()

    async def _metadata(self, db: AsyncSession, code: str) -> LanguageMetadata | None:
        result = await db.execute(select(LanguageMetadata).where(LanguageMetadata.code == code))
        return result.scalar_one_or_none()

    @staticmethod
    def _to_language(row: LanguageMetadata, selected: list[str], default_code: str) -> Language:
        return Language(
            code=row.code,
            name=row.name,
            native_name=row.native_name,
            google_code=row.google_code,
            direction=row.direction,
            flag_emoji=row.flag_emoji,
            enabled=row.code in selected,
            is_default=row.code == default_code,
        )

    async def _state(self, db: AsyncSession) -> tuple[list[str], str]:
        row = await self._settings_row(db)
        if row is None:
            return [], self.fallback_default
        return list(row.selected_languages or []), row.default_language

    async def _log(self, message: str, data: dict | None = None):
        if self.log:
            await self.log.log_info("language", message, data)

    # ==========================================================
    # 조회
    # ==========================================================
    async def get_enabled_languages(self, db: AsyncSession) -> list[Language]:
        """활성 언어 목록 (기본 언어 먼저). cache_seconds 동안 메모리에 캐시한다."""
        if self._languages is not None and time.monotonic() < self._cache_expiry:
            return self._languages

        selected, default_code = await self._state(db)
        if not selected:
            return []

        result = await db.execute(select(LanguageMetadata).where(LanguageMetadata.code.in_(selected)))
        rows = result.scalars().all()
        languages = [self._to_language(row, selected, default_code) for row in rows]
        languages.sort(key=lambda lang: (not lang.is_default, lang.name))

        self._languages = languages
        self._cache_expiry = time.monotonic() + self.cache_seconds
        return languages

    async def get_all_languages(self, db: AsyncSession) -> list[Language]:
        selected, default_code = await self._state(db)
        result = await db.execute(select(LanguageMetadata).order_by(LanguageMetadata.name))
        return [self._to_language(row, selected, default_code) for row in result.scalars().all()]

    async def get_language_codes(self, db: AsyncSession) -> list[str]:
        return [lang.code for lang in await self.get_enabled_languages(db)]

    async def get_default_language(self, db: AsyncSession) -> Language | None:
        selected, default_code = await self._state(db)
        row = await self._metadata(db, default_code)
        if row is None:
            return None
        return self._to_language(row, selected, default_code)

    async def get_default_language_code(self, db: AsyncSession) -> str:
        _, default_code = await self._state(db)
        return default_code

    async def get_language_by_code(self, db: AsyncSession, code: str) -> Language | None:
        row = await self._metadata(db, code)
        if row is None:
            return None
        selected, default_code = await self._state(db)
        return self._to_language(row, selected, default_code)

    async def get_active_language_count(self, db: AsyncSession) -> int:
        selected, _ = await self._state(db)
        return len(selected)

    async def can_activate_language(self, db: AsyncSession, code: str) -> bool:
        selected, _ = await self._state(db)
        if code in selected:
            return True
        return len(selected) < self.max_active

    # ==========================================================
    # 변경
    # ==========================================================
    async def _apply_add(self, db: AsyncSession, code: str) -> LanguageMetadata:
        if not code:
            raise AppError(ErrorCode.BAD_REQUEST, "언어 코드는 필수입니다.")

        meta = await self._metadata(db, code)
        if meta is None:
            raise AppError(ErrorCode.BAD_REQUEST, f"지원되지 않는 언어 코드입니다: {code}")

        row = await self._settings_row(db)
        if row is None:
            row = LanguageSettings(selected_languages=[], default_language=self.fallback_default)
            db.add(row)
        selected = list(row.selected_languages or [])

        if code in selected:
            raise AppError(ErrorCode.CONFLICT, "이미 추가된 언어입니다.")
        if len(selected) >= self.max_active:
            raise AppError(
                ErrorCode.BUSINESS_RULE,
                f"최대 {self.max_active}개의 언어만 활성화할 수 있습니다. 먼저 다른 언어를 비활성화하세요.",
            )

        row.selected_languages = selected + [code]
        return meta

    async def _apply_remove(self, db: AsyncSession, code: str) -> None:
        if not code:
            raise AppError(ErrorCode.BAD_REQUEST, "언어 코드는 필수입니다.")

        row = await self._settings_row(db)
        if row is None:
            raise AppError(ErrorCode.NOT_FOUND, "언어 설정을 찾을 수 없습니다.")
        if code == row.default_language:
            raise AppError(ErrorCode.BUSINESS_RULE, "기본 언어는 제거할 수 없습니다.")

        selected = list(row.selected_languages or [])
        if code not in selected:
            raise AppError(ErrorCode.BAD_REQUEST, "선택된 언어에 해당 코드가 없습니다.")

        row.selected_languages = [lang for lang in selected if lang != code]

    async def add_language(self, db: AsyncSession, code: str) -> Language:
        try:
            meta = await self._apply_add(db, code)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        self.clear_cache()

        await self._log("언어 활성화", {"code": code})
        selected, default_code = await self._state(db)
        return self._to_language(meta, selected, default_code)

    async def remove_language(self, db: AsyncSession, code: str) -> bool:
        try:
            await self._apply_remove(db, code)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        self.clear_cache()

        await self._log("언어 비활성화", {"code": code})
        return True

    async def switch_language(self, db: AsyncSession, remove_code: str, add_code: str) -> dict:
        """
        remove_code 를 끄고 add_code 를 켠다. 두 변경은 한 번에 커밋된다.
        """
        if remove_code == add_code:
            raise AppError(ErrorCode.BAD_REQUEST, "같은 언어로 교체할 수 없습니다.")
        try:
            await self._apply_remove(db, remove_code)
            meta = await self._apply_add(db, add_code)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        self.clear_cache()

        await self._log("언어 교체", {"removed": remove_code, "added": add_code})
        selected, default_code = await self._state(db)
        return {"removed": True, "added": self._to_language(meta, selected, default_code)}

    async def set_default_language(self, db: AsyncSession, code: str) -> Language:
        row = await self._settings_row(db)
        if row is None or code not in (row.selected_languages or []):
            raise AppError(ErrorCode.BUSINESS_RULE, "활성화된 언어만 기본 언어로 지정할 수 있습니다.")
        meta = await self._metadata(db, code)
        if meta is None:
            raise AppError(ErrorCode.BAD_REQUEST, f"지원되지 않는 언어 코드입니다: {code}")

        row.default_language = code
        await db.commit()
        self.clear_cache()

        await self._log("기본 언어 변경", {"code": code})
        return self._to_language(meta, list(row.selected_languages), code)

    # ==========================================================
    # 번역 조회
    # ==========================================================
    async def get_translation(
        self,
        db: AsyncSession,
        key: str,
        language_code: str,
        namespace: str | None = None,
        fallback_to_default: bool = True,
    ) -> str | None:
        """언어팩 값 조회. 없으면 기본 언어 값으로 대체한다."""
        codes = [language_code]
        if fallback_to_default:
            default_code = await self.get_default_language_code(db)
            if default_code != language_code:
                codes.append(default_code)

        for code in codes:
            stmt = select(LanguagePackEntry.value).where(
                LanguagePackEntry.key == key,
                LanguagePackEntry.language_code == code,
                LanguagePackEntry.is_active.is_(True),
            )
            if namespace:
                stmt = stmt.where(LanguagePackEntry.namespace == namespace)
            value = (await db.execute(stmt.limit(1))).scalar_one_or_none()
            if value:
                return value
        return None

    async def get_translations(
        self, db: AsyncSession, keys: list[str], language_code: str, namespace: str | None = None
    ) -> dict[str, str]:
        if not keys:
            return {}
        stmt = select(LanguagePackEntry.key, LanguagePackEntry.value).where(
            LanguagePackEntry.language_code == language_code,
            LanguagePackEntry.key.in_(keys),
            LanguagePackEntry.is_active.is_(True),
        )
        if namespace:
            stmt = stmt.where(LanguagePackEntry.namespace == namespace)
        result = await db.execute(stmt)
        return {key: value for key, value in result.all() if value}

    def clear_cache(self) -> None:
        self._languages = None
        self._cache_expiry = 0.0
