# tests/test_language_manager.py

import pytest

from storefront.errors import AppError, ErrorCode
from storefront.models.language import LanguagePackEntry


async def test_seeded_languages_default_first(db, language_manager):
    languages = await language_manager.get_enabled_languages(db)

    assert [lang.code for lang in languages][0] == "ko"
    assert {lang.code for lang in languages} == {"ko", "en", "ja"}
    assert languages[0].is_default
    assert await language_manager.get_active_language_count(db) == 3


async def test_fourth_language_is_rejected(db, language_manager):
    with pytest.raises(AppError) as exc:
        await language_manager.add_language(db, "fr")

    assert exc.value.code == ErrorCode.BUSINESS_RULE
    assert exc.value.status_code == 400
    assert await language_manager.get_active_language_count(db) == 3
    assert "fr" not in await language_manager.get_language_codes(db)


async def test_add_after_remove(db, language_manager):
    await language_manager.remove_language(db, "ja")
    assert await language_manager.can_activate_language(db, "fr")

    added = await language_manager.add_language(db, "fr")

    assert added.code == "fr"
    assert added.enabled
    assert set(await language_manager.get_language_codes(db)) == {"ko", "en", "fr"}


async def test_add_validation_errors(db, language_manager):
    with pytest.raises(AppError) as exc:
        await language_manager.add_language(db, "")
    assert exc.value.code == ErrorCode.BAD_REQUEST

    with pytest.raises(AppError) as exc:
        await language_manager.add_language(db, "xx")
    assert exc.value.code == ErrorCode.BAD_REQUEST

    with pytest.raises(AppError) as exc:
        await language_manager.add_language(db, "en")
    assert exc.value.code == ErrorCode.CONFLICT


async def test_remove_default_language_is_rejected(db, language_manager):
    with pytest.raises(AppError) as exc:
        await language_manager.remove_language(db, "ko")

    assert exc.value.code == ErrorCode.BUSINESS_RULE
    assert "ko" in await language_manager.get_language_codes(db)


async def test_remove_inactive_language_is_rejected(db, language_manager):
    with pytest.raises(AppError) as exc:
        await language_manager.remove_language(db, "de")
    assert exc.value.code == ErrorCode.BAD_REQUEST


async def test_switch_language(db, language_manager):
    result = await language_manager.switch_language(db, "ja", "zh")

    assert result["removed"] is True
    assert result["added"].code == "zh"
    assert set(await language_manager.get_language_codes(db)) == {"ko", "en", "zh"}


async def test_failed_switch_changes_nothing(db, language_manager):
    with pytest.raises(AppError):
        await language_manager.switch_language(db, "ja", "xx")

    assert set(await language_manager.get_language_codes(db)) == {"ko", "en", "ja"}
    assert await language_manager.get_active_language_count(db) == 3


async def test_set_default_language(db, language_manager):
    language = await language_manager.set_default_language(db, "en")

    assert language.is_default
    assert await language_manager.get_default_language_code(db) == "en"
    assert (await language_manager.get_default_language(db)).code == "en"
    assert (await language_manager.get_enabled_languages(db))[0].code == "en"

    with pytest.raises(AppError):
        await language_manager.set_default_language(db, "fr")


async def test_enabled_languages_are_cached_until_mutation(db, language_manager):
    first = await language_manager.get_enabled_languages(db)
    assert await language_manager.get_enabled_languages(db) is first

    await language_manager.remove_language(db, "ja")
    assert "ja" not in await language_manager.get_language_codes(db)


async def test_get_all_languages_flags(db, language_manager):
    languages = {lang.code: lang for lang in await language_manager.get_all_languages(db)}

    assert len(languages) == 8
    assert languages["ko"].enabled and languages["ko"].is_default
    assert not languages["fr"].enabled
    assert languages["zh"].google_code == "zh-CN"


async def test_translation_falls_back_to_default_language(db, language_manager):
    db.add_all([
        LanguagePackEntry(language_code="ko", namespace="common", key="cart.title", value="장바구니"),
        LanguagePackEntry(language_code="en", namespace="common", key="home.title", value="Home"),
        LanguagePackEntry(language_code="ko", namespace="common", key="home.title", value="홈"),
    ])
    await db.commit()

    assert await language_manager.get_translation(db, "home.title", "en") == "Home"
    assert await language_manager.get_translation(db, "cart.title", "en") == "장바구니"
    assert await language_manager.get_translation(db, "cart.title", "en", fallback_to_default=False) is None
    assert await language_manager.get_translations(db, ["home.title", "cart.title"], "en") == {"home.title": "Home"}
