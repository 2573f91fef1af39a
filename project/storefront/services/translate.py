# storefront/services/translate.py

from aiohttp import ClientError, ClientSession, ClientTimeout

from storefront.errors import AppError, ErrorCode


class GoogleTranslateClient:
    """Google Translate v2 REST 호출."""

    def __init__(self, api_key: str, base_url: str, timeout_seconds: float = 10.0, log=None):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = ClientTimeout(total=timeout_seconds)
        self.log = log

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def _post(self, body: dict) -> dict:
        try:
            async with ClientSession(timeout=self.timeout) as session:
                async with session.post(self.base_url, params={"key": self.api_key}, json=body) as response:
                    payload = await response.json(content_type=None)
                    if response.status >= 300:
                        message = (payload.get("error") or {}).get("message") if isinstance(payload, dict) else None
                        raise AppError(ErrorCode.GATEWAY_ERROR, f"번역 API 오류: {message or response.status}")
                    return payload
        except ClientError as e:
            raise AppError(ErrorCode.GATEWAY_ERROR, f"번역 API 연결 실패: {e}") from e

    async def translate_many(self, texts: list[str], target: str, source: str = "ko") -> list[str]:
        """texts 순서 그대로 번역 결과를 돌려준다. 빈 문자열은 호출하지 않는다."""
        if not self.configured:
            raise AppError(ErrorCode.BAD_REQUEST, "Google Translate API 키가 설정되지 않았습니다.")

        indexes = [i for i, text in enumerate(texts) if text and text.strip()]
        results = list(texts)
        if not indexes:
            return results

        payload = await self._post({
            "q": [texts[i] for i in indexes],
            "source": source,
            "target": target,
            "format": "text",
        })
        translations = payload.get("data", {}).get("translations", [])
        for i, item in zip(indexes, translations):
            results[i] = item.get("translatedText", texts[i])

        if self.log:
            await self.log.log_info("translate", "번역 완료", {"target": target, "count": len(indexes)})
        return results

    async def translate_text(self, text: str, target: str, source: str = "ko") -> str:
        return (await self.translate_many([text], target, source))[0]
