# storefront/services/payment_gateways.py

"""
결제 게이트웨이 어댑터 (Toss Payments, Stripe).

각 메서드는 외부 HTTP 호출 한 번이며, 성공하면 게이트웨이 JSON 을 그대로 돌려주고
실패하면 PaymentGatewayError 를 던진다. 멱등 키, 재시도, 대사(reconciliation) 는 하지 않는다.
"""

import base64
import hashlib
import hmac
import json
import time
from typing import Any, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout


class PaymentGatewayError(Exception):
    def __init__(self, message: str, code: str = "UNKNOWN_ERROR", status: int | None = None, raw: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.raw = raw


class PaymentGateway:
    """HTTP 호출 공통부. 하위 클래스가 인증 헤더와 에러 파싱을 정한다."""

    name = "base"

    def __init__(self, base_url: str, timeout_seconds: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = ClientTimeout(total=timeout_seconds)

    def auth_headers(self) -> dict:
        return {}

    def parse_error(self, status: int, payload: Any) -> PaymentGatewayError:
        return PaymentGatewayError(f"{self.name} 요청 실패 (HTTP {status})", status=status, raw=payload)

    async def _request(self, method: str, path: str, json_body: dict | None = None, form: list | None = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            async with ClientSession(timeout=self.timeout) as session:
                async with session.request(
                    method, url, json=json_body, data=form, headers=self.auth_headers()
                ) as response:
                    body = await response.text()
                    try:
                        payload = json.loads(body) if body else {}
                    except ValueError:
                        payload = body
                    if response.status >= 300:
                        raise self.parse_error(response.status, payload)
                    if not isinstance(payload, dict):
                        raise PaymentGatewayError(
                            f"{self.name} 응답 형식 오류", code="INVALID_RESPONSE", status=response.status, raw=payload
                        )
                    return payload
        except ClientError as e:
            raise PaymentGatewayError(f"{self.name} 연결 실패: {e}", code="NETWORK_ERROR") from e

    async def create_payment(self, order_id: str, amount: int, order_name: str, **options) -> dict:
        raise NotImplementedError

    async def confirm_payment(self, payment_key: str, order_id: str, amount: int) -> dict:
        raise NotImplementedError

    async def cancel_payment(self, payment_key: str, reason: str, amount: Optional[int] = None) -> dict:
        raise NotImplementedError

    async def get_payment(self, payment_key: str) -> dict:
        raise NotImplementedError


# ────────────── Toss Payments ──────────────
class TossPaymentsGateway(PaymentGateway):
    name = "toss"

    def __init__(self, secret_key: str, base_url: str = "https://api.tosspayments.com/v1", timeout_seconds: float = 10.0):
        super().__init__(base_url, timeout_seconds)
        if not secret_key:
            raise ValueError("TossPayments secret key is required")
        # Basic 인증: base64("{secret_key}:")
        self._auth = base64.b64encode(f"{secret_key}:".encode()).decode()

    def auth_headers(self) -> dict:
        return {
            "Authorization": f"Basic {self._auth}",
            "Content-Type": "application/json",
        }

    def parse_error(self, status: int, payload: Any) -> PaymentGatewayError:
        payload = payload if isinstance(payload, dict) else {}
        return PaymentGatewayError(
            payload.get("message") or f"Toss 요청 실패 (HTTP {status})",
            code=payload.get("code", "UNKNOWN_ERROR"),
            status=status,
            raw=payload,
        )

    async def create_payment(self, order_id: str, amount: int, order_name: str, **options) -> dict:
        body = {
            "method": options.get("method", "CARD"),
            "amount": amount,
            "orderId": order_id,
            "orderName": order_name,
            "successUrl": options.get("success_url"),
            "failUrl": options.get("fail_url"),
        }
        return await self._request("POST", "/payments", json_body={k: v for k, v in body.items() if v is not None})

    async def confirm_payment(self, payment_key: str, order_id: str, amount: int) -> dict:
        return await self._request("POST", "/payments/confirm", json_body={
            "paymentKey": payment_key,
            "orderId": order_id,
            "amount": amount,
        })

    async def cancel_payment(self, payment_key: str, reason: str, amount: Optional[int] = None) -> dict:
        body = {"cancelReason": reason}
        if amount is not None:
            body["cancelAmount"] = amount
        return await self._request("POST", f"/payments/{payment_key}/cancel", json_body=body)

    async def get_payment(self, payment_key: str) -> dict:
        return await self._request("GET", f"/payments/{payment_key}")

    @staticmethod
    def is_paid(payload: dict) -> bool:
        return payload.get("status") == "DONE"


# ────────────── Stripe ──────────────
class StripeGateway(PaymentGateway):
    name = "stripe"
    signature_tolerance = 300

    def __init__(
        self,
        secret_key: str,
        currency: str = "krw",
        webhook_secret: str = "",
        base_url: str = "https://api.stripe.com/v1",
        timeout_seconds: float = 10.0,
    ):
        super().__init__(base_url, timeout_seconds)
        if not secret_key:
            raise ValueError("Stripe secret key is required")
        self.secret_key = secret_key
        self.currency = currency.lower()
        self.webhook_secret = webhook_secret

    def auth_headers(self) -> dict:
        return {"Authorization": f"Bearer {self.secret_key}"}

    def parse_error(self, status: int, payload: Any) -> PaymentGatewayError:
        error = payload.get("error", {}) if isinstance(payload, dict) else {}
        return PaymentGatewayError(
            error.get("message") or f"Stripe 요청 실패 (HTTP {status})",
            code=error.get("code") or error.get("type") or "UNKNOWN_ERROR",
            status=status,
            raw=payload,
        )

    async def create_payment(self, order_id: str, amount: int, order_name: str, **options) -> dict:
        form = [
            ("amount", str(amount)),
            ("currency", self.currency),
            ("description", order_name),
            ("metadata[order_id]", order_id),
            ("automatic_payment_methods[enabled]", "true"),
        ]
        return await self._request("POST", "/payment_intents", form=form)

    async def confirm_payment(self, payment_key: str, order_id: str, amount: int) -> dict:
        return await self._request("POST", f"/payment_intents/{payment_key}/confirm", form=[])

    async def cancel_payment(self, payment_key: str, reason: str, amount: Optional[int] = None) -> dict:
        form = [
            ("payment_intent", payment_key),
            ("reason", "requested_by_customer"),
            ("metadata[reason]", reason),
        ]
        if amount is not None:
            form.append(("amount", str(amount)))
        return await self._request("POST", "/refunds", form=form)

    async def get_payment(self, payment_key: str) -> dict:
        return await self._request("GET", f"/payment_intents/{payment_key}")

    @staticmethod
    def is_paid(payload: dict) -> bool:
        return payload.get("status") == "succeeded"

    def verify_webhook_signature(self, payload: bytes, signature_header: str, now: float | None = None) -> dict:
        """
        Stripe-Signature 헤더(t=...,v1=...) 를 검증하고 이벤트 JSON 을 돌려준다.
        """
        if not self.webhook_secret:
            raise PaymentGatewayError("웹훅 시크릿이 설정되지 않았습니다.", code="WEBHOOK_NOT_CONFIGURED")

        parts = {}
        for item in (signature_header or "").split(","):
            key, _, value = item.strip().partition("=")
            parts.setdefault(key, []).append(value)

        timestamps = parts.get("t") or []
        signatures = parts.get("v1") or []
        if not timestamps or not signatures:
            raise PaymentGatewayError("서명 헤더 형식이 올바르지 않습니다.", code="INVALID_SIGNATURE")

        timestamp = timestamps[0]
        signed = f"{timestamp}.".encode() + payload
        expected = hmac.new(self.webhook_secret.encode(), signed, hashlib.sha256).hexdigest()
        if not any(hmac.compare_digest(expected, sig) for sig in signatures):
            raise PaymentGatewayError("서명이 일치하지 않습니다.", code="INVALID_SIGNATURE")

        now = time.time() if now is None else now
        try:
            age = now - int(timestamp)
        except ValueError:
            raise PaymentGatewayError("서명 시각이 올바르지 않습니다.", code="INVALID_SIGNATURE") from None
        if age > self.signature_tolerance:
            raise PaymentGatewayError("서명 시각이 허용 범위를 벗어났습니다.", code="SIGNATURE_EXPIRED")

        return json.loads(payload)


def build_gateways(settings) -> dict[str, PaymentGateway]:
    """키가 설정된 게이트웨이만 만든다."""
    gateways: dict[str, PaymentGateway] = {}
    if settings.TOSS_SECRET_KEY:
        gateways["toss"] = TossPaymentsGateway(
            settings.TOSS_SECRET_KEY, settings.TOSS_API_URL, settings.HTTP_TIMEOUT_SECONDS
        )
    if settings.STRIPE_SECRET_KEY:
        gateways["stripe"] = StripeGateway(
            settings.STRIPE_SECRET_KEY,
            currency=settings.STRIPE_CURRENCY,
            webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
            base_url=settings.STRIPE_API_URL,
            timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
        )
    return gateways
