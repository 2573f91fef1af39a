# tests/test_payment_gateways.py

import base64
import hashlib
import hmac
import json
import time
from types import SimpleNamespace

import pytest
from aiohttp import web
from aiohttp import test_utils

from storefront.errors import ErrorCode
from storefront.services.payment import gateway_error_to_app_error
from storefront.services.payment_gateways import (
    PaymentGatewayError,
    StripeGateway,
    TossPaymentsGateway,
    build_gateways,
)


def record_requests(gateway, response=None):
    """_request 를 가로채 호출 인자만 남긴다."""
    calls = []

    async def fake_request(method, path, json_body=None, form=None):
        calls.append({"method": method, "path": path, "json": json_body, "form": form})
        return response or {}

    gateway._request = fake_request
    return calls


@pytest.fixture
async def gateway_server():
    """aiohttp 테스트 서버를 띄우고 base_url 을 돌려준다."""
    servers = []

    async def start(routes):
        app = web.Application()
        app.add_routes(routes)
        server = test_utils.TestServer(app)
        await server.start_server()
        servers.append(server)
        return str(server.make_url("/"))

    yield start
    for server in servers:
        await server.close()


def sign(secret: str, payload: bytes, timestamp: int) -> str:
    digest = hmac.new(secret.encode(), f"{timestamp}.".encode() + payload, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


# ────────────── Toss ──────────────
def test_toss_uses_basic_auth():
    gateway = TossPaymentsGateway("test_sk_123")
    expected = base64.b64encode(b"test_sk_123:").decode()

    assert gateway.auth_headers()["Authorization"] == f"Basic {expected}"


def test_toss_requires_secret_key():
    with pytest.raises(ValueError):
        TossPaymentsGateway("")


async def test_toss_confirm_and_cancel_requests():
    gateway = TossPaymentsGateway("test_sk")
    calls = record_requests(gateway, {"status": "DONE"})

    payload = await gateway.confirm_payment("pk_1", "ORD-1", 15000)
    await gateway.cancel_payment("pk_1", "고객 요청", 5000)
    await gateway.get_payment("pk_1")

    assert gateway.is_paid(payload)
    assert calls[0] == {
        "method": "POST",
        "path": "/payments/confirm",
        "json": {"paymentKey": "pk_1", "orderId": "ORD-1", "amount": 15000},
        "form": None,
    }
    assert calls[1]["path"] == "/payments/pk_1/cancel"
    assert calls[1]["json"] == {"cancelReason": "고객 요청", "cancelAmount": 5000}
    assert calls[2]["method"] == "GET"


def test_toss_error_parsing():
    error = TossPaymentsGateway("sk").parse_error(400, {"code": "REJECT_CARD_PAYMENT", "message": "한도 초과"})

    assert isinstance(error, PaymentGatewayError)
    assert error.code == "REJECT_CARD_PAYMENT"
    assert error.message == "한도 초과"
    assert error.status == 400


# ────────────── Stripe ──────────────
async def test_stripe_create_is_form_encoded():
    gateway = StripeGateway("sk_test", currency="KRW")
    calls = record_requests(gateway, {"id": "pi_1", "client_secret": "secret"})

    await gateway.create_payment("ORD-1", 15000, "김치 외 1건")
    await gateway.cancel_payment("pi_1", "고객 요청")

    form = dict(calls[0]["form"])
    assert calls[0]["path"] == "/payment_intents"
    assert form["amount"] == "15000"
    assert form["currency"] == "krw"
    assert form["metadata[order_id]"] == "ORD-1"
    assert calls[1]["path"] == "/refunds"
    assert "amount" not in dict(calls[1]["form"])
    assert gateway.auth_headers() == {"Authorization": "Bearer sk_test"}


def test_stripe_error_parsing():
    error = StripeGateway("sk").parse_error(402, {"error": {"type": "card_error", "code": "card_declined", "message": "declined"}})

    assert error.code == "card_declined"
    assert error.status == 402


def test_stripe_webhook_signature_roundtrip():
    gateway = StripeGateway("sk", webhook_secret="whsec_test")
    payload = json.dumps({"type": "payment_intent.succeeded", "data": {"object": {"id": "pi_1"}}}).encode()
    now = int(time.time())

    event = gateway.verify_webhook_signature(payload, sign("whsec_test", payload, now), now=now)

    assert event["type"] == "payment_intent.succeeded"


def test_stripe_webhook_rejects_bad_signature():
    gateway = StripeGateway("sk", webhook_secret="whsec_test")
    payload = b'{"type": "payment_intent.succeeded"}'
    now = int(time.time())

    with pytest.raises(PaymentGatewayError) as exc:
        gateway.verify_webhook_signature(payload, sign("other_secret", payload, now), now=now)
    assert exc.value.code == "INVALID_SIGNATURE"

    with pytest.raises(PaymentGatewayError):
        gateway.verify_webhook_signature(payload, "garbage", now=now)


def test_stripe_webhook_rejects_old_timestamp():
    gateway = StripeGateway("sk", webhook_secret="whsec_test")
    payload = b"{}"
    signed_at = int(time.time()) - 600

    with pytest.raises(PaymentGatewayError) as exc:
        gateway.verify_webhook_signature(payload, sign("whsec_test", payload, signed_at))
    assert exc.value.code == "SIGNATURE_EXPIRED"


def test_build_gateways_only_configured():
    settings = SimpleNamespace(
        TOSS_SECRET_KEY="sk_toss",
        TOSS_API_URL="https://api.tosspayments.com/v1",
        STRIPE_SECRET_KEY="",
        STRIPE_API_URL="https://api.stripe.com/v1",
        STRIPE_CURRENCY="krw",
        STRIPE_WEBHOOK_SECRET="",
        HTTP_TIMEOUT_SECONDS=5.0,
    )

    gateways = build_gateways(settings)

    assert list(gateways) == ["toss"]
    assert isinstance(gateways["toss"], TossPaymentsGateway)


# ────────────── HTTP ──────────────
async def test_toss_confirm_over_http(gateway_server):
    received = {}

    async def confirm(request):
        received["auth"] = request.headers.get("Authorization")
        received["body"] = await request.json()
        return web.json_response({"paymentKey": "pk_1", "status": "DONE"})

    base_url = await gateway_server([web.post("/payments/confirm", confirm)])
    gateway = TossPaymentsGateway("test_sk", base_url=base_url)

    payload = await gateway.confirm_payment("pk_1", "ORD-1", 15000)

    assert gateway.is_paid(payload)
    assert received["auth"] == gateway.auth_headers()["Authorization"]
    assert received["body"] == {"paymentKey": "pk_1", "orderId": "ORD-1", "amount": 15000}


async def test_toss_rejection_maps_to_payment_failed(gateway_server):
    async def confirm(request):
        return web.json_response({"code": "REJECT_CARD_PAYMENT", "message": "한도 초과"}, status=400)

    base_url = await gateway_server([web.post("/payments/confirm", confirm)])
    gateway = TossPaymentsGateway("test_sk", base_url=base_url)

    with pytest.raises(PaymentGatewayError) as exc:
        await gateway.confirm_payment("pk_1", "ORD-1", 15000)

    assert exc.value.code == "REJECT_CARD_PAYMENT"
    assert exc.value.status == 400
    error = gateway_error_to_app_error(exc.value)
    assert error.code == ErrorCode.PAYMENT_FAILED
    assert error.status_code == 402


async def test_stripe_server_error_with_html_body(gateway_server):
    received = {}

    async def create(request):
        received.update(await request.post())
        return web.Response(text="<html>Bad Gateway</html>", status=502, content_type="text/html")

    base_url = await gateway_server([web.post("/payment_intents", create)])
    gateway = StripeGateway("sk_test", base_url=base_url)

    with pytest.raises(PaymentGatewayError) as exc:
        await gateway.create_payment("ORD-1", 15000, "김치")

    assert exc.value.status == 502
    assert exc.value.code == "UNKNOWN_ERROR"
    assert exc.value.raw == "<html>Bad Gateway</html>"
    assert received["amount"] == "15000"
    assert gateway_error_to_app_error(exc.value).code == ErrorCode.GATEWAY_ERROR


async def test_success_status_with_non_json_body(gateway_server):
    async def read(request):
        return web.Response(text="ok")

    base_url = await gateway_server([web.get("/payments/pk_1", read)])
    gateway = TossPaymentsGateway("test_sk", base_url=base_url)

    with pytest.raises(PaymentGatewayError) as exc:
        await gateway.get_payment("pk_1")

    assert exc.value.code == "INVALID_RESPONSE"


async def test_unreachable_gateway_is_network_error():
    server = test_utils.TestServer(web.Application())
    await server.start_server()
    base_url = str(server.make_url("/"))
    await server.close()
    gateway = TossPaymentsGateway("test_sk", base_url=base_url, timeout_seconds=2.0)

    with pytest.raises(PaymentGatewayError) as exc:
        await gateway.get_payment("pk_1")

    assert exc.value.code == "NETWORK_ERROR"
    assert exc.value.status is None
    assert gateway_error_to_app_error(exc.value).code == ErrorCode.GATEWAY_ERROR
