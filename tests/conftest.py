# tests/conftest.py

import os
import tempfile

# 설정은 import 시점에 읽히므로 앱을 불러오기 전에 환경을 고정한다
_TMP_DIR = tempfile.mkdtemp(prefix="storefront-tests-")
DB_PATH = os.path.join(_TMP_DIR, "test.db")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{DB_PATH}"
os.environ["AUTH_SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_LOGIN"] = "admin"
os.environ["ADMIN_PASSWORD"] = "admin"
os.environ["CACHE_REFRESH_INTERVAL"] = "0"
os.environ["LOG_PRINT"] = "0"
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "log")
os.environ["TOSS_SECRET_KEY"] = ""
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["GOOGLE_TRANSLATE_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from storefront.config import settings
from storefront.utils.database import AsyncSessionLocal, init_db
from storefront.services.language_manager import LanguageManager


class FakeGateway:
    """게이트웨이 대역. 호출을 기록하고 정해진 응답이나 예외를 돌려준다."""

    def __init__(self, name="toss", paid_status="DONE"):
        self.name = name
        self.paid_status = paid_status
        self.calls = []
        self.fail_with = None

    def _record(self, method, **kwargs):
        self.calls.append((method, kwargs))
        if self.fail_with is not None:
            raise self.fail_with

    async def create_payment(self, order_id, amount, order_name, **options):
        self._record("create", order_id=order_id, amount=amount, order_name=order_name)
        return {"paymentKey": f"pk_{order_id}", "status": "READY", "checkout": {"url": "https://pay.example/checkout"}}

    async def confirm_payment(self, payment_key, order_id, amount):
        self._record("confirm", payment_key=payment_key, order_id=order_id, amount=amount)
        return {"paymentKey": payment_key, "orderId": order_id, "totalAmount": amount, "status": self.paid_status}

    async def cancel_payment(self, payment_key, reason, amount=None):
        self._record("cancel", payment_key=payment_key, reason=reason, amount=amount)
        return {"paymentKey": payment_key, "status": "CANCELED"}

    async def get_payment(self, payment_key):
        self._record("get", payment_key=payment_key)
        return {"paymentKey": payment_key, "status": self.paid_status}

    def is_paid(self, payload):
        return payload.get("status") == "DONE"


class FakeTranslator:
    configured = True

    def __init__(self):
        self.calls = []

    async def translate_many(self, texts, target, source="ko"):
        self.calls.append((list(texts), target, source))
        return [f"[{target}] {text}" for text in texts]

    async def translate_text(self, text, target, source="ko"):
        return (await self.translate_many([text], target, source))[0]


@pytest.fixture(autouse=True)
def fresh_environment(tmp_path, monkeypatch):
    """테스트마다 빈 DB 와 빈 캐시/i18n 디렉터리."""
    if os.path.exists(DB_PATH):
        os.remove(DB_PATH)
    monkeypatch.setattr(settings, "UI_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setattr(settings, "I18N_DIR", str(tmp_path / "i18n"))
    yield


@pytest.fixture
async def db():
    await init_db()
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
def language_manager():
    return LanguageManager(max_active=3, default_language="ko")


@pytest.fixture
def client():
    from storefront.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def fake_gateway(client):
    gateway = FakeGateway()
    client.app.state.gateways = {"toss": gateway}
    return gateway


@pytest.fixture
def fake_translator(client):
    translator = FakeTranslator()
    client.app.state.translator = translator
    return translator


def login(client, username, password) -> dict:
    response = client.post("/api/auth/token", data={"username": username, "password": password})
    assert response.status_code == 200, response.text
    # 쿠키가 남으면 이후 요청이 모두 같은 사용자로 인증된다
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    return login(client, "admin", "admin")


@pytest.fixture
def user_headers(client):
    response = client.post("/api/auth/register", json={"login": "buyer", "password": "secret", "name": "구매자"})
    assert response.status_code == 201, response.text
    return login(client, "buyer", "secret")


@pytest.fixture
def other_user_headers(client):
    response = client.post("/api/auth/register", json={"login": "other", "password": "secret"})
    assert response.status_code == 201, response.text
    return login(client, "other", "secret")


@pytest.fixture
def make_product(client, admin_headers):
    def _make(slug="kimchi", name="김치", price=12000, stock=10, **extra):
        response = client.post(
            "/api/admin/products",
            json={"slug": slug, "name": name, "price": price, "stock": stock, **extra},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _make
