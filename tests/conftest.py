"""Pytest fixtures: explicit test settings, scripted fake gateway, TestClient."""
import pytest
from fastapi.testclient import TestClient

from paybridge.core.config import Settings
from paybridge.core.rate_limit import limiter
from paybridge.main import create_app
from paybridge.services.webhook import WebhookHandler


class FakeGateway:
    """Stands in for GatewayClient. responses[endpoint] is a dict, an exception, or a list of them (consumed in order)."""

    def __init__(self, responses: dict | None = None):
        self.responses = responses or {}
        self.calls: list[tuple[str, str, dict | None]] = []

    def _next(self, endpoint: str):
        resp = self.responses[endpoint]
        if isinstance(resp, list):
            resp = resp.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp

    def post(self, endpoint: str, body: dict) -> dict:
        self.calls.append(("POST", endpoint, body))
        return self._next(endpoint)

    def get(self, endpoint: str) -> dict:
        self.calls.append(("GET", endpoint, None))
        return self._next(endpoint)


ORDER_OK = {
    "code": "10000",
    "msg": "Success",
    "trade_no": "TRADE_123",
    "out_trade_no": "ORDER_1_abc",
    "prepay_id": "PREPAY_XYZ",
}

QUERY_OK = {
    "code": "10000",
    "msg": "Success",
    "trade_no": "TRADE_123",
    "out_trade_no": "ORDER_1_abc",
    "method": "CreditCard",
    "trade_status": "SUCCESS",
    "order_currency": "BRL",
    "order_amount": 100.5,
    "create_time": "2026-10-19 10:00:00",
    "update_time": "2026-10-19 10:00:30",
}

VALID_CUSTOMER = {
    "name": "Maria Silva",
    "email": "maria@example.com",
    "phone": "11987654321",
    "cpf": "12345678909",
    "zipCode": "01310100",
    "city": "São Paulo",
    "state": "SP",
    "address": "Avenida Paulista, 1578",
}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        pagsmile_app_id="app_test_1234567890",
        pagsmile_security_key="sk_test_secret",
        pagsmile_public_key="pk_test_public",
        pagsmile_environment="sandbox",
        pagsmile_notify_url="https://shop.example.com/api/webhook/payment",
        pagsmile_return_url="https://shop.example.com/success",
    )


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway({"/trade/create": dict(ORDER_OK), "/trade/query": dict(QUERY_OK)})


@pytest.fixture
def webhook_events() -> dict[str, list]:
    return {"success": [], "failed": []}


@pytest.fixture(autouse=True)
def _reset_rate_limit():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def client(settings, gateway, webhook_events):
    handler = WebhookHandler(
        on_success=webhook_events["success"].append,
        on_failed=webhook_events["failed"].append,
    )
    app = create_app(settings, gateway=gateway, webhook_handler=handler)
    with TestClient(app) as c:
        yield c
