"""CheckoutClient against a fake urlopen; used as the poller's status source."""
import io
import json
from http.client import BadStatusLine
from urllib.error import HTTPError, URLError

import pytest

from conftest import VALID_CUSTOMER
from paybridge.core.errors import GatewayHttpError, GatewayResponseError, GatewayUnreachableError
from paybridge.schemas.order import CustomerInfo
from paybridge.services import checkout_client
from paybridge.services.checkout_client import CheckoutClient
from paybridge.services.reconcile import ReconcileStatus, StatusPoller


class _Resp:
    def __init__(self, payload):
        self._body = json.dumps(payload).encode()

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def backend(monkeypatch):
    """Scripted backend: list of payloads/exceptions returned in order; records requests."""
    script: list = []
    requests: list = []

    def fake_urlopen(req, timeout=None):
        requests.append(req)
        item = script.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, _Resp):
            return item
        return _Resp(item)

    monkeypatch.setattr(checkout_client, "urlopen", fake_urlopen)
    return script, requests


def test_fetch_config(backend):
    script, requests = backend
    script.append({"app_id": "a", "public_key": "p", "env": "sandbox", "region_code": "BRA"})
    config = CheckoutClient("http://localhost:3000/").fetch_config()
    assert config.app_id == "a"
    assert requests[0].full_url == "http://localhost:3000/api/config"


def test_create_order_sends_camel_case(backend):
    script, requests = backend
    script.append({"success": True, "prepay_id": "P", "trade_no": "T", "out_trade_no": "O"})
    result = CheckoutClient("http://localhost:3000").create_order(
        "10.00",
        CustomerInfo.model_validate(VALID_CUSTOMER),
        device={"userAgent": "UA", "browserTimeZone": "180"},
        return_url="http://localhost:3000/",
    )
    assert result["trade_no"] == "T"
    sent = json.loads(requests[0].data)
    assert sent["customerInfo"]["zipCode"] == "01310100"
    assert sent["userAgent"] == "UA"
    assert sent["returnUrl"] == "http://localhost:3000/"


def test_create_order_without_trade_no(backend):
    script, _ = backend
    script.append({"success": True, "prepay_id": "P"})
    with pytest.raises(GatewayResponseError):
        CheckoutClient("http://localhost:3000").create_order("10.00", CustomerInfo.model_validate(VALID_CUSTOMER))


def test_create_order_error_body(backend):
    script, _ = backend
    body = io.BytesIO(b'{"success": false, "error": "Pagsmile error: 40002 - Invalid amount"}')
    script.append(HTTPError("http://localhost:3000/api/create-order", 500, "Internal", {}, body))
    with pytest.raises(GatewayHttpError) as exc:
        CheckoutClient("http://localhost:3000").create_order("0", CustomerInfo.model_validate(VALID_CUSTOMER))
    assert exc.value.status == 500
    assert "Invalid amount" in exc.value.body


def test_query_status_quotes_trade_no(backend):
    script, requests = backend
    script.append({"trade_status": "PROCESSING"})
    assert CheckoutClient("http://localhost:3000").query_status("T/1") == "PROCESSING"
    assert requests[0].full_url == "http://localhost:3000/api/query-transaction/T%2F1"


def test_poller_over_checkout_client_survives_transient_errors(backend):
    script, requests = backend
    script.extend(
        [
            URLError("connection refused"),
            HTTPError("http://localhost:3000/api/query-transaction/T1", 500, "err", {}, io.BytesIO(b"{}")),
            {"trade_status": "PROCESSING"},
            {"trade_status": "SUCCESS"},
        ]
    )
    client = CheckoutClient("http://localhost:3000")
    poller = StatusPoller(client.query_status, sleep=lambda s: None)
    assert poller.poll("T1") == ReconcileStatus.SUCCESS
    assert len(requests) == 4


def test_unreachable(backend):
    script, _ = backend
    script.append(URLError("refused"))
    with pytest.raises(GatewayUnreachableError):
        CheckoutClient("http://localhost:3000").query_status("T1")


class _RawResp(_Resp):
    def __init__(self, body: bytes):
        self._body = body


def test_non_utf8_body_is_response_error(backend):
    script, _ = backend
    script.append(_RawResp(b"\xff\xfe"))
    with pytest.raises(GatewayResponseError):
        CheckoutClient("http://localhost:3000").query_status("T1")


def test_poller_survives_garbled_status_line(backend):
    script, requests = backend
    script.extend([BadStatusLine("garbage"), {"trade_status": "SUCCESS"}])
    poller = StatusPoller(CheckoutClient("http://localhost:3000").query_status, sleep=lambda s: None)
    assert poller.poll("T1") == ReconcileStatus.SUCCESS
    assert len(requests) == 2
