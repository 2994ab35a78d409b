"""Client for this service's /api endpoints: what a checkout page calls, usable as the poller's status source."""
import json
import logging
from http.client import HTTPException as HttpProtocolError
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request as UrlRequest
from urllib.request import urlopen

from paybridge.core.errors import GatewayHttpError, GatewayResponseError, GatewayUnreachableError
from paybridge.schemas.order import CustomerInfo, SdkConfig

logger = logging.getLogger(__name__)


class CheckoutClient:
    def __init__(self, base_url: str, timeout: float = 20.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _call(self, method: str, path: str, body: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        req = UrlRequest(
            url,
            data=json.dumps(body).encode() if body is not None else None,
            method=method,
            headers={"Content-Type": "application/json"},
        )
        try:
            with urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except HTTPError as e:
            text = e.read().decode(errors="replace") if e.fp else ""
            raise GatewayHttpError(e.code, text) from e
        except (URLError, OSError, HttpProtocolError) as e:
            raise GatewayUnreachableError(f"{method} {url} failed: {getattr(e, 'reason', e)}") from e
        try:
            return json.loads(raw.decode())
        except ValueError as e:
            raise GatewayResponseError(f"{method} {url} returned non-JSON body") from e

    def fetch_config(self) -> SdkConfig:
        return SdkConfig.model_validate(self._call("GET", "/api/config"))

    def create_order(
        self,
        amount: str,
        customer_info: CustomerInfo,
        device: dict[str, str] | None = None,
        return_url: str | None = None,
    ) -> dict[str, Any]:
        """device: userAgent, browserLanguage, browserColorDepth, browserScreenHeight/Width, browserTimeZone."""
        body: dict[str, Any] = {
            "amount": amount,
            "customerInfo": customer_info.model_dump(by_alias=True),
        }
        if return_url:
            body["returnUrl"] = return_url
        if device:
            body.update(device)
        result = self._call("POST", "/api/create-order", body)
        if not result.get("success") or not result.get("prepay_id"):
            raise GatewayResponseError(result.get("error") or "Order creation failed")
        if not result.get("trade_no"):
            raise GatewayResponseError("trade_no missing from create-order response")
        return result

    def query_status(self, trade_no: str) -> str:
        data = self._call("GET", f"/api/query-transaction/{quote(trade_no, safe='')}")
        status = data.get("trade_status") if isinstance(data, dict) else None
        logger.info("Status received: trade_no=%s trade_status=%s", trade_no, status)
        return str(status)
