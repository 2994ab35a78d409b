"""Pagsmile HTTP client: Basic auth, JSON in/out, uniform error translation. No retries here."""
import base64
import json
import logging
import time
from http.client import HTTPException as HttpProtocolError
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request as UrlRequest
from urllib.request import urlopen

from paybridge.core.config import Settings
from paybridge.core.errors import GatewayHttpError, GatewayResponseError, GatewayUnreachableError

logger = logging.getLogger(__name__)


def build_auth_header(app_id: str, security_key: str) -> str:
    encoded = base64.b64encode(f"{app_id}:{security_key}".encode()).decode()
    return f"Basic {encoded}"


class GatewayClient:
    def __init__(self, settings: Settings):
        self.base_url = settings.pagsmile_api_base_url
        self.timeout = settings.gateway_timeout_seconds
        self._auth_header = build_auth_header(settings.pagsmile_app_id, settings.pagsmile_security_key)

    def post(self, endpoint: str, body: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", endpoint, json.dumps(body).encode())

    def get(self, endpoint: str) -> dict[str, Any]:
        return self._request("GET", endpoint, None)

    def _request(self, method: str, endpoint: str, data: bytes | None) -> dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        req = UrlRequest(
            url,
            data=data,
            method=method,
            headers={
                "Content-Type": "application/json",
                "Authorization": self._auth_header,
            },
        )
        logger.info("Pagsmile request: %s %s auth=%s...", method, url, self._auth_header[:20])
        t0 = time.perf_counter()
        try:
            with urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
                status = resp.status
        except HTTPError as e:
            body = e.read().decode(errors="replace") if e.fp else ""
            logger.error("Pagsmile API error: status=%s body=%s", e.code, body[:500])
            raise GatewayHttpError(e.code, body) from e
        except (URLError, OSError, HttpProtocolError) as e:
            reason = getattr(e, "reason", e)
            logger.error("Pagsmile unreachable: %s %s: %s", method, url, reason)
            raise GatewayUnreachableError(f"Pagsmile unreachable: {reason}") from e

        latency_ms = (time.perf_counter() - t0) * 1000
        logger.info("Pagsmile response: status=%s latency_ms=%.2f", status, latency_ms)
        preview = raw[:200].decode(errors="replace")
        try:
            # UnicodeDecodeError is a ValueError
            result = json.loads(raw.decode())
        except ValueError as e:
            raise GatewayResponseError(f"Pagsmile returned non-JSON body: {preview}") from e
        if not isinstance(result, dict):
            raise GatewayResponseError(f"Pagsmile returned unexpected body: {preview}")
        return result
