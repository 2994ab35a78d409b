import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# .env from project root no matter where uvicorn is started
_PROJ_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJ_ROOT / ".env")

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from slowapi.errors import RateLimitExceeded

from paybridge.api import api_router
from paybridge.core.config import Settings, load_settings
from paybridge.core.errors import (
    GatewayBusinessError,
    InvalidArgumentError,
    PaymentError,
    ValidationError,
)
from paybridge.core.rate_limit import get_client_ip, limiter
from paybridge.logging import setup_logging
from paybridge.services.gateway_client import GatewayClient
from paybridge.services.order import Gateway, OrderService
from paybridge.services.transaction import TransactionService
from paybridge.services.webhook import WebhookHandler

setup_logging(level=logging.INFO)
log = logging.getLogger("paybridge")

SUCCESS_PAGE = """<!DOCTYPE html>
<html>
  <head><title>Pagamento Confirmado</title></head>
  <body style="font-family: sans-serif; text-align: center; padding: 50px;">
    <h1 style="color: #22c55e;">Pagamento Confirmado!</h1>
    <p>Seu pagamento foi processado com sucesso.</p>
    <a href="/" style="color: #4f46e5;">Voltar ao início</a>
  </body>
</html>"""


def _cors_origins_list(settings: Settings) -> list[str]:
    if not settings.cors_origins or settings.cors_origins.strip() == "*":
        return ["*"]
    return [o.strip() for o in settings.cors_origins.split(",") if o.strip()]


def _error_response(request: Request, status_code: int, detail: str, **extra) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    body = {"success": False, "error": detail, **extra}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=status_code, content=body)


def _validation_error_message(exc: RequestValidationError) -> str:
    errs = exc.errors()
    if not errs:
        return "Invalid request."
    first = errs[0]
    loc = [str(p) for p in (first.get("loc") or []) if p != "body"]
    if first.get("type") in ("json_invalid", "model_attributes_type", "dict_type"):
        return "Request body must be a JSON object."
    where = ".".join(loc)
    msg = first.get("msg") or "Invalid request."
    return f"{where}: {msg}" if where else msg


def payment_error_handler(request: Request, exc: PaymentError) -> JSONResponse:
    if isinstance(exc, ValidationError):
        log.info("Rejected input: path=%s errors=%s", request.url.path, exc.errors)
        return _error_response(request, 400, str(exc), errors=exc.errors)
    if isinstance(exc, InvalidArgumentError):
        log.info("Rejected input: path=%s %s", request.url.path, exc)
        return _error_response(request, 400, str(exc))
    log.error("Payment error: path=%s %s: %s", request.url.path, type(exc).__name__, exc, exc_info=exc)
    if isinstance(exc, GatewayBusinessError):
        return _error_response(request, 500, str(exc), code=exc.code)
    return _error_response(request, 500, str(exc))


def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errs = exc.errors()
    log.warning("Request validation error: path=%s method=%s detail=%s", request.url.path, request.method, errs)
    return _error_response(request, 400, _validation_error_message(exc))


def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    log.warning("Rate limit exceeded: ip=%s path=%s", get_client_ip(request), request.url.path)
    return _error_response(request, 429, "Too many requests. Please wait a minute.")


def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(request, exc.status_code, exc.detail if isinstance(exc.detail, str) else str(exc.detail))


def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled exception: path=%s %s", request.url.path, exc, exc_info=True)
    return _error_response(request, 500, "Unexpected server error.")


def create_app(
    settings: Settings | None = None,
    gateway: Gateway | None = None,
    webhook_handler: WebhookHandler | None = None,
) -> FastAPI:
    """
    Builds the app from an explicit Settings object; services are created once here and
    shared through app.state. Missing credentials raise ConfigurationError (fatal).
    Run: uvicorn paybridge.main:create_app --factory
    """
    settings = settings or load_settings()
    gateway = gateway or GatewayClient(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info(
            "paybridge ready: environment=%s endpoints=GET /api/config, POST /api/create-order, "
            "GET /api/query-transaction/{trade_no}, POST /api/webhook/payment",
            settings.pagsmile_environment,
        )
        log.warning("Webhook deliveries are not signature-verified; confirm trades via /trade/query before fulfilment.")
        yield

    app = FastAPI(
        title="paybridge",
        description="Pagsmile checkout backend: orders, status queries, payment webhooks",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.limiter = limiter
    app.state.order_service = OrderService(gateway, settings)
    app.state.transaction_service = TransactionService(gateway, settings)
    app.state.webhook_handler = webhook_handler or WebhookHandler()

    app.add_exception_handler(PaymentError, payment_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.middleware("http")
    async def request_id_and_latency(request: Request, call_next):
        request.state.request_id = str(uuid.uuid4())
        start = time.perf_counter()
        response = await call_next(request)
        latency_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request.state.request_id
        log.info(
            "request_id=%s method=%s path=%s status=%s latency_ms=%.2f",
            request.state.request_id,
            request.method,
            request.url.path,
            response.status_code,
            latency_ms,
        )
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins_list(settings),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router)

    @app.get("/health")
    def health():
        return {"status": "ok", "env": settings.pagsmile_environment}

    @app.get("/success", response_class=HTMLResponse)
    def success_page():
        """Default PAGSMILE_RETURN_URL target."""
        return HTMLResponse(SUCCESS_PAGE)

    return app
