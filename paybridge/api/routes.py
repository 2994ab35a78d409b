import logging
import time
from typing import Any

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from paybridge.api.deps import get_order_service, get_settings, get_transaction_service, get_webhook_handler
from paybridge.core.config import Settings
from paybridge.core.errors import InvalidArgumentError
from paybridge.core.rate_limit import CREATE_ORDER_RATE_LIMIT, forwarded_ip, limiter
from paybridge.schemas.order import CreatePaymentInput, SdkConfig
from paybridge.services.order import OrderService
from paybridge.services.transaction import TransactionService
from paybridge.services.webhook import WebhookHandler

log = logging.getLogger("paybridge")

router = APIRouter(prefix="/api", tags=["payment"])


@router.get("/config")
def get_config(settings: Settings = Depends(get_settings)) -> SdkConfig:
    """Init parameters for the browser tokenization SDK. Never exposes the security key."""
    return SdkConfig(
        app_id=settings.pagsmile_app_id,
        public_key=settings.pagsmile_public_key,
        env=settings.pagsmile_environment,
    )


@router.post("/create-order")
@limiter.limit(CREATE_ORDER_RATE_LIMIT)
def create_order(
    request: Request,
    body: CreatePaymentInput,
    orders: OrderService = Depends(get_order_service),
) -> dict[str, Any]:
    if not body.amount or body.customer_info is None:
        raise InvalidArgumentError("Missing required fields: amount and customerInfo")
    if not body.ip_address:
        ip = forwarded_ip(request)
        if ip:
            body = body.model_copy(update={"ip_address": ip})

    t0 = time.perf_counter()
    result = orders.create_order(body)
    log.info("Order created in %.0fms: trade_no=%s", (time.perf_counter() - t0) * 1000, result.trade_no)
    return {
        "success": True,
        "prepay_id": result.prepay_id,
        "trade_no": result.trade_no,
        "out_trade_no": result.out_trade_no,
    }


@router.get("/query-transaction/{trade_no}")
def query_transaction(
    trade_no: str,
    transactions: TransactionService = Depends(get_transaction_service),
) -> dict[str, Any]:
    """Gateway query payload as received (trade_status etc.)."""
    result = transactions.query_transaction(trade_no)
    return result.model_dump(exclude_unset=True)


@router.post("/webhook/payment")
async def payment_webhook(request: Request, handler: WebhookHandler = Depends(get_webhook_handler)):
    """
    Pagsmile notification URL. Always answers 200, even on failure: a non-2xx makes the
    gateway redeliver. Failures are logged with the stack trace for follow-up.
    """
    try:
        payload = await request.json()
        event = await run_in_threadpool(handler.process_webhook, payload)
    except Exception as e:
        log.exception("Webhook processing failed: path=%s error=%s", request.url.path, e)
        return {"result": "error", "message": str(e)}
    log.info("Webhook processed: trade_no=%s status=%s", event.trade_no, event.status)
    return {"result": "success"}
