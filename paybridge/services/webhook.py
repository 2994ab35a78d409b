"""
Payment result notifications from the gateway.

Deliveries are NOT authenticated: Pagsmile notifications carry no signature that this
service checks, so anyone who can reach the notify URL can forge one. Callbacks must not
grant value on the webhook alone; confirm with TransactionService.query_transaction first.
"""
import logging
from typing import Any, Callable

from pydantic import ValidationError as PydanticValidationError

from paybridge.core.errors import WebhookPayloadError
from paybridge.schemas.transaction import TradeStatus
from paybridge.schemas.webhook import PaymentEvent, WebhookPayload

logger = logging.getLogger(__name__)

PaymentCallback = Callable[[PaymentEvent], None]


def log_payment_approved(event: PaymentEvent) -> None:
    logger.info("PAYMENT APPROVED: %s", event.model_dump(by_alias=True))


def log_payment_failed(event: PaymentEvent) -> None:
    logger.warning("PAYMENT FAILED: %s", event.model_dump(by_alias=True))


def parse_webhook_payload(payload: Any) -> WebhookPayload:
    if not isinstance(payload, dict):
        raise WebhookPayloadError(f"Webhook payload must be a JSON object, got {type(payload).__name__}")
    try:
        return WebhookPayload.model_validate(payload)
    except PydanticValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise WebhookPayloadError(f"Malformed webhook payload: {fields}") from e


def to_payment_event(payload: WebhookPayload) -> PaymentEvent:
    return PaymentEvent(
        trade_no=payload.trade_no,
        out_trade_no=payload.out_trade_no,
        amount=payload.order_amount,
        currency=payload.order_currency,
        method=payload.method,
        status=payload.trade_status,
    )


class WebhookHandler:
    def __init__(
        self,
        on_success: PaymentCallback = log_payment_approved,
        on_failed: PaymentCallback = log_payment_failed,
    ):
        self.on_success = on_success
        self.on_failed = on_failed

    def process_webhook(self, payload: Any) -> PaymentEvent:
        """Exactly one callback per delivery. Parse and callback errors propagate; the route acknowledges anyway."""
        parsed = parse_webhook_payload(payload)
        event = to_payment_event(parsed)
        logger.warning(
            "Unauthenticated webhook accepted: trade_no=%s status=%s (no signature verification)",
            event.trade_no,
            event.status,
        )
        if event.status == TradeStatus.SUCCESS.value:
            self.on_success(event)
        else:
            self.on_failed(event)
        return event
