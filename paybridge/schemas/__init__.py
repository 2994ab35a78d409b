from .order import (
    CreatePaymentInput,
    CustomerInfo,
    OrderRequest,
    OrderResponse,
    SdkConfig,
)
from .transaction import QueryTransactionResponse, TradeStatus
from .webhook import PaymentEvent, WebhookPayload

__all__ = [
    "CreatePaymentInput",
    "CustomerInfo",
    "OrderRequest",
    "OrderResponse",
    "PaymentEvent",
    "QueryTransactionResponse",
    "SdkConfig",
    "TradeStatus",
    "WebhookPayload",
]
