from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from paybridge.schemas.order import GatewayEnvelope


class TradeStatus(str, Enum):
    """Trade states owned by the gateway."""

    INITIAL = "INITIAL"
    PROCESSING = "PROCESSING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


TERMINAL_FAILURE_STATUSES = frozenset({TradeStatus.FAILED.value, TradeStatus.CANCELLED.value})


class QueryRequest(BaseModel):
    app_id: str
    timestamp: str
    trade_no: str


class QueryCustomer(BaseModel):
    model_config = ConfigDict(extra="allow")

    identification: dict[str, Any] | None = None
    username: str | None = None
    email: str | None = None
    phone: str | None = None
    buyer_id: str | None = None


class QueryTransactionResponse(GatewayEnvelope):
    """
    Body of POST /trade/query. trade_status stays a plain string: the gateway may
    answer with values outside TradeStatus (e.g. PENDING) and pollers treat those as non-terminal.
    Unknown keys are kept so the route can return the payload as received.
    """

    trade_no: str
    out_trade_no: str | None = None
    method: str | None = None
    trade_status: str
    order_currency: str | None = None
    order_amount: float | str | None = None
    customer: QueryCustomer | None = None
    create_time: str | None = None
    update_time: str | None = None
