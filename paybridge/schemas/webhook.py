from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class WebhookPayload(BaseModel):
    """Point-in-time notification pushed by the gateway to PAGSMILE_NOTIFY_URL."""

    model_config = ConfigDict(extra="allow")

    trade_no: str
    out_trade_no: str | None = None
    trade_status: str
    order_amount: float | str | None = None
    order_currency: str | None = None
    method: str | None = None

    @field_validator("trade_no", "trade_status", mode="before")
    @classmethod
    def not_blank(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            v = str(v)
        if not isinstance(v, str) or not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class PaymentEvent(BaseModel):
    """Normalized webhook event handed to the success/failure callbacks. Dumps as tradeNo, outTradeNo, ..."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    trade_no: str
    out_trade_no: str | None = None
    amount: float | str | None = None
    currency: str | None = None
    method: str | None = None
    status: str
