from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

SUCCESS_CODE = "10000"


def _to_str(v):
    """Browsers send some of these as numbers (amount, cpf, screen size)."""
    if v is None:
        return v
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


class CustomerInfo(BaseModel):
    """Checkout form data. Immutable; format rules live in services.order_builder."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str = ""
    email: str = ""
    phone: str = ""
    cpf: str = ""
    zip_code: str = ""
    city: str = ""
    state: str = ""
    address: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def coerce_str(cls, v):
        v = _to_str(v)
        return "" if v is None else v


class CreatePaymentInput(BaseModel):
    """POST /api/create-order body. amount/customer_info are checked by the route (400 when missing)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    amount: str | None = None
    customer_info: CustomerInfo | None = None
    return_url: str | None = None
    user_agent: str | None = None
    ip_address: str | None = None
    browser_language: str | None = None
    browser_color_depth: str | None = None
    browser_screen_height: str | None = None
    browser_screen_width: str | None = None
    browser_time_zone: str | None = None

    @field_validator(
        "amount",
        "browser_color_depth",
        "browser_screen_height",
        "browser_screen_width",
        "browser_time_zone",
        mode="before",
    )
    @classmethod
    def coerce_str(cls, v):
        return _to_str(v)


class CustomerIdentification(BaseModel):
    type: Literal["CPF", "CNPJ"] = "CPF"
    number: str


class Customer(BaseModel):
    identify: CustomerIdentification
    name: str
    email: str
    phone: str


class Address(BaseModel):
    zip_code: str
    state: str
    city: str
    street_name: str
    street_number: str


class DeviceInfo(BaseModel):
    """Anti-fraud / 3DS fingerprint. Same values under browser_* (gateway) and http_browser_* (legacy) names."""

    user_agent: str
    ip_address: str | None = None
    browser_language: str | None = None
    browser_color_depth: str | None = None
    browser_screen_height: str | None = None
    browser_screen_width: str | None = None
    browser_time_zone: str | None = None
    http_browser_language: str | None = None
    http_browser_color_depth: str | None = None
    http_browser_screen_height: str | None = None
    http_browser_screen_width: str | None = None
    http_browser_time_difference: str | None = None
    http_accept_content: str | None = None
    http_browser_java_enabled: bool | None = None
    http_browser_javascript_enabled: bool | None = None


class OrderRequest(BaseModel):
    """Body of POST /trade/create."""

    app_id: str
    out_trade_no: str
    method: Literal["CreditCard"] = "CreditCard"
    order_amount: str
    order_currency: Literal["BRL"] = "BRL"
    subject: str
    content: str
    trade_type: Literal["API"] = "API"
    timestamp: str
    notify_url: str
    return_url: str
    timeout_express: str = "1d"
    version: Literal["2.0"] = "2.0"
    buyer_id: str
    customer: Customer
    address: Address
    device_info: DeviceInfo | None = None


class GatewayEnvelope(BaseModel):
    """Fields every gateway response carries; parsed before the endpoint specific shape."""

    model_config = ConfigDict(extra="allow")

    code: str
    msg: str = ""

    @field_validator("code", mode="before")
    @classmethod
    def coerce_code(cls, v):
        return _to_str(v)

    @field_validator("msg", mode="before")
    @classmethod
    def coerce_msg(cls, v):
        return "" if v is None else v

    @property
    def ok(self) -> bool:
        return self.code == SUCCESS_CODE


class OrderResponse(GatewayEnvelope):
    trade_no: str
    out_trade_no: str
    prepay_id: str


class SdkConfig(BaseModel):
    """GET /api/config: what the browser tokenization SDK needs to initialise."""

    app_id: str
    public_key: str
    env: Literal["sandbox", "prod"]
    region_code: Literal["BRA"] = "BRA"
