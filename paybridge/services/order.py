import logging
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError

from paybridge.core.config import Settings
from paybridge.core.errors import GatewayBusinessError, GatewayResponseError, ValidationError
from paybridge.schemas.order import CreatePaymentInput, GatewayEnvelope, OrderResponse
from paybridge.services.order_builder import build_order_request, ensure_valid_customer_info

logger = logging.getLogger(__name__)

CREATE_ENDPOINT = "/trade/create"


class Gateway(Protocol):
    def post(self, endpoint: str, body: dict[str, Any]) -> dict[str, Any]: ...

    def get(self, endpoint: str) -> dict[str, Any]: ...


def parse_gateway_response(raw: dict[str, Any], model):
    """
    Checks the response code first (any code other than 10000 -> GatewayBusinessError with
    the gateway's code and msg), then parses the endpoint specific shape. A success body
    missing fields raises GatewayResponseError instead of leaking a half-typed dict.
    """
    try:
        envelope = GatewayEnvelope.model_validate(raw)
    except PydanticValidationError as e:
        raise GatewayResponseError(f"Pagsmile response without code: {e.errors()}") from e
    if not envelope.ok:
        logger.warning("Pagsmile error: %s - %s", envelope.code, envelope.msg)
        raise GatewayBusinessError(envelope.code, envelope.msg)
    try:
        return model.model_validate(raw)
    except PydanticValidationError as e:
        raise GatewayResponseError(f"Unexpected Pagsmile response: {e.errors()}") from e


class OrderService:
    def __init__(self, gateway: Gateway, settings: Settings):
        self.gateway = gateway
        self.settings = settings

    def create_order(self, data: CreatePaymentInput) -> OrderResponse:
        if data.customer_info is None:
            raise ValidationError(["customerInfo is required"])
        ensure_valid_customer_info(data.customer_info)

        order = build_order_request(data, self.settings)
        if data.return_url and data.return_url != order.return_url:
            logger.info("Client return_url=%s ignored, using configured %s", data.return_url, order.return_url)
        logger.info(
            "Creating order: out_trade_no=%s amount=%s currency=%s method=%s email=%s",
            order.out_trade_no,
            order.order_amount,
            order.order_currency,
            order.method,
            order.customer.email,
        )
        raw = self.gateway.post(CREATE_ENDPOINT, order.model_dump(exclude_none=True))
        result = parse_gateway_response(raw, OrderResponse)
        logger.info("Order created: trade_no=%s out_trade_no=%s", result.trade_no, result.out_trade_no)
        return result
