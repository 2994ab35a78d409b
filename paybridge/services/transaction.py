import logging

from paybridge.core.config import Settings
from paybridge.core.errors import InvalidArgumentError
from paybridge.schemas.transaction import QueryRequest, QueryTransactionResponse
from paybridge.services.order import Gateway, parse_gateway_response
from paybridge.services.order_builder import format_timestamp

logger = logging.getLogger(__name__)

QUERY_ENDPOINT = "/trade/query"


class TransactionService:
    """Read-only status lookups; safe to call any number of times."""

    def __init__(self, gateway: Gateway, settings: Settings):
        self.gateway = gateway
        self.settings = settings

    def query_transaction(self, trade_no: str | None) -> QueryTransactionResponse:
        trade_no = (trade_no or "").strip()
        if not trade_no:
            raise InvalidArgumentError("Trade number is required")
        query = QueryRequest(
            app_id=self.settings.pagsmile_app_id,
            timestamp=format_timestamp(),
            trade_no=trade_no,
        )
        logger.info("Querying transaction: trade_no=%s", trade_no)
        raw = self.gateway.post(QUERY_ENDPOINT, query.model_dump())
        result = parse_gateway_response(raw, QueryTransactionResponse)
        logger.info("Transaction %s status=%s", result.trade_no, result.trade_status)
        return result
