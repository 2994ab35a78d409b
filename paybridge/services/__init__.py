from .checkout_client import CheckoutClient
from .gateway_client import GatewayClient
from .order import OrderService
from .reconcile import Reconciler, StatusPoller, resume_from_return_url
from .transaction import TransactionService
from .webhook import WebhookHandler

__all__ = [
    "CheckoutClient",
    "GatewayClient",
    "OrderService",
    "Reconciler",
    "StatusPoller",
    "TransactionService",
    "WebhookHandler",
    "resume_from_return_url",
]
