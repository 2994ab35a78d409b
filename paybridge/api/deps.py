from fastapi import Request

from paybridge.core.config import Settings
from paybridge.services.order import OrderService
from paybridge.services.transaction import TransactionService
from paybridge.services.webhook import WebhookHandler


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


def get_transaction_service(request: Request) -> TransactionService:
    return request.app.state.transaction_service


def get_webhook_handler(request: Request) -> WebhookHandler:
    return request.app.state.webhook_handler
