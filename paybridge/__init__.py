"""Checkout backend for the Pagsmile card gateway: orders, status queries, webhooks, 3DS reconciliation."""

__version__ = "0.1.0"
