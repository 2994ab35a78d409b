"""HTTP surface under /api: SDK config, order creation, status query, gateway webhook."""
from paybridge.api.routes import router as api_router

__all__ = ["api_router"]
