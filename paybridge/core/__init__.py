from .config import Settings, load_settings
from .errors import PaymentError

__all__ = ["Settings", "load_settings", "PaymentError"]
