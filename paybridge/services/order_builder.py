"""Customer validation and the /trade/create request built from minimal checkout input."""
import logging
import re
import secrets
import string
import time
from datetime import datetime

from paybridge.core.config import Settings
from paybridge.core.errors import ValidationError
from paybridge.schemas.order import (
    Address,
    CreatePaymentInput,
    Customer,
    CustomerIdentification,
    CustomerInfo,
    DeviceInfo,
    OrderRequest,
)

logger = logging.getLogger(__name__)

ORDER_SUBJECT = "Pagamento de Produto"
ORDER_CONTENT = "Pagamento via cartão de crédito"
DEFAULT_STREET_NUMBER = "1"
HTTP_ACCEPT_CONTENT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"

_BASE36 = string.digits + string.ascii_lowercase
_DIGITS_RE = re.compile(r"\d+")


def validate_customer_info(info: CustomerInfo) -> list[str]:
    """Returns every violated rule; empty list when the customer is valid."""
    errors: list[str] = []
    if len(info.name.strip()) < 3:
        errors.append("Name must have at least 3 characters")
    if "@" not in info.email:
        errors.append("Invalid email format")
    if len(info.cpf) != 11:
        errors.append("CPF must have 11 digits")
    if len(info.phone) < 10:
        errors.append("Phone must have at least 10 digits")
    if len(info.zip_code) != 8:
        errors.append("ZIP code must have 8 digits")
    if len(info.state) != 2:
        errors.append("State must be a 2-letter code")
    if len(info.city.strip()) < 2:
        errors.append("City is required")
    if len(info.address.strip()) < 5:
        errors.append("Address must have at least 5 characters")
    return errors


def ensure_valid_customer_info(info: CustomerInfo) -> None:
    errors = validate_customer_info(info)
    if errors:
        logger.info("Customer validation failed: %s", errors)
        raise ValidationError(errors)


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_BASE36[r])
    return "".join(reversed(out))


def generate_order_id() -> str:
    """ORDER_<ms timestamp>_<random base-36>; unique per call without any counter."""
    timestamp = int(time.time() * 1000)
    random_part = _base36(secrets.randbelow(36**13)).rjust(13, "0")
    return f"ORDER_{timestamp}_{random_part}"


def format_timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")


def extract_street_number(address: str) -> str:
    match = _DIGITS_RE.search(address or "")
    return match.group(0) if match else DEFAULT_STREET_NUMBER


def normalize_timezone_offset(raw: str | None) -> str | None:
    """Offsets may arrive signed; the gateway wants absolute minutes ("-180" -> "180")."""
    if raw is None:
        return None
    try:
        return str(abs(int(float(raw))))
    except (ValueError, OverflowError):
        return raw


def build_device_info(data: CreatePaymentInput) -> DeviceInfo | None:
    if not data.user_agent:
        logger.warning("device_info not included: userAgent missing")
        return None
    tz = normalize_timezone_offset(data.browser_time_zone)
    device = DeviceInfo(
        user_agent=data.user_agent,
        ip_address=data.ip_address,
        browser_language=data.browser_language,
        browser_color_depth=data.browser_color_depth,
        browser_screen_height=data.browser_screen_height,
        browser_screen_width=data.browser_screen_width,
        browser_time_zone=tz,
        http_browser_language=data.browser_language,
        http_browser_color_depth=data.browser_color_depth,
        http_browser_screen_height=data.browser_screen_height,
        http_browser_screen_width=data.browser_screen_width,
        http_browser_time_difference=tz,
        http_accept_content=HTTP_ACCEPT_CONTENT,
        http_browser_java_enabled=False,
        http_browser_javascript_enabled=True,
    )
    logger.info(
        "device_info included: user_agent=%s... ip=%s language=%s screen=%sx%s tz=%s",
        data.user_agent[:50],
        data.ip_address or "-",
        data.browser_language,
        data.browser_screen_width,
        data.browser_screen_height,
        tz,
    )
    return device


def build_order_request(data: CreatePaymentInput, settings: Settings) -> OrderRequest:
    info = data.customer_info
    if info is None:
        raise ValidationError(["customerInfo is required"])
    return OrderRequest(
        app_id=settings.pagsmile_app_id,
        out_trade_no=generate_order_id(),
        order_amount=data.amount or "",
        subject=ORDER_SUBJECT,
        content=ORDER_CONTENT,
        timestamp=format_timestamp(),
        notify_url=settings.pagsmile_notify_url,
        return_url=settings.pagsmile_return_url,
        buyer_id=info.email,
        customer=Customer(
            identify=CustomerIdentification(type="CPF", number=info.cpf),
            name=info.name,
            email=info.email,
            phone=info.phone,
        ),
        address=Address(
            zip_code=info.zip_code,
            state=info.state,
            city=info.city,
            street_name=info.address,
            street_number=extract_street_number(info.address),
        ),
        device_info=build_device_info(data),
    )
