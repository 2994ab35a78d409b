"""Customer validation, order id, street number, device fingerprint, order request shape."""
import re

import pytest

from conftest import VALID_CUSTOMER
from paybridge.core.errors import ValidationError
from paybridge.schemas.order import CreatePaymentInput, CustomerInfo
from paybridge.services.order_builder import (
    build_device_info,
    build_order_request,
    ensure_valid_customer_info,
    extract_street_number,
    format_timestamp,
    generate_order_id,
    normalize_timezone_offset,
    validate_customer_info,
)

RULE_CASES = [
    ({"name": "  Jo "}, "Name must have at least 3 characters"),
    ({"email": "maria.example.com"}, "Invalid email format"),
    ({"cpf": "1234567890"}, "CPF must have 11 digits"),
    ({"phone": "119876543"}, "Phone must have at least 10 digits"),
    ({"zipCode": "0131010"}, "ZIP code must have 8 digits"),
    ({"state": "S"}, "State must be a 2-letter code"),
    ({"city": " X "}, "City is required"),
    ({"address": " Rua "}, "Address must have at least 5 characters"),
]


def _customer(**overrides) -> CustomerInfo:
    return CustomerInfo.model_validate(dict(VALID_CUSTOMER, **overrides))


def test_valid_customer_has_no_errors():
    assert validate_customer_info(_customer()) == []
    ensure_valid_customer_info(_customer())


@pytest.mark.parametrize("override,message", RULE_CASES)
def test_each_rule_reported_alone(override, message):
    assert validate_customer_info(_customer(**override)) == [message]


def test_all_violations_reported_together():
    bad = CustomerInfo()
    errors = validate_customer_info(bad)
    assert errors == [message for _, message in RULE_CASES]
    with pytest.raises(ValidationError) as exc:
        ensure_valid_customer_info(bad)
    assert exc.value.errors == errors
    assert str(exc.value).startswith("Validation errors: Name must have at least 3 characters, Invalid email format")


def test_customer_info_is_immutable():
    info = _customer()
    with pytest.raises(Exception):
        info.name = "Other"


def test_customer_info_accepts_numeric_fields():
    info = CustomerInfo.model_validate(dict(VALID_CUSTOMER, cpf=12345678909, zipCode=13101000))
    assert info.cpf == "12345678909"
    assert info.zip_code == "13101000"


def test_generate_order_id_format():
    order_id = generate_order_id()
    assert re.fullmatch(r"ORDER_\d{13}_[0-9a-z]{13}", order_id)


def test_generate_order_id_unique_in_tight_loop():
    ids = [generate_order_id() for _ in range(5000)]
    assert len(set(ids)) == len(ids)


@pytest.mark.parametrize(
    "address,expected",
    [
        ("Rua das Flores, 123", "123"),
        ("Avenida Principal", "1"),
        ("Rua 7 de Setembro, 45", "7"),
        ("", "1"),
    ],
)
def test_extract_street_number(address, expected):
    assert extract_street_number(address) == expected


@pytest.mark.parametrize(
    "raw,expected",
    [("-180", "180"), ("180", "180"), ("0", "0"), ("-330.0", "330"), (None, None), ("abc", "abc")],
)
def test_normalize_timezone_offset(raw, expected):
    assert normalize_timezone_offset(raw) == expected


def test_device_info_omitted_without_user_agent():
    data = CreatePaymentInput(amount="10.00", customerInfo=VALID_CUSTOMER, browserLanguage="pt-BR")
    assert build_device_info(data) is None


def test_device_info_duplicates_both_namings():
    data = CreatePaymentInput.model_validate(
        {
            "amount": "10.00",
            "customerInfo": VALID_CUSTOMER,
            "userAgent": "Mozilla/5.0",
            "ipAddress": "203.0.113.7",
            "browserLanguage": "pt-BR",
            "browserColorDepth": "24",
            "browserScreenHeight": "900",
            "browserScreenWidth": "1440",
            "browserTimeZone": "-180",
        }
    )
    device = build_device_info(data)
    assert device.user_agent == "Mozilla/5.0"
    assert device.ip_address == "203.0.113.7"
    for name in ("language", "color_depth", "screen_height", "screen_width"):
        assert getattr(device, f"browser_{name}") == getattr(device, f"http_browser_{name}")
    assert device.browser_time_zone == device.http_browser_time_difference == "180"
    assert device.http_browser_java_enabled is False
    assert device.http_browser_javascript_enabled is True


def test_build_order_request(settings):
    data = CreatePaymentInput.model_validate(
        {"amount": "250.00", "customerInfo": VALID_CUSTOMER, "returnUrl": "https://elsewhere.example/"}
    )
    order = build_order_request(data, settings)
    body = order.model_dump(exclude_none=True)
    assert body["app_id"] == "app_test_1234567890"
    assert body["method"] == "CreditCard"
    assert body["order_currency"] == "BRL"
    assert body["trade_type"] == "API"
    assert body["version"] == "2.0"
    assert body["timeout_express"] == "1d"
    assert body["order_amount"] == "250.00"
    assert body["notify_url"] == "https://shop.example.com/api/webhook/payment"
    assert body["return_url"] == "https://shop.example.com/success"
    assert body["buyer_id"] == "maria@example.com"
    assert body["address"] == {
        "zip_code": "01310100",
        "state": "SP",
        "city": "São Paulo",
        "street_name": "Avenida Paulista, 1578",
        "street_number": "1578",
    }
    assert "device_info" not in body
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", body["timestamp"])


def test_out_trade_no_generated_once_per_order(settings):
    data = CreatePaymentInput.model_validate({"amount": "1.00", "customerInfo": VALID_CUSTOMER})
    first = build_order_request(data, settings)
    second = build_order_request(data, settings)
    assert first.out_trade_no != second.out_trade_no


def test_format_timestamp():
    from datetime import datetime

    assert format_timestamp(datetime(2026, 1, 2, 3, 4, 5)) == "2026-01-02 03:04:05"
