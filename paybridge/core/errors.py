"""Error taxonomy. Routes convert these to JSON in paybridge.main exception handlers."""


class PaymentError(Exception):
    """Base for every error raised by paybridge."""


class ConfigurationError(PaymentError):
    """Required configuration missing or invalid at startup."""


class ValidationError(PaymentError):
    """Customer input failed one or more rules. `errors` lists all of them."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(f"Validation errors: {', '.join(self.errors)}")


class InvalidArgumentError(PaymentError):
    """A required argument (e.g. trade number) is missing or blank."""


class GatewayHttpError(PaymentError):
    """Gateway answered with a non-2xx status."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"Pagsmile API error: {status} - {body}")


class GatewayUnreachableError(PaymentError):
    """Network failure or timeout before any HTTP response."""


class GatewayResponseError(PaymentError):
    """Gateway answered 2xx but the body does not have the expected shape."""


class GatewayBusinessError(PaymentError):
    """Gateway response code other than SUCCESS_CODE."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"Pagsmile error: {code} - {message}")


class WebhookPayloadError(PaymentError):
    """Inbound notification could not be parsed."""
