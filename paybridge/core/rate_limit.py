"""IP based rate limiting (SlowAPI); honours X-Forwarded-For / X-Real-IP behind a proxy."""
from fastapi import Request

from slowapi import Limiter

CREATE_ORDER_RATE_LIMIT = "30/minute"


def forwarded_ip(request: Request) -> str | None:
    """Client IP as reported by the proxy, or None when no proxy header is present."""
    xff = request.headers.get("x-forwarded-for")
    if xff:
        ip = xff.split(",")[0].strip()
        if ip:
            return ip
    real_ip = (request.headers.get("x-real-ip") or "").strip()
    return real_ip or None


def get_client_ip(request: Request) -> str:
    ip = forwarded_ip(request)
    if ip:
        return ip
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


limiter = Limiter(key_func=get_client_ip)
