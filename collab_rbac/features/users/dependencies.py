"""
Request helpers keyed on the current principal.
"""
from starlette.requests import Request


def get_rate_limit_key(request: Request) -> str:
    """
    Key requests by principal id for rate limiting.
    Used with slowapi Limiter; anonymous callers share one bucket per client host.
    """
    principal = getattr(request.state, "principal", None)
    if principal is not None:
        return f"user:{principal.id}"
    host = request.client.host if request.client else "unknown"
    return f"anonymous:{host}"
