from .error_handler import configure_error_handling
from .internal_auth import INTERNAL_TOKEN_HEADER, configure_internal_auth
from .rate_limit import InMemoryRateLimiter, rate_limited
from .request_logger import REQUEST_ID_HEADER, configure_request_logging

__all__ = [
    "INTERNAL_TOKEN_HEADER",
    "REQUEST_ID_HEADER",
    "InMemoryRateLimiter",
    "configure_error_handling",
    "configure_internal_auth",
    "configure_request_logging",
    "rate_limited",
]
