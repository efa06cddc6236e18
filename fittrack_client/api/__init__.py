"""HTTP request execution and authentication interception."""

from .client import ApiClient
from .interceptor import HttpResponse, RequestContext, RequestInterceptor, RequestState

__all__ = [
    "ApiClient",
    "HttpResponse",
    "RequestContext",
    "RequestInterceptor",
    "RequestState",
]
