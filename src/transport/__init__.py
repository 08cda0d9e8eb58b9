from .client import HttpTransport, Transport, TransportError, log_request_id
from .logger import RequestLog, RequestRecord
from .retry import RetryPolicy

__all__ = [
    "HttpTransport", "Transport", "TransportError", "log_request_id",
    "RequestLog", "RequestRecord",
    "RetryPolicy",
]
