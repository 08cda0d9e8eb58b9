import threading
from dataclasses import dataclass
from datetime import datetime


@dataclass
class RequestRecord:
    record_id: str
    method: str
    url: str
    status_code: int | None
    request_id: str | None
    timestamp: datetime
    response_time_ms: float
    error: str | None = None


class RequestLog:
    """Thread-safe record of every call the transport made."""

    def __init__(self):
        self._records: list[RequestRecord] = []
        self._lock = threading.Lock()

    def log(self, record: RequestRecord) -> None:
        with self._lock:
            self._records.append(record)

    def get_records(self, request_id: str | None = None) -> list[RequestRecord]:
        with self._lock:
            if request_id is None:
                return list(self._records)
            return [r for r in self._records if r.request_id == request_id]

    def get_failed_records(self) -> list[RequestRecord]:
        with self._lock:
            return [
                r for r in self._records
                if r.status_code is None or r.status_code >= 400
            ]

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
