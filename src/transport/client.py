import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Protocol

import requests

from src.models.envelope import ResponseEnvelope
from src.transport.logger import RequestLog, RequestRecord
from src.transport.retry import RetryPolicy

if TYPE_CHECKING:
    from src.config.settings import Settings


logger = logging.getLogger(__name__)


class TransportError(Exception):
    """No HTTP response could be obtained for a call."""

    def __init__(self, method: str, url: str, reason: str):
        self.method = method
        self.url = url
        self.reason = reason
        super().__init__(f"{method} {url} failed: {reason}")


class Transport(Protocol):
    def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: dict | None = None,
    ) -> ResponseEnvelope: ...


def log_request_id(envelope: ResponseEnvelope) -> None:
    if envelope.request_id:
        logger.info("x-request-id -> %s", envelope.request_id)
    else:
        logger.info("x-request-id is not available in the response headers")


def _decode_body(resp: requests.Response) -> Any:
    if not resp.content:
        return {}
    try:
        return resp.json()
    except ValueError:
        return {}


class HttpTransport:
    """Issues JSON requests against the payments API."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout_seconds: float = 30,
        retry_policy: RetryPolicy | None = None,
        request_log: RequestLog | None = None,
    ):
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds
        self.retry_policy = retry_policy or RetryPolicy()
        self.request_log = request_log or RequestLog()

    @classmethod
    def from_settings(cls, settings: "Settings", request_log: RequestLog | None = None) -> "HttpTransport":
        return cls(
            timeout_seconds=settings.request_timeout,
            retry_policy=RetryPolicy.exponential(settings.max_retries, settings.retry_backoff),
            request_log=request_log,
        )

    def _attempt(self, method, url, headers, body) -> tuple[requests.Response | None, str | None, float]:
        start = time.monotonic()
        resp = None
        error = None
        try:
            resp = self.session.request(
                method,
                url,
                data=json.dumps(body, default=str) if body is not None else None,
                headers=headers,
                timeout=self.timeout_seconds,
                allow_redirects=False,
            )
        except requests.exceptions.Timeout:
            error = "timeout"
        except requests.exceptions.ConnectionError:
            error = "connection_error"
        except requests.exceptions.RequestException as e:
            error = str(e)
        return resp, error, (time.monotonic() - start) * 1000

    def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: dict | None = None,
    ) -> ResponseEnvelope:
        """Send one call, retrying only as the retry policy allows.

        Raises:
            TransportError: if every attempt failed without an HTTP response.
        """
        method = method.upper()
        retry_count = 0

        while True:
            resp, error, elapsed_ms = self._attempt(method, url, headers, body)
            status_code = resp.status_code if resp is not None else None
            envelope = None
            if resp is not None:
                envelope = ResponseEnvelope(
                    status=resp.status_code,
                    headers=dict(resp.headers),
                    body=_decode_body(resp),
                    text=resp.text,
                )

            self.request_log.log(RequestRecord(
                record_id=f"req_{uuid.uuid4().hex[:16]}",
                method=method,
                url=url,
                status_code=status_code,
                request_id=envelope.request_id if envelope else None,
                timestamp=datetime.now(timezone.utc),
                response_time_ms=elapsed_ms,
                error=error,
            ))

            if not self.retry_policy.should_retry(method, status_code):
                break
            if not self.retry_policy.has_attempts_remaining(retry_count):
                break

            delay = self.retry_policy.next_delay(retry_count)
            logger.warning(
                "%s %s -> %s, retrying in %.1fs", method, url, status_code or error, delay,
            )
            if delay > 0:
                time.sleep(delay)
            retry_count += 1

        if envelope is None:
            raise TransportError(method, url, error or "no response")

        log_request_id(envelope)
        return envelope
