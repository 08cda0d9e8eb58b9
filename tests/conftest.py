import pytest

from sandbox_backend import SandboxBackend

from src.dispatch.classifier import OutcomeClassifier
from src.dispatch.dispatcher import PaymentMethodDispatcher
from src.dispatch.overrides import ConnectorOverrides
from src.lifecycle.mandates import MandateController
from src.lifecycle.payments import PaymentsController
from src.lifecycle.payouts import PayoutController
from src.models.envelope import ResponseEnvelope
from src.scenario.context import ContextKey, ScenarioContext
from src.transport.client import HttpTransport
from src.transport.logger import RequestLog
from src.transport.retry import RetryPolicy


API_KEY = "snd_test_api_key"
PUBLISHABLE_KEY = "pk_snd_test"
ADMIN_API_KEY = "test_admin"


class ScriptedTransport:
    """In-memory transport returning queued envelopes in order."""

    def __init__(self):
        self.responses: list[ResponseEnvelope] = []
        self.requests: list[dict] = []

    def reply(self, status: int = 200, body=None, headers: dict | None = None) -> "ScriptedTransport":
        self.responses.append(ResponseEnvelope(
            status=status,
            headers=headers if headers is not None else {"x-request-id": f"req_{len(self.responses)}"},
            body=body if body is not None else {},
        ))
        return self

    def send(self, method, url, headers, body=None) -> ResponseEnvelope:
        self.requests.append({"method": method, "url": url, "headers": headers, "body": body})
        if not self.responses:
            raise AssertionError(f"no scripted response left for {method} {url}")
        return self.responses.pop(0)

    @property
    def last_request(self) -> dict:
        return self.requests[-1]


class RecordingRedirector:
    def __init__(self):
        self.requests = []

    def follow(self, request):
        self.requests.append(request)
        return "completed"


def seeded_context(base_url: str = "http://payflow.test", name: str = "test") -> ScenarioContext:
    return ScenarioContext(name=name, initial={
        ContextKey.BASE_URL: base_url,
        ContextKey.ADMIN_API_KEY: ADMIN_API_KEY,
        ContextKey.API_KEY: API_KEY,
        ContextKey.PUBLISHABLE_KEY: PUBLISHABLE_KEY,
        ContextKey.CONNECTOR_ID: "stripe",
        ContextKey.MERCHANT_ID: "merchant_abc123",
        ContextKey.CUSTOMER_ID: "cus_123",
    })


@pytest.fixture
def context():
    return seeded_context()


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def classifier():
    return OutcomeClassifier()


@pytest.fixture
def overrides():
    return ConnectorOverrides.defaults()


@pytest.fixture
def dispatcher(transport, classifier, overrides):
    return PaymentMethodDispatcher(transport, classifier=classifier, overrides=overrides)


@pytest.fixture
def payments(transport, dispatcher, classifier):
    return PaymentsController(transport, dispatcher=dispatcher, classifier=classifier)


@pytest.fixture
def mandates(transport, classifier):
    return MandateController(transport, classifier=classifier)


@pytest.fixture
def payouts(transport):
    return PayoutController(transport)


@pytest.fixture
def redirector():
    return RecordingRedirector()


@pytest.fixture
def request_log():
    return RequestLog()


@pytest.fixture
def sandbox():
    server = SandboxBackend()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def http_transport(request_log):
    return HttpTransport(timeout_seconds=5, retry_policy=RetryPolicy(), request_log=request_log)


@pytest.fixture
def sandbox_context(sandbox):
    return seeded_context(base_url=sandbox.url, name="sandbox")

