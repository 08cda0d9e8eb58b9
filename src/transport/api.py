import logging

from src.models.envelope import ExpectedFixture, ResponseEnvelope
from src.models.outcome import ErrorKind, Shape, StepOutcome
from src.scenario.context import ContextKey, ScenarioContext
from src.transport.client import Transport, TransportError
from src.validation.errors import check_error_response
from src.validation.validator import compare


logger = logging.getLogger(__name__)


class ApiController:
    """Shared request plumbing for the lifecycle controllers."""

    def __init__(self, transport: Transport):
        self.transport = transport

    @staticmethod
    def headers(api_key: str, content_type: bool = True) -> dict[str, str]:
        headers = {"Accept": "application/json", "api-key": api_key}
        if content_type:
            headers["Content-Type"] = "application/json"
        return headers

    @staticmethod
    def url(context: ScenarioContext, path: str) -> str:
        return f"{context.get(ContextKey.BASE_URL).rstrip('/')}{path}"

    def call(
        self,
        context: ScenarioContext,
        method: str,
        path: str,
        api_key: str,
        body: dict | None = None,
    ) -> ResponseEnvelope | StepOutcome:
        """Send one request; a transport failure comes back as a failed outcome."""
        try:
            return self.transport.send(method, self.url(context, path), self.headers(api_key), body)
        except TransportError as e:
            logger.error("Transport failure in scenario %s: %s", context.name, e)
            return StepOutcome.failed(ErrorKind.TRANSPORT_FAILURE, str(e))

    @staticmethod
    def succeeded(envelope: ResponseEnvelope, fixture: ExpectedFixture) -> bool:
        """Both the response and the fixture are on the HTTP 200 path."""
        return envelope.status == 200 and fixture.expects_success

    @classmethod
    def match_fixture(cls, envelope: ResponseEnvelope, fixture: ExpectedFixture) -> StepOutcome:
        """200 responses are compared to the fixture; anything else goes to the error handler."""
        if not cls.succeeded(envelope, fixture):
            return check_error_response(envelope, fixture)
        mismatches = compare(fixture.body, envelope.body)
        if mismatches:
            return StepOutcome.failed(
                ErrorKind.VALIDATION_MISMATCH,
                "response differs from fixture",
                mismatches=mismatches,
                envelope=envelope,
            )
        return StepOutcome.passed(Shape.FIXTURE_MATCH, envelope=envelope)

    @staticmethod
    def expect(envelope: ResponseEnvelope, condition: bool, detail: str) -> StepOutcome | None:
        """Failed outcome when ``condition`` does not hold, else None."""
        if condition:
            return None
        return StepOutcome.failed(ErrorKind.UNHANDLED_RESPONSE_SHAPE, detail, envelope=envelope)
