"""Builds the transport, controllers and scenario contexts from one Settings."""

import logging

from src.config.credentials import CredentialStore
from src.config.fixtures import FixtureSource
from src.config.settings import ConfigError, Settings
from src.dispatch.classifier import OutcomeClassifier
from src.dispatch.dispatcher import PaymentMethodDispatcher
from src.dispatch.overrides import ConnectorOverrides
from src.dispatch.redirection import RedirectionHandler, Redirector
from src.lifecycle.accounts import AccountsController
from src.lifecycle.mandates import MandateController
from src.lifecycle.payments import PaymentsController
from src.lifecycle.payouts import PayoutController
from src.models.envelope import ExpectedFixture
from src.scenario.context import ScenarioContext
from src.scenario.report import ScenarioReport
from src.scenario.runner import Scenario, ScenarioRunner
from src.transport.client import HttpTransport, Transport
from src.transport.logger import RequestLog


logger = logging.getLogger(__name__)


class Suite:
    """One backend, one connector, every controller sharing one transport.

    Each scenario still gets its own ``ScenarioContext`` from ``new_context``.
    """

    def __init__(
        self,
        settings: Settings,
        transport: Transport,
        credentials: CredentialStore | None = None,
        fixtures: FixtureSource | None = None,
        overrides: ConnectorOverrides | None = None,
    ):
        self.settings = settings
        self.transport = transport
        self.credentials = credentials
        self.fixtures = fixtures
        self.overrides = overrides or ConnectorOverrides.defaults()
        self.classifier = OutcomeClassifier()
        self.dispatcher = PaymentMethodDispatcher(transport, classifier=self.classifier, overrides=self.overrides)
        self.accounts = AccountsController(transport, credentials=credentials)
        self.payments = PaymentsController(transport, dispatcher=self.dispatcher, classifier=self.classifier)
        self.mandates = MandateController(transport, classifier=self.classifier)
        self.payouts = PayoutController(transport)
        self.runner = ScenarioRunner()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        request_log: RequestLog | None = None,
        overrides: ConnectorOverrides | None = None,
    ) -> "Suite":
        """Load credentials and fixtures from the configured paths, if any.

        Raises:
            ConfigError: if a configured file is missing or malformed.
        """
        credentials = None
        if settings.connector_auth_file_path is not None:
            credentials = CredentialStore.load(settings.connector_auth_file_path)
        fixtures = None
        if settings.fixtures_path is not None:
            fixtures = FixtureSource.load(settings.fixtures_path)
        logger.info(
            "Suite for %s at %s (timeout=%ss, max_retries=%d)",
            settings.connector_id, settings.base_url, settings.request_timeout, settings.max_retries,
        )
        return cls(
            settings,
            HttpTransport.from_settings(settings, request_log=request_log),
            credentials=credentials,
            fixtures=fixtures,
            overrides=overrides,
        )

    def new_context(self, name: str | None = None) -> ScenarioContext:
        return ScenarioContext.from_settings(self.settings, name=name)

    def redirection(self, redirector: Redirector) -> RedirectionHandler:
        return RedirectionHandler(redirector, overrides=self.overrides)

    def _require_fixtures(self) -> FixtureSource:
        if self.fixtures is None:
            raise ConfigError("no fixtures_path configured")
        return self.fixtures

    def fixture(self, name: str) -> ExpectedFixture:
        return self._require_fixtures().fixture(name)

    def request(self, name: str) -> dict:
        return self._require_fixtures().request(name)

    def run(self, scenario: Scenario) -> ScenarioReport:
        return self.runner.run(scenario, self.new_context(scenario.name))

    def run_all(self, scenarios: list[Scenario], max_workers: int = 4) -> list[ScenarioReport]:
        return self.runner.run_all(scenarios, lambda s: self.new_context(s.name), max_workers=max_workers)
