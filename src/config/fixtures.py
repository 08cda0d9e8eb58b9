"""YAML fixture source: expected responses and request templates per scenario step."""
import copy
from pathlib import Path

import yaml

from src.config.settings import ConfigError
from src.models.envelope import ExpectedFixture


class FixtureSource:
    """
    Scenario-step name -> ``{request: {...}, response: {status, body}}``.

    Request templates are deep-copied on every read so a step can fill them
    in without leaking into the next scenario.
    """

    def __init__(self, entries: dict):
        self._entries = entries

    @classmethod
    def load(cls, path: str | Path) -> "FixtureSource":
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Fixture file not found: {path}")
        try:
            with open(path) as f:
                entries = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Fixture file {path} is not valid YAML: {e}") from e
        if entries is None:
            raise ConfigError(f"Empty fixture file: {path}")
        if not isinstance(entries, dict):
            raise ConfigError(f"Fixture file {path} must map step names to fixtures")
        return cls(entries)

    def _entry(self, name: str) -> dict:
        try:
            return self._entries[name]
        except KeyError:
            raise ConfigError(f"No fixture named {name!r}") from None

    def fixture(self, name: str) -> ExpectedFixture:
        return ExpectedFixture.from_dict(self._entry(name).get("response") or {})

    def request(self, name: str) -> dict:
        return copy.deepcopy(self._entry(name).get("request") or {})

    def names(self) -> list[str]:
        return sorted(self._entries)
