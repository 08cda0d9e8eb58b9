"""Connector credentials file (``<connector>`` and ``<connector>_payout`` entries)."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from src.config.settings import ConfigError


logger = logging.getLogger(__name__)


class ConnectorCredentials(BaseModel):
    connector_account_details: dict[str, Any]
    metadata: dict[str, Any] | None = None


class CredentialStore:
    def __init__(self, entries: dict[str, Any]):
        self._entries = entries

    @classmethod
    def load(cls, path: str | Path) -> CredentialStore:
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Credentials file not found: {path}")
        try:
            with open(path) as f:
                entries = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Credentials file {path} is not valid JSON: {e}") from e
        if not isinstance(entries, dict):
            raise ConfigError(f"Credentials file {path} must hold an object keyed by connector")
        return cls(entries)

    def lookup(self, name: str) -> ConnectorCredentials | None:
        entry = self._entries.get(name)
        if entry is None:
            return None
        try:
            return ConnectorCredentials(**entry)
        except ValidationError as e:
            raise ConfigError(f"Invalid credentials for {name}: {e}") from e

    def payout_credentials(self, connector: str) -> ConnectorCredentials | None:
        return self.lookup(f"{connector}_payout")
