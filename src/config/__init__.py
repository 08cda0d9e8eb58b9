from .settings import ConfigError, Settings
from .credentials import ConnectorCredentials, CredentialStore
from .fixtures import FixtureSource

__all__ = [
    "ConfigError", "Settings",
    "ConnectorCredentials", "CredentialStore",
    "FixtureSource",
]
