"""(connector, payment method type) pairs whose responses differ from the family rule."""

from enum import Enum


class Override(Enum):
    # Backend answers with a wait screen instead of a redirect URL
    WAIT_SCREEN = "wait_screen"
    # Continuation is captured but never handed to the redirection collaborator
    SKIP_REDIRECTION = "skip_redirection"


DEFAULT_OVERRIDES: dict[tuple[str, str], Override] = {
    ("adyen", "blik"): Override.WAIT_SCREEN,
    ("adyen", "sofort"): Override.SKIP_REDIRECTION,
}


class ConnectorOverrides:
    def __init__(self, table: dict[tuple[str, str], Override] | None = None):
        self._table = dict(table) if table is not None else {}

    @classmethod
    def defaults(cls) -> "ConnectorOverrides":
        return cls(DEFAULT_OVERRIDES)

    @classmethod
    def from_config(cls, entries: list[dict], include_defaults: bool = True) -> "ConnectorOverrides":
        """Build from ``[{"connector": ..., "payment_method_type": ..., "override": ...}]``."""
        table = dict(DEFAULT_OVERRIDES) if include_defaults else {}
        for entry in entries:
            key = (entry["connector"], entry["payment_method_type"])
            table[key] = Override(entry["override"])
        return cls(table)

    def lookup(self, connector_id: str | None, payment_method_type: str | None) -> Override | None:
        if connector_id is None or payment_method_type is None:
            return None
        return self._table.get((connector_id, payment_method_type))

    def add(self, connector_id: str, payment_method_type: str, override: Override) -> None:
        self._table[(connector_id, payment_method_type)] = override

    def __len__(self) -> int:
        return len(self._table)
