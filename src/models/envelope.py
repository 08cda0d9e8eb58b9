from dataclasses import dataclass, field
from typing import Any


REQUEST_ID_HEADER = "x-request-id"


@dataclass
class ResponseEnvelope:
    status: int
    headers: dict[str, str]
    body: Any
    text: str = ""

    @property
    def request_id(self) -> str | None:
        for name, value in self.headers.items():
            if name.lower() == REQUEST_ID_HEADER:
                return value
        return None

    @property
    def content_type(self) -> str:
        for name, value in self.headers.items():
            if name.lower() == "content-type":
                return value
        return ""


@dataclass
class ExpectedFixture:
    """Expected response for one scenario step.

    ``status`` is the expected HTTP status, not the domain status. Only the
    keys present in ``body`` are constrained.
    """

    status: int = 200
    body: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "ExpectedFixture":
        return cls(status=int(data.get("status", 200)), body=dict(data.get("body") or {}))

    @property
    def expects_success(self) -> bool:
        return self.status == 200
