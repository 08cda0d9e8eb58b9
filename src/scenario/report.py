from dataclasses import dataclass, field
from enum import Enum


class StepStatus(Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


@dataclass
class StepResult:
    name: str
    status: StepStatus
    duration_ms: float = 0.0
    detail: str = ""
    request_id: str | None = None


@dataclass
class ScenarioReport:
    scenario: str
    steps: list[StepResult] = field(default_factory=list)
    passed: bool = True
    total_duration_ms: float = 0.0

    def add(self, step: StepResult) -> None:
        self.steps.append(step)
        self.total_duration_ms += step.duration_ms
        if step.status is StepStatus.FAILED:
            self.passed = False

    @property
    def failed_step(self) -> StepResult | None:
        for step in self.steps:
            if step.status is StepStatus.FAILED:
                return step
        return None


class ReportSummary:
    """Pass/fail counts across a set of scenario reports."""

    def __init__(self, reports: list[ScenarioReport]):
        self.reports = list(reports)

    def count(self, status: StepStatus) -> int:
        return sum(1 for r in self.reports for s in r.steps if s.status is status)

    def scenarios_passed(self) -> int:
        return sum(1 for r in self.reports if r.passed)

    def pass_rate(self) -> float:
        """Fraction of scenarios that passed (0.0 to 1.0)."""
        if not self.reports:
            return 0.0
        return self.scenarios_passed() / len(self.reports)

    def message(self) -> str:
        return (
            f"{self.scenarios_passed()}/{len(self.reports)} scenarios passed "
            f"({self.count(StepStatus.PASSED)} steps passed, "
            f"{self.count(StepStatus.FAILED)} failed, "
            f"{self.count(StepStatus.SKIPPED)} skipped)"
        )
