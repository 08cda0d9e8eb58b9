from .context import ContextKey, MissingContextKey, ScenarioContext
from .report import ReportSummary, ScenarioReport, StepResult, StepStatus
from .runner import Scenario, ScenarioRunner

__all__ = [
    "ContextKey", "MissingContextKey", "ScenarioContext",
    "ReportSummary", "ScenarioReport", "StepResult", "StepStatus",
    "Scenario", "ScenarioRunner",
]
