import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable

from src.models.outcome import StepFailed, StepOutcome
from src.scenario.context import MissingContextKey, ScenarioContext
from src.scenario.report import ScenarioReport, StepResult, StepStatus


logger = logging.getLogger(__name__)

StepFn = Callable[[ScenarioContext], StepOutcome]


@dataclass
class Scenario:
    name: str
    steps: list[tuple[str, StepFn]] = field(default_factory=list)

    def step(self, name: str, fn: StepFn) -> "Scenario":
        self.steps.append((name, fn))
        return self


class ScenarioRunner:
    """Runs scenario steps in order, stopping at the first failure."""

    def run(self, scenario: Scenario, context: ScenarioContext) -> ScenarioReport:
        report = ScenarioReport(scenario=scenario.name)
        halted = False

        for name, fn in scenario.steps:
            if halted:
                report.add(StepResult(name=name, status=StepStatus.SKIPPED))
                continue

            logger.info("[%s] step %s", scenario.name, name)
            start = time.monotonic()
            try:
                outcome = fn(context)
                detail = outcome.detail
                failed = not outcome.ok
            except StepFailed as e:
                outcome = e.outcome
                detail = str(e)
                failed = True
            except MissingContextKey as e:
                outcome = None
                detail = str(e)
                failed = True
            except Exception as e:
                logger.exception("[%s] step %s raised", scenario.name, name)
                outcome = None
                detail = f"{type(e).__name__}: {e}"
                failed = True
            elapsed_ms = (time.monotonic() - start) * 1000

            request_id = None
            if outcome is not None and outcome.envelope is not None:
                request_id = outcome.envelope.request_id
            if failed and outcome is not None and outcome.mismatches and detail == outcome.detail:
                detail = f"{detail}; " + "; ".join(str(m) for m in outcome.mismatches)

            report.add(StepResult(
                name=name,
                status=StepStatus.FAILED if failed else StepStatus.PASSED,
                duration_ms=elapsed_ms,
                detail=detail,
                request_id=request_id,
            ))
            if failed:
                logger.error("[%s] step %s failed: %s", scenario.name, name, detail)
                halted = True

        logger.info(
            "[%s] %s in %.0fms", scenario.name, "passed" if report.passed else "FAILED",
            report.total_duration_ms,
        )
        return report

    def run_all(
        self,
        scenarios: list[Scenario],
        context_factory: Callable[[Scenario], ScenarioContext],
        max_workers: int = 4,
    ) -> list[ScenarioReport]:
        """Run independent scenarios concurrently, each with its own context.

        A scenario that cannot be run at all (for example because its
        context could not be built) is reported as failed; the reports of
        the other scenarios are always returned, in input order.
        """
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [
                (s, pool.submit(self._run_with_factory, s, context_factory)) for s in scenarios
            ]
            reports = []
            for scenario, future in futures:
                try:
                    reports.append(future.result())
                except Exception as e:
                    logger.exception("[%s] scenario could not be run", scenario.name)
                    reports.append(self.aborted(scenario, f"{type(e).__name__}: {e}"))
            return reports

    def _run_with_factory(
        self,
        scenario: Scenario,
        context_factory: Callable[[Scenario], ScenarioContext],
    ) -> ScenarioReport:
        return self.run(scenario, context_factory(scenario))

    @staticmethod
    def aborted(scenario: Scenario, detail: str) -> ScenarioReport:
        """Report for a scenario none of whose steps ran."""
        report = ScenarioReport(scenario=scenario.name)
        for index, (name, _) in enumerate(scenario.steps):
            if index == 0:
                report.add(StepResult(name=name, status=StepStatus.FAILED, detail=detail))
            else:
                report.add(StepResult(name=name, status=StepStatus.SKIPPED))
        if not scenario.steps:
            report.add(StepResult(name=scenario.name, status=StepStatus.FAILED, detail=detail))
        return report
