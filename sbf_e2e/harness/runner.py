"""Parallel execution of many test cases against one session."""

from __future__ import annotations

import os
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from sbf_e2e.compile import CompilationUnit, ObjectCompiler
from sbf_e2e.errors import FatalHarnessError, HarnessError, ToolTimeout
from sbf_e2e.logging import get_logger

from .case import CaseResult, CaseStatus, SuiteResult, TestDirective
from .pipeline import run_test_case
from .session import HarnessSession

logger = get_logger(__name__)


@dataclass
class TestCase:
    """A test case as handed over by test discovery."""

    __test__ = False

    directive: TestDirective
    units: List[CompilationUnit] = field(default_factory=list)
    compiler: Optional[ObjectCompiler] = None


class SuiteRunner:
    """Runs test cases in parallel, one worker per test case.

    Test cases only share the session. A failing test case does not affect the others. A fatal
    error (a failed runtime build, a runtime build timeout) means no later case can pass, so
    pending cases are cancelled, reported as ``SKIPPED``, and the suite is reported as aborted.
    Every submitted case gets exactly one result.

    Parameters
    ----------
    session : HarnessSession
        The process-wide session.
    max_workers : Optional[int]
        Number of worker threads. Defaults to the number of CPUs.
    """

    def __init__(self, session: HarnessSession, max_workers: Optional[int] = None) -> None:
        if max_workers is not None and max_workers <= 0:
            raise ValueError("max_workers must be > 0")
        self._session = session
        self._max_workers = max_workers or os.cpu_count() or 1

    def run(self, cases: Sequence[TestCase]) -> SuiteResult:
        """Run all test cases and collect their results in input order."""
        if not cases:
            return SuiteResult.from_cases([])

        results: List[CaseResult] = []
        abort_reason: Optional[str] = None

        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(cases))) as pool:
            futures: List[Future] = [
                pool.submit(run_test_case, self._session, c.directive, c.units, c.compiler)
                for c in cases
            ]
            for case, fut in zip(cases, futures):
                name = case.directive.name
                if fut.cancelled():
                    results.append(
                        CaseResult(
                            name=name,
                            status=CaseStatus.SKIPPED,
                            message=f"not run: {abort_reason}",
                        )
                    )
                    continue
                try:
                    results.append(fut.result())
                except Exception as e:
                    results.append(_escaped_error_result(name, e))
                    if abort_reason is None and _aborts_run(e):
                        abort_reason = f"{type(e).__name__}: {e}"
                        logger.error("aborting run after %s: %s", name, abort_reason)
                        for pending in futures:
                            pending.cancel()

        summary = SuiteResult.from_cases(results, abort_reason=abort_reason)
        logger.info(
            "%d passed, %d failed, %d ignored, %d skipped%s",
            summary.passed,
            summary.failed,
            summary.ignored,
            summary.skipped,
            " (aborted)" if summary.aborted else "",
        )
        return summary


def _aborts_run(error: Exception) -> bool:
    # Only the shared runtime raises a timeout out of run_test_case.
    return isinstance(error, (FatalHarnessError, ToolTimeout))


def _escaped_error_result(name: str, error: Exception) -> CaseResult:
    if isinstance(error, HarnessError):
        kind = error.kind
    else:
        logger.error("%s raised %s", name, type(error).__name__, exc_info=error)
        kind = type(error).__name__
    return CaseResult(name=name, status=CaseStatus.FAILED, error_kind=kind, message=str(error))
