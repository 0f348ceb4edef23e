"""Test case inputs and results."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from sbf_e2e.vm import ExecutionOutcome


class TestDirective(BaseModel):
    """What the test plan says about one test case."""

    __test__ = False

    model_config = ConfigDict(use_attribute_docstrings=True, frozen=True)

    name: str = Field(min_length=1)
    """Name of the test case, used in logs and results."""
    build_dir: Path
    """Build directory of the test case. Object files and ``output.so`` live here."""
    ignore: bool = False
    """Skip the test case without touching the toolchain."""


class CaseStatus(str, Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    IGNORED = "IGNORED"
    SKIPPED = "SKIPPED"
    """Not run because the suite was aborted first."""


class CaseResult(BaseModel):
    """Result of one test case."""

    model_config = ConfigDict(use_attribute_docstrings=True)

    name: str
    """Name of the test case."""
    status: CaseStatus
    """Pass, fail, ignored or skipped."""
    outcome: Optional[ExecutionOutcome] = None
    """Classified VM outcome, when execution was reached."""
    executable: Optional[Path] = None
    """The linked shared object, when linking succeeded."""
    error_kind: Optional[str] = None
    """Kind of the error that failed the test case, e.g. ``LinkFailure``."""
    message: Optional[str] = None
    """Human readable diagnostic of the failure."""

    @property
    def passed(self) -> bool:
        return self.status == CaseStatus.PASSED


class SuiteResult(BaseModel):
    """Results of a set of test cases."""

    model_config = ConfigDict(use_attribute_docstrings=True)

    passed: int = 0
    failed: int = 0
    ignored: int = 0
    skipped: int = 0
    """Cases cancelled when the run was aborted."""
    total: int = 0
    """Number of submitted cases. Equals the sum of the four counts above."""
    aborted: bool = False
    """True when a fatal harness error stopped the run."""
    abort_reason: Optional[str] = None
    """The fatal error that stopped the run."""
    cases: List[CaseResult] = Field(default_factory=list)
    """One result per submitted test case, in input order."""

    @classmethod
    def from_cases(
        cls, cases: List[CaseResult], abort_reason: Optional[str] = None
    ) -> "SuiteResult":
        return cls(
            passed=sum(1 for c in cases if c.status == CaseStatus.PASSED),
            failed=sum(1 for c in cases if c.status == CaseStatus.FAILED),
            ignored=sum(1 for c in cases if c.status == CaseStatus.IGNORED),
            skipped=sum(1 for c in cases if c.status == CaseStatus.SKIPPED),
            total=len(cases),
            aborted=abort_reason is not None,
            abort_reason=abort_reason,
            cases=cases,
        )

    @property
    def ok(self) -> bool:
        return not self.aborted and self.failed == 0
