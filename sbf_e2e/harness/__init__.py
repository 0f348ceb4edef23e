from .case import CaseResult, CaseStatus, SuiteResult, TestDirective
from .pipeline import run_test_case
from .runner import SuiteRunner, TestCase
from .session import HarnessSession

__all__ = [
    "CaseResult",
    "CaseStatus",
    "HarnessSession",
    "SuiteResult",
    "SuiteRunner",
    "TestCase",
    "TestDirective",
    "run_test_case",
]
