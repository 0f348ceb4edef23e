"""The per test case pipeline: runtime, compile, link, execute."""

from __future__ import annotations

from typing import List, Optional, Sequence

from sbf_e2e.compile import CompilationUnit, ObjectCompiler, link_object_files
from sbf_e2e.errors import CompileFailure, FatalHarnessError, HarnessError
from sbf_e2e.logging import get_logger

from .case import CaseResult, CaseStatus, TestDirective
from .session import HarnessSession

logger = get_logger(__name__)


def _compile(compiler: ObjectCompiler, units: List[CompilationUnit]) -> None:
    try:
        compiler(units)
    except HarnessError:
        raise
    except Exception as e:
        raise CompileFailure(f"{type(e).__name__}: {e}") from e


def run_test_case(
    session: HarnessSession,
    directive: TestDirective,
    units: Sequence[CompilationUnit],
    compiler: Optional[ObjectCompiler] = None,
) -> CaseResult:
    """Run one test case end to end.

    Steps run strictly in order: get (or build) the shared runtime, compile the units with the
    external compiler, link, execute in the VM.

    Parameters
    ----------
    session : HarnessSession
        The process-wide session.
    directive : TestDirective
        Name, build directory and ignore flag of the test case.
    units : Sequence[CompilationUnit]
        Compilation units of the test case, in link order.
    compiler : Optional[ObjectCompiler]
        Compiles every unit's bytecode to its object file. When omitted, the object files must
        already exist.
        Anything it raises fails this test case with a ``CompileFailure``.

    Returns
    -------
    CaseResult
        ``IGNORED`` for ignored cases, ``PASSED`` when execution succeeds (with or without a zero
        return value), ``FAILED`` with the error kind and diagnostic otherwise.

    Raises
    ------
    FatalHarnessError
        If the shared runtime cannot be built. This ends the whole run, not just this case.
    """
    if directive.ignore:
        logger.info("ignoring %s", directive.name)
        return CaseResult(name=directive.name, status=CaseStatus.IGNORED)

    runtime = session.runtime()
    units = list(units)
    exe = None
    outcome = None
    try:
        if compiler is not None:
            _compile(compiler, units)
        exe = link_object_files(
            session.toolchain,
            units,
            runtime,
            directive.build_dir,
            session.link_script,
            timeout=session.config.link_timeout,
        )
        outcome = session.verifier.run(exe.path)
        outcome.check(exe.path)
    except FatalHarnessError:
        raise
    except HarnessError as e:
        logger.error("%s failed: %s", directive.name, e)
        return CaseResult(
            name=directive.name,
            status=CaseStatus.FAILED,
            executable=exe.path if exe is not None else None,
            outcome=outcome,
            error_kind=e.kind,
            message=str(e),
        )

    logger.info("%s passed (%s)", directive.name, outcome.kind.value)
    return CaseResult(
        name=directive.name,
        status=CaseStatus.PASSED,
        outcome=outcome,
        executable=exe.path,
    )
