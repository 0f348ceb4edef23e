from sbf_e2e.compile import (
    CompilationUnit,
    LinkedExecutable,
    RuntimeArtifact,
    SharedRuntimeBuilder,
    link_object_files,
)
from sbf_e2e.config import HarnessConfig
from sbf_e2e.errors import (
    CompileFailure,
    ExecutionFailure,
    FatalHarnessError,
    HarnessError,
    LinkFailure,
    RuntimeArtifactMissing,
    RuntimeBuildFailure,
    ToolchainNotFound,
    ToolchainRootUnset,
    ToolNotRunnable,
    ToolTimeout,
    VerificationFailure,
    VmLoadFailure,
)
from sbf_e2e.harness import (
    CaseResult,
    CaseStatus,
    HarnessSession,
    SuiteResult,
    SuiteRunner,
    TestCase,
    TestDirective,
    run_test_case,
)
from sbf_e2e.logging import configure_logging, get_logger
from sbf_e2e.toolchain import ToolchainPaths, resolve_toolchain
from sbf_e2e.vm import (
    ExecutionOutcome,
    ExecutionVerifier,
    OutcomeKind,
    RbpfCliEngine,
    SandboxEngine,
    VmConfig,
)

__all__ = [
    # Configuration
    "HarnessConfig",
    # Toolchain
    "ToolchainPaths",
    "resolve_toolchain",
    # Build and link
    "CompilationUnit",
    "LinkedExecutable",
    "RuntimeArtifact",
    "SharedRuntimeBuilder",
    "link_object_files",
    # VM
    "ExecutionOutcome",
    "ExecutionVerifier",
    "OutcomeKind",
    "RbpfCliEngine",
    "SandboxEngine",
    "VmConfig",
    # Harness
    "CaseResult",
    "CaseStatus",
    "HarnessSession",
    "SuiteResult",
    "SuiteRunner",
    "TestCase",
    "TestDirective",
    "run_test_case",
    # Errors
    "HarnessError",
    "FatalHarnessError",
    "ToolchainRootUnset",
    "ToolchainNotFound",
    "RuntimeBuildFailure",
    "RuntimeArtifactMissing",
    "CompileFailure",
    "LinkFailure",
    "VmLoadFailure",
    "VerificationFailure",
    "ExecutionFailure",
    "ToolTimeout",
    "ToolNotRunnable",
    # Logging
    "configure_logging",
    "get_logger",
]
