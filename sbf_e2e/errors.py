"""Error taxonomy of the harness.

Every error carries the context needed to diagnose it (binary, path, captured stream) in its
message. Nothing here is retried: toolchain and VM failures are deterministic for a given input.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class HarnessError(RuntimeError):
    """Base class of all errors raised by the harness."""

    kind: str = "HarnessError"


class FatalHarnessError(HarnessError):
    """An error after which no further test case can produce a meaningful result."""


class ToolchainRootUnset(FatalHarnessError):
    kind = "ToolchainRootUnset"

    def __init__(self, message: str = "SBF toolchain root is not set (SBF_TOOLS_ROOT)") -> None:
        super().__init__(message)


class ToolchainNotFound(FatalHarnessError):
    """Raised when one of the required toolchain binaries does not exist."""

    kind = "ToolchainNotFound"

    def __init__(self, binary: str, path: Path) -> None:
        self.binary = binary
        self.path = Path(path)
        super().__init__(f"no {binary} bin at {self.path}")


class RuntimeBuildFailure(FatalHarnessError):
    """The shared runtime failed to build. Fatal for every test case depending on it."""

    kind = "RuntimeBuildFailure"

    def __init__(self, message: str, stderr: str = "") -> None:
        self.stderr = stderr
        if stderr:
            message = f"{message}. stderr:\n\n{stderr}"
        super().__init__(message)


class RuntimeArtifactMissing(FatalHarnessError):
    """The runtime build reported success but the archive is not where it should be."""

    kind = "RuntimeArtifactMissing"

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        super().__init__(f"native runtime not found at {self.path}. this is a bug")


class LinkFailure(HarnessError):
    kind = "LinkFailure"

    def __init__(self, returncode: int, stderr: str) -> None:
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"linking with lld failed (exit code {returncode}). stderr:\n\n{stderr}")


class VmLoadFailure(HarnessError):
    """The linked binary could not be parsed as a sandbox executable."""

    kind = "VmLoadFailure"

    def __init__(self, path: Path, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"failed to load {self.path}: {reason}")


class VerificationFailure(HarnessError):
    """The binary loaded but was rejected by the static verifier."""

    kind = "VerificationFailure"

    def __init__(self, path: Path, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"verifier rejected {self.path}: {reason}")


class ExecutionFailure(HarnessError):
    """The program trapped or the VM reported an error while running it."""

    kind = "ExecutionFailure"

    def __init__(self, reason: str, path: Optional[Path] = None) -> None:
        self.reason = reason
        self.path = Path(path) if path is not None else None
        where = f" running {self.path}" if self.path is not None else ""
        super().__init__(f"execution failed{where}: {reason}")


class ToolTimeout(HarnessError):
    """A subprocess (build, link or VM run) did not finish in time."""

    kind = "Timeout"

    def __init__(self, tool: Union[str, Path], timeout: float, stderr: str = "") -> None:
        self.tool = str(tool)
        self.timeout = timeout
        self.stderr = stderr
        super().__init__(f"{self.tool} timed out after {timeout:g}s")


class CompileFailure(HarnessError):
    """The external step compiling bytecode to object files failed for one test case."""

    kind = "CompileFailure"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"compiling to object files failed: {reason}")


class ToolNotRunnable(HarnessError):
    """The operating system refused to start a tool (missing file, no permission)."""

    kind = "ToolNotRunnable"

    def __init__(self, tool: Union[str, Path], reason: str) -> None:
        self.tool = str(tool)
        self.reason = reason
        super().__init__(f"could not run {self.tool}: {reason}")
