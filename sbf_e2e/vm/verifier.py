"""Loading, verifying and running a linked executable, and classifying the result."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from sbf_e2e.errors import ExecutionFailure, VerificationFailure, VmLoadFailure
from sbf_e2e.logging import get_logger

from .config import HARNESS_VM_CONFIG, INPUT_REGION_SIZE, MM_INPUT_START, VmConfig
from .engine import (
    EngineLoadError,
    EngineVerifyError,
    MemoryRegion,
    ProgramResult,
    SandboxEngine,
)

logger = get_logger(__name__)


class OutcomeKind(str, Enum):
    """How a run ended."""

    SUCCESS = "SUCCESS"
    """Terminated normally with return value 0."""
    SUCCESS_WITH_UNSPECIFIED_VALUE = "SUCCESS_WITH_UNSPECIFIED_VALUE"
    """Terminated normally with a nonzero return value. Still a pass: the compiled ``main``
    returns nothing, so r0 holds whatever was left in it."""
    FAILURE = "FAILURE"
    """The VM reported an error or the program trapped."""


class ExecutionOutcome(BaseModel):
    """Classified result of running a linked executable."""

    model_config = ConfigDict(use_attribute_docstrings=True, frozen=True)

    kind: OutcomeKind
    """The classification."""
    return_value: Optional[int] = None
    """Value left in r0 for non-failing runs."""
    reason: Optional[str] = None
    """Trap or VM error detail for failing runs."""

    @property
    def passed(self) -> bool:
        return self.kind != OutcomeKind.FAILURE

    def check(self, path: Optional[Path] = None) -> "ExecutionOutcome":
        """Raise :class:`ExecutionFailure` for a failing outcome, return self otherwise."""
        if self.kind == OutcomeKind.FAILURE:
            raise ExecutionFailure(self.reason or "unknown error", path)
        return self


def classify(result: ProgramResult) -> ExecutionOutcome:
    """Map a VM result onto an :class:`ExecutionOutcome`.

    Parameters
    ----------
    result : ProgramResult
        Result reported by the engine.

    Returns
    -------
    ExecutionOutcome
        ``FAILURE`` for any VM error, ``SUCCESS`` for a zero return value and
        ``SUCCESS_WITH_UNSPECIFIED_VALUE`` for any other return value.
    """
    if not result.is_ok:
        return ExecutionOutcome(kind=OutcomeKind.FAILURE, reason=result.error)
    if result.return_value == 0:
        return ExecutionOutcome(kind=OutcomeKind.SUCCESS, return_value=0)
    # The VM expects a status code but the backend emits a void main, so the value is
    # whatever happens to be in the return register.
    return ExecutionOutcome(
        kind=OutcomeKind.SUCCESS_WITH_UNSPECIFIED_VALUE, return_value=result.return_value
    )


def new_input_region() -> MemoryRegion:
    """The zeroed input buffer mapped at ``MM_INPUT_START`` for every run."""
    return MemoryRegion.new_writable(bytearray(INPUT_REGION_SIZE), MM_INPUT_START)


class ExecutionVerifier:
    """Runs a linked executable in the sandboxed VM and classifies the result.

    Parameters
    ----------
    engine : SandboxEngine
        The VM to drive.
    config : VmConfig
        Loader configuration. Defaults to the fixed harness configuration.
    """

    def __init__(self, engine: SandboxEngine, config: VmConfig = HARNESS_VM_CONFIG) -> None:
        self._engine = engine
        self._config = config

    @property
    def config(self) -> VmConfig:
        return self._config

    def run(self, executable: Union[str, Path]) -> ExecutionOutcome:
        """Load, verify and execute a linked executable.

        Parameters
        ----------
        executable : Union[str, Path]
            Path to the linked shared object.

        Returns
        -------
        ExecutionOutcome
            The classified outcome. A trap is returned as a ``FAILURE`` outcome, not raised.

        Raises
        ------
        VmLoadFailure
            If the file cannot be read or parsed as an executable.
        VerificationFailure
            If the verifier rejects the program. Execution is not attempted.
        """
        path = Path(executable)
        try:
            elf = path.read_bytes()
        except OSError as e:
            raise VmLoadFailure(path, str(e)) from e

        try:
            program = self._engine.parse(path, elf, self._config)
        except EngineLoadError as e:
            raise VmLoadFailure(path, str(e)) from e

        try:
            verified = self._engine.verify(program)
        except EngineLoadError as e:
            raise VmLoadFailure(path, str(e)) from e
        except EngineVerifyError as e:
            raise VerificationFailure(path, str(e)) from e

        try:
            _instruction_count, result = self._engine.execute(
                verified, [new_input_region()], enable_instruction_meter=True
            )
        except EngineVerifyError as e:
            raise VerificationFailure(path, str(e)) from e

        outcome = classify(result)
        logger.debug("%s: %s", path, outcome.kind.value)
        return outcome
