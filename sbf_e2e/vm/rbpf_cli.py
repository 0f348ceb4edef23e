"""Engine backed by the ``rbpf-cli`` program runner."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Tuple

from sbf_e2e.compile.process import ToolOutput, run_tool
from sbf_e2e.logging import get_logger

from .config import HARNESS_VM_CONFIG, MM_INPUT_START, VmConfig
from .elf import inspect_sbf_elf
from .engine import (
    EngineLoadError,
    EngineVerifyError,
    LoadedProgram,
    MemoryRegion,
    ProgramResult,
    SandboxEngine,
    VerifiedProgram,
)

logger = get_logger(__name__)

INPUT_FILE_NAME = "input.bin"

_RESULT_RE = re.compile(r"^Result:\s*(?P<result>.+?)\s*$", re.MULTILINE)
_OK_RE = re.compile(r"^Ok\((?P<value>-?\d+)\)$")
_ERR_RE = re.compile(r"^Err\((?P<detail>.*)\)$", re.DOTALL)
_COUNT_RE = re.compile(r"^Instruction Count:\s*(?P<count>\d+)\s*$", re.MULTILINE)

_LOAD_MARKERS = ("Executable constructor failed", "ElfError")
_VERIFY_MARKERS = ("Executable verifier failed", "VerifierError")


def parse_result_line(stdout: str) -> Optional[ProgramResult]:
    """Extract the ``Result: ...`` line printed by the runner."""
    match = _RESULT_RE.search(stdout)
    if match is None:
        return None
    result = match.group("result")
    ok = _OK_RE.match(result)
    if ok is not None:
        return ProgramResult.ok(int(ok.group("value")))
    err = _ERR_RE.match(result)
    if err is not None:
        return ProgramResult.err(err.group("detail"))
    return ProgramResult.err(result)


def parse_instruction_count(stdout: str) -> int:
    match = _COUNT_RE.search(stdout)
    return int(match.group("count")) if match is not None else 0


def _diagnostic(output: ToolOutput) -> str:
    return (output.stderr or output.stdout).strip() or f"exit code {output.returncode}"


def _describe(config: VmConfig) -> str:
    return ", ".join(f"{name}={value}" for name, value in config.model_dump().items())


class RbpfCliEngine(SandboxEngine):
    """Drives the rbpf program runner as a subprocess.

    The container is checked in-process with pyelftools; verification and execution are delegated
    to the runner, which loads the image and runs the requisite verifier before anything else.
    The runner maps its single input region at ``MM_INPUT_START``.

    The runner takes no flags for the loader settings: they are fixed when the runner is built.
    ``loader_config`` declares them, and :meth:`parse` refuses any other configuration instead of
    loading the program under settings it was not asked for.

    Parameters
    ----------
    executable : str
        The runner executable.
    timeout : float
        Seconds a single runner invocation may take.
    instruction_limit : int
        Maximum number of instructions per run.
    loader_config : VmConfig
        Loader settings the runner was built with.
    """

    def __init__(
        self,
        executable: str = "rbpf-cli",
        timeout: float = 60.0,
        instruction_limit: int = 1_000_000,
        loader_config: VmConfig = HARNESS_VM_CONFIG,
    ) -> None:
        self._executable = executable
        self._timeout = timeout
        self._instruction_limit = instruction_limit
        self._loader_config = loader_config

    @property
    def loader_config(self) -> VmConfig:
        return self._loader_config

    def parse(self, path: Path, elf: bytes, config: VmConfig) -> LoadedProgram:
        if config != self._loader_config:
            raise EngineLoadError(
                f"{self._executable} loads with {_describe(self._loader_config)}, "
                f"cannot honour {_describe(config)}"
            )
        info = inspect_sbf_elf(elf)
        return LoadedProgram(path=Path(path), elf=elf, config=config, info=info)

    def verify(self, program: LoadedProgram) -> VerifiedProgram:
        output = run_tool(
            self._executable,
            ["--elf", program.path, "--use", "disassembler"],
            timeout=self._timeout,
        )
        if output.ok:
            return VerifiedProgram(program=program)

        detail = _diagnostic(output)
        if any(marker in detail for marker in _LOAD_MARKERS):
            raise EngineLoadError(detail)
        raise EngineVerifyError(detail)

    def execute(
        self,
        program: VerifiedProgram,
        regions: List[MemoryRegion],
        enable_instruction_meter: bool = True,
    ) -> Tuple[int, ProgramResult]:
        if len(regions) != 1 or regions[0].vm_addr != MM_INPUT_START:
            raise ValueError("rbpf-cli maps exactly one region at MM_INPUT_START")

        exe_path = program.program.path
        input_path = exe_path.parent / INPUT_FILE_NAME
        input_path.write_bytes(bytes(regions[0].data))

        args = ["--elf", exe_path, "--input", input_path, "--use", "interpreter"]
        if enable_instruction_meter:
            args += ["--lim", str(self._instruction_limit)]
        output = run_tool(self._executable, args, timeout=self._timeout)

        result = parse_result_line(output.stdout)
        if result is None:
            # The runner panicked before printing a result.
            detail = _diagnostic(output)
            if any(marker in detail for marker in _VERIFY_MARKERS):
                raise EngineVerifyError(detail)
            return 0, ProgramResult.err(detail)

        count = parse_instruction_count(output.stdout)
        logger.debug("%s executed %d instructions", exe_path.name, count)
        return count, result
