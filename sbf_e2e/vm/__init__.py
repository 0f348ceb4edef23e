"""Sandboxed VM subsystem.

- SandboxEngine: interface of the VM (parse, verify, execute)
- RbpfCliEngine: engine backed by the rbpf program runner
- ExecutionVerifier: drives an engine over a linked executable and classifies the result
"""

from .config import HARNESS_VM_CONFIG, INPUT_REGION_SIZE, MM_INPUT_START, VmConfig
from .engine import (
    EngineError,
    EngineLoadError,
    EngineVerifyError,
    LoadedProgram,
    MemoryRegion,
    ProgramResult,
    SandboxEngine,
    VerifiedProgram,
)
from .rbpf_cli import RbpfCliEngine
from .verifier import ExecutionOutcome, ExecutionVerifier, OutcomeKind, classify, new_input_region

__all__ = [
    "HARNESS_VM_CONFIG",
    "INPUT_REGION_SIZE",
    "MM_INPUT_START",
    "VmConfig",
    "EngineError",
    "EngineLoadError",
    "EngineVerifyError",
    "LoadedProgram",
    "MemoryRegion",
    "ProgramResult",
    "SandboxEngine",
    "VerifiedProgram",
    "RbpfCliEngine",
    "ExecutionOutcome",
    "ExecutionVerifier",
    "OutcomeKind",
    "classify",
    "new_input_region",
]
