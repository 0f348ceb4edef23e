"""Interface of the sandboxed execution engine driven by the harness."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .config import VmConfig


class EngineError(Exception):
    """Base class of errors reported by an engine."""


class EngineLoadError(EngineError):
    """The engine could not parse the executable."""


class EngineVerifyError(EngineError):
    """The engine's verifier rejected the executable."""


@dataclass
class MemoryRegion:
    """A memory region mapped into the VM before a run."""

    vm_addr: int
    data: bytearray
    writable: bool = True

    @classmethod
    def new_writable(cls, data: bytearray, vm_addr: int) -> "MemoryRegion":
        return cls(vm_addr=vm_addr, data=data, writable=True)

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ProgramResult:
    """What the VM reports at the end of a run: a return value or an error."""

    return_value: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, value: int) -> "ProgramResult":
        return cls(return_value=value)

    @classmethod
    def err(cls, detail: str) -> "ProgramResult":
        return cls(error=detail)

    @property
    def is_ok(self) -> bool:
        return self.error is None


@dataclass
class LoadedProgram:
    """An executable parsed by an engine, not yet verified."""

    path: Path
    elf: bytes
    config: VmConfig
    info: Dict[str, Any] = field(default_factory=dict)
    """Engine specific details about the image."""


@dataclass
class VerifiedProgram:
    """A program that passed the engine's verifier and may be executed."""

    program: LoadedProgram


class SandboxEngine(ABC):
    """A sandboxed VM the harness drives as a black box.

    The harness only relies on three steps: parse an executable, verify it, execute it. Engines
    report rejections through :class:`EngineLoadError` and :class:`EngineVerifyError`; a trap at
    runtime is not an exception but an error :class:`ProgramResult`.
    """

    @abstractmethod
    def parse(self, path: Path, elf: bytes, config: VmConfig) -> LoadedProgram:
        """Parse the bytes of an executable.

        Raises
        ------
        EngineLoadError
            If the bytes are not a valid executable for the engine.
        """
        ...

    @abstractmethod
    def verify(self, program: LoadedProgram) -> VerifiedProgram:
        """Run the requisite verifier over a parsed program.

        Raises
        ------
        EngineVerifyError
            If the program violates the sandbox's static rules.
        """
        ...

    @abstractmethod
    def execute(
        self,
        program: VerifiedProgram,
        regions: List[MemoryRegion],
        enable_instruction_meter: bool = True,
    ) -> Tuple[int, ProgramResult]:
        """Run a verified program with the given memory regions mapped.

        Returns
        -------
        Tuple[int, ProgramResult]
            Number of executed instructions and the result of the run.
        """
        ...
