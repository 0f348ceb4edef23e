"""Fixed VM configuration of the harness."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

MM_INPUT_START = 0x4_0000_0000
"""Virtual address of the input region in the SBF memory map."""

INPUT_REGION_SIZE = 1024
"""Size in bytes of the zeroed input buffer mapped for every run."""


class VmConfig(BaseModel):
    """Safety and feature toggles used when loading a program.

    The values are fixed for the harness. They describe the loader settings the compiler backend
    currently targets, so they are not configurable per test case.
    """

    model_config = ConfigDict(use_attribute_docstrings=True, frozen=True)

    dynamic_stack_frames: bool = False
    """Size stack frames dynamically. The backend emits fixed-size frames."""
    enable_elf_vaddr: bool = False
    """Honour the ELF virtual addresses of the loaded image."""
    reject_rodata_stack_overlap: bool = False
    """Reject images whose read-only data overlaps the stack region."""
    static_syscalls: bool = False
    """Resolve syscalls statically at load time."""
    enable_instruction_meter: bool = False
    """Meter instructions during loading. Metering of a run is requested by the run itself."""


HARNESS_VM_CONFIG = VmConfig()
"""The configuration every program is loaded with."""
