import stat
import struct
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest

from sbf_e2e.config import HarnessConfig
from sbf_e2e.toolchain import ToolchainPaths, resolve_toolchain
from sbf_e2e.vm import (
    EngineLoadError,
    EngineVerifyError,
    LoadedProgram,
    MemoryRegion,
    ProgramResult,
    SandboxEngine,
    VerifiedProgram,
    VmConfig,
)

ILLEGAL_INSTRUCTION = b"<illegal-instruction>"
"""Marker the fake engine's verifier rejects, standing in for an opcode the sandbox forbids."""


def pytest_collection_modifyitems(config: pytest.Config, items: List[pytest.Item]) -> None:
    """Skip tests that run shell scripts as fake tools when the host has no POSIX shell."""
    if sys.platform != "win32":
        return

    skip_posix = pytest.mark.skip(reason="fake toolchain scripts need a POSIX shell")
    for item in items:
        if any(item.iter_markers(name="requires_posix")):
            item.add_marker(skip_posix)


def write_script(path: Path, body: str) -> Path:
    """Write an executable ``/bin/sh`` script."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


FAKE_CARGO = """\
echo "$*|CARGO=$CARGO|RUSTC=$RUSTC|RUSTUP_TOOLCHAIN=${RUSTUP_TOOLCHAIN-unset}" >> cargo-invocations.log
sleep 0.2
if [ -f cargo-fail ]; then
  echo "error: could not compile move-native" >&2
  exit 101
fi
if [ -f cargo-no-archive ]; then
  exit 0
fi
mkdir -p target/sbf-solana-solana/release
printf 'RUNTIME' > target/sbf-solana-solana/release/libmove_native.a
"""

FAKE_LLD = """\
printf '%s\\n' "$@" > "{log}"
out=""
script=""
prev=""
for arg in "$@"; do
  case "$prev" in
    -o) out="$arg" ;;
    --script) script="$arg" ;;
  esac
  prev="$arg"
done
if [ ! -f "$script" ]; then
  echo "ld.lld: error: cannot find linker script $script" >&2
  exit 1
fi
: > "$out"
prev=""
for arg in "$@"; do
  case "$prev" in
    -o|--script|--entry) prev="$arg"; continue ;;
  esac
  case "$arg" in
    -*) ;;
    *) cat "$arg" >> "$out" || exit 1 ;;
  esac
  prev="$arg"
done
"""


@dataclass
class FakeToolchain:
    root: Path
    workspace: Path
    lld_log: Path

    def resolve(self) -> ToolchainPaths:
        return resolve_toolchain(self.root)

    def cargo_invocations(self) -> List[str]:
        log = self.workspace / "cargo-invocations.log"
        if not log.exists():
            return []
        return log.read_text().splitlines()

    def lld_args(self) -> List[str]:
        return self.lld_log.read_text().splitlines()


@pytest.fixture
def fake_toolchain(tmp_path: Path) -> FakeToolchain:
    """A toolchain root whose cargo and ld.lld are shell scripts that log their invocations.

    cargo runs in the runtime workspace; creating ``cargo-fail`` or ``cargo-no-archive`` there
    makes it fail or skip producing the archive. ld.lld concatenates its inputs into the output.
    """
    root = tmp_path / "sbf-tools"
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    lld_log = tmp_path / "lld-args.log"

    write_script(root / "llvm" / "bin" / "clang", "exit 0\n")
    write_script(root / "rust" / "bin" / "rustc", "exit 0\n")
    write_script(root / "rust" / "bin" / "cargo", FAKE_CARGO)
    write_script(root / "llvm" / "bin" / "ld.lld", FAKE_LLD.format(log=lld_log))
    return FakeToolchain(root=root, workspace=workspace, lld_log=lld_log)


@pytest.fixture
def link_script(tmp_path: Path) -> Path:
    path = tmp_path / "sbf-link-script.ld"
    path.write_text("SECTIONS { .text : { *(.text*) } }\n")
    return path


@pytest.fixture
def harness_config(fake_toolchain: FakeToolchain, link_script: Path) -> HarnessConfig:
    return HarnessConfig(
        sbf_tools_root=fake_toolchain.root,
        runtime_workspace=fake_toolchain.workspace,
        link_script=link_script,
        build_timeout=30,
        link_timeout=30,
        vm_timeout=30,
    )


@dataclass
class FakeEngine(SandboxEngine):
    """In-memory engine. Rejects images containing :data:`ILLEGAL_INSTRUCTION` at verification.

    ``program`` decides the run: it receives the ELF bytes and the mapped regions and returns the
    program result. The default returns ``Ok(0)``.
    """

    program: Optional[Callable[[bytes, List[MemoryRegion]], ProgramResult]] = None
    instruction_count: int = 7
    parsed: List[Tuple[Path, VmConfig]] = field(default_factory=list)
    verified: List[Path] = field(default_factory=list)
    executed: List[Tuple[Path, List[MemoryRegion], bool]] = field(default_factory=list)

    def parse(self, path: Path, elf: bytes, config: VmConfig) -> LoadedProgram:
        self.parsed.append((path, config))
        if not elf:
            raise EngineLoadError("empty image")
        return LoadedProgram(path=path, elf=elf, config=config)

    def verify(self, program: LoadedProgram) -> VerifiedProgram:
        self.verified.append(program.path)
        if ILLEGAL_INSTRUCTION in program.elf:
            raise EngineVerifyError("unsupported instruction at pc 3")
        return VerifiedProgram(program=program)

    def execute(
        self,
        program: VerifiedProgram,
        regions: List[MemoryRegion],
        enable_instruction_meter: bool = True,
    ) -> Tuple[int, ProgramResult]:
        snapshot = [MemoryRegion(r.vm_addr, bytearray(r.data), r.writable) for r in regions]
        self.executed.append((program.program.path, snapshot, enable_instruction_meter))
        if self.program is None:
            return self.instruction_count, ProgramResult.ok(0)
        return self.instruction_count, self.program(program.program.elf, regions)


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


def write_object(build_dir: Path, name: str, content: bytes = b"OBJ") -> Path:
    """Write a fake object file and return its bytecode path (the path units are built from)."""
    build_dir.mkdir(parents=True, exist_ok=True)
    (build_dir / f"{name}.o").write_bytes(content)
    return build_dir / f"{name}.mv"


def make_sbf_elf(
    machine: int = 247, elf_type: int = 3, with_text: bool = True
) -> bytes:
    """Build a minimal ELF image: header, optional ``.text`` holding one ``exit``, section table."""
    text = bytes([0x95, 0, 0, 0, 0, 0, 0, 0]) if with_text else b""
    names = [b"", b".text", b".shstrtab"] if with_text else [b"", b".shstrtab"]
    shstrtab = b"\0".join(names) + b"\0"
    name_offsets = []
    offset = 0
    for name in names:
        name_offsets.append(offset)
        offset += len(name) + 1

    text_offset = 64
    strtab_offset = text_offset + len(text)
    shoff = (strtab_offset + len(shstrtab) + 7) & ~7

    sections = [struct.pack("<IIQQQQIIQQ", 0, 0, 0, 0, 0, 0, 0, 0, 0, 0)]
    if with_text:
        sections.append(
            struct.pack("<IIQQQQIIQQ", name_offsets[1], 1, 6, 0, text_offset, len(text), 0, 0, 8, 0)
        )
    sections.append(
        struct.pack(
            "<IIQQQQIIQQ", name_offsets[-1], 3, 0, 0, strtab_offset, len(shstrtab), 0, 0, 1, 0
        )
    )

    ident = b"\x7fELF" + bytes([2, 1, 1, 0]) + bytes(8)
    header = ident + struct.pack(
        "<HHIQQQIHHHHHH",
        elf_type,
        machine,
        1,
        0,
        0,
        shoff,
        0,
        64,
        56,
        0,
        64,
        len(sections),
        len(sections) - 1,
    )
    body = header + text + shstrtab
    body += bytes(shoff - len(body))
    return body + b"".join(sections)
