"""Linking object files and the runtime archive into a loadable SBF shared object."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from sbf_e2e.errors import LinkFailure
from sbf_e2e.logging import get_logger
from sbf_e2e.toolchain import ToolchainPaths

from .process import run_tool
from .runtime import RuntimeArtifact
from .units import CompilationUnit

logger = get_logger(__name__)

OUTPUT_NAME = "output.so"
ENTRY_SYMBOL = "main"


@dataclass(frozen=True)
class LinkedExecutable:
    """The shared object produced for one test case."""

    path: Path


def output_path(build_dir: Path) -> Path:
    return Path(build_dir) / OUTPUT_NAME


def build_link_command(
    units: Sequence[CompilationUnit],
    runtime: RuntimeArtifact,
    link_script: Path,
    build_dir: Path,
) -> List[str]:
    """Arguments passed to ld.lld, excluding the executable itself.

    The flags never depend on the inputs. Object files follow in the given order and the runtime
    archive comes last, so runtime symbols are pulled in by what the units reference.
    """
    args = [
        "--threads=1",
        "-znotext",
        "-znoexecstack",
        "--script",
        str(link_script),
        "--gc-sections",
        "-shared",
        "--Bstatic",
        "--entry",
        ENTRY_SYMBOL,
        "-o",
        str(output_path(build_dir)),
    ]
    args.extend(str(unit.object_file) for unit in units)
    args.append(str(runtime.archive_file))
    return args


def link_object_files(
    toolchain: ToolchainPaths,
    units: Sequence[CompilationUnit],
    runtime: RuntimeArtifact,
    build_dir: Path,
    link_script: Path,
    timeout: float,
) -> LinkedExecutable:
    """Link a test case's object files with the runtime archive.

    Parameters
    ----------
    toolchain : ToolchainPaths
        Resolved toolchain; ``toolchain.lld`` is invoked.
    units : Sequence[CompilationUnit]
        Compilation units of the test case, in link order.
    runtime : RuntimeArtifact
        The shared runtime archive.
    build_dir : Path
        Build directory of the test case. ``output.so`` is written there, replacing any previous one.
    link_script : Path
        Linker script for the sandboxed target.
    timeout : float
        Seconds to wait for the linker.

    Returns
    -------
    LinkedExecutable
        The produced shared object.

    Raises
    ------
    LinkFailure
        If the linker exits with a nonzero status. Carries the linker's stderr verbatim.
    ToolTimeout
        If the linker does not finish in time.
    """
    build_dir = Path(build_dir)
    build_dir.mkdir(parents=True, exist_ok=True)

    args = build_link_command(units, runtime, link_script, build_dir)
    output = run_tool(toolchain.lld, args, timeout=timeout)
    if not output.ok:
        raise LinkFailure(output.returncode, output.stderr)

    exe = LinkedExecutable(path=output_path(build_dir))
    logger.debug("linked %d object file(s) into %s", len(units), exe.path)
    return exe
