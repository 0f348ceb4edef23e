"""Discovery and validation of the SBF platform tools."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from sbf_e2e.errors import ToolchainNotFound, ToolchainRootUnset

EXE_SUFFIX = ".exe" if sys.platform == "win32" else ""
"""Suffix of native executables on the host."""

_TOOL_LOCATIONS: List[Tuple[str, str]] = [
    ("clang", "llvm/bin/clang"),
    ("rustc", "rust/bin/rustc"),
    ("cargo", "rust/bin/cargo"),
    ("lld", "llvm/bin/ld.lld"),
]
"""Tools in the order they are checked, with their location relative to the root."""


@dataclass(frozen=True)
class ToolchainPaths:
    """Resolved executables of the SBF platform tools. Every path existed at resolution time."""

    root: Path
    clang: Path
    rustc: Path
    cargo: Path
    lld: Path


def expected_tool_path(root: Path, relative: str, exe_suffix: str = EXE_SUFFIX) -> Path:
    # Appended, not substituted: "ld.lld" already has a dot in its name.
    return Path(root) / (relative + exe_suffix)


def resolve_toolchain(
    root: Optional[Union[str, Path]], exe_suffix: str = EXE_SUFFIX
) -> ToolchainPaths:
    """Locate clang, rustc, cargo and ld.lld under the toolchain root.

    Resolution is all or nothing: the first missing binary raises and no partial record is
    returned.

    Parameters
    ----------
    root : Optional[Union[str, Path]]
        The toolchain root.
    exe_suffix : str
        Executable suffix of the host, ``""`` on POSIX and ``".exe"`` on Windows.

    Returns
    -------
    ToolchainPaths
        The resolved paths.

    Raises
    ------
    ToolchainRootUnset
        If no root was given.
    ToolchainNotFound
        If one of the binaries does not exist. The error names the binary and its expected path.
    """
    if root is None or str(root) == "":
        raise ToolchainRootUnset()
    root = Path(root)

    resolved = {}
    for name, relative in _TOOL_LOCATIONS:
        path = expected_tool_path(root, relative, exe_suffix)
        if not path.exists():
            raise ToolchainNotFound(name, path)
        resolved[name] = path

    return ToolchainPaths(root=root, **resolved)
