"""Compilation units handed over by the bytecode compiler."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Union

OBJECT_EXTENSION = ".o"


@dataclass(frozen=True)
class CompilationUnit:
    """One bytecode module and the object file compiled from it."""

    bytecode: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "bytecode", Path(self.bytecode))

    @property
    def object_file(self) -> Path:
        """The object file next to the bytecode, same stem, ``.o`` extension."""
        return self.bytecode.with_suffix(OBJECT_EXTENSION)


ObjectCompiler = Callable[[List[CompilationUnit]], None]
"""External step that compiles every unit's bytecode into its :attr:`object_file`."""


def units_from_paths(paths: Iterable[Union[str, Path]]) -> List[CompilationUnit]:
    """Wrap bytecode or object paths into compilation units, keeping their order."""
    return [CompilationUnit(Path(p)) for p in paths]
