"""Subprocess helpers shared by the runtime build, the linker and the VM runner."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from sbf_e2e.errors import ToolNotRunnable, ToolTimeout
from sbf_e2e.logging import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class ToolOutput:
    """Captured result of one tool invocation."""

    args: List[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def child_env(
    overrides: Optional[Mapping[str, PathLike]] = None,
    unset: Iterable[str] = (),
    base: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Build the environment of a child process.

    Parameters
    ----------
    overrides : Optional[Mapping[str, PathLike]]
        Variables to set or override.
    unset : Iterable[str]
        Variables to remove.
    base : Optional[Mapping[str, str]]
        Starting environment. Defaults to a copy of the current process environment.

    Returns
    -------
    Dict[str, str]
        The environment for the child.
    """
    env = dict(os.environ if base is None else base)
    for name in unset:
        env.pop(name, None)
    for name, value in (overrides or {}).items():
        env[name] = str(value)
    return env


def _decode(data: Union[bytes, str, None]) -> str:
    if data is None:
        return ""
    if isinstance(data, str):
        return data
    return data.decode("utf-8", errors="replace")


def run_tool(
    tool: PathLike,
    args: Sequence[PathLike],
    *,
    timeout: float,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[PathLike] = None,
) -> ToolOutput:
    """Run a tool to completion and capture its output.

    Parameters
    ----------
    tool : PathLike
        The executable.
    args : Sequence[PathLike]
        Its arguments.
    timeout : float
        Seconds to wait before killing the tool.
    env : Optional[Mapping[str, str]]
        Full environment of the child. Inherits the current one when None.
    cwd : Optional[PathLike]
        Working directory of the child.

    Returns
    -------
    ToolOutput
        Exit status and decoded streams. A nonzero exit status is not an error at this level.

    Raises
    ------
    ToolTimeout
        If the tool is still running after ``timeout`` seconds.
    ToolNotRunnable
        If the tool cannot be started at all.
    """
    cmd = [str(tool)] + [str(a) for a in args]
    logger.debug("running %s", " ".join(cmd))
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            timeout=timeout,
            env=dict(env) if env is not None else None,
            cwd=str(cwd) if cwd is not None else None,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise ToolTimeout(tool, timeout, stderr=_decode(e.stderr)) from e
    except OSError as e:
        raise ToolNotRunnable(tool, e.strerror or str(e)) from e

    output = ToolOutput(
        args=cmd,
        returncode=proc.returncode,
        stdout=_decode(proc.stdout),
        stderr=_decode(proc.stderr),
    )
    if not output.ok:
        logger.debug("%s exited with %d", cmd[0], output.returncode)
    return output
