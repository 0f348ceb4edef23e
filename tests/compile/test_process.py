"""Tests for compile/process.py."""

import sys
from pathlib import Path

import pytest
from conftest import write_script

from sbf_e2e.compile import child_env, run_tool
from sbf_e2e.errors import ToolNotRunnable, ToolTimeout


def test_child_env_overrides_and_unsets():
    base = {"PATH": "/usr/bin", "RUSTUP_TOOLCHAIN": "stable", "RUSTC": "/old/rustc"}

    env = child_env(
        overrides={"RUSTC": Path("/new/rustc"), "CARGO": "/new/cargo"},
        unset=["RUSTUP_TOOLCHAIN"],
        base=base,
    )

    assert env == {"PATH": "/usr/bin", "RUSTC": "/new/rustc", "CARGO": "/new/cargo"}
    assert base["RUSTUP_TOOLCHAIN"] == "stable"


@pytest.mark.requires_posix
def test_run_tool_captures_streams(tmp_path: Path):
    tool = write_script(tmp_path / "tool", 'echo "out $1"\necho "err $2" >&2\nexit 3\n')

    output = run_tool(tool, ["a", "b"], timeout=10)

    assert output.returncode == 3
    assert not output.ok
    assert output.stdout == "out a\n"
    assert output.stderr == "err b\n"
    assert output.args == [str(tool), "a", "b"]


@pytest.mark.requires_posix
def test_run_tool_timeout(tmp_path: Path):
    tool = write_script(tmp_path / "slow", "echo started >&2\nexec sleep 5\n")

    with pytest.raises(ToolTimeout) as exc_info:
        run_tool(tool, [], timeout=0.2)

    assert exc_info.value.kind == "Timeout"
    assert exc_info.value.tool == str(tool)


def test_run_tool_missing_executable(tmp_path: Path):
    with pytest.raises(ToolNotRunnable) as exc_info:
        run_tool(tmp_path / "missing-tool", ["--version"], timeout=10)

    assert exc_info.value.tool == str(tmp_path / "missing-tool")
    assert "missing-tool" in str(exc_info.value)


@pytest.mark.requires_posix
def test_run_tool_cwd_and_env(tmp_path: Path):
    tool = write_script(tmp_path / "tool", 'pwd\necho "$MARKER"\n')
    workdir = tmp_path / "work"
    workdir.mkdir()

    output = run_tool(tool, [], timeout=10, cwd=workdir, env=child_env({"MARKER": "x"}))

    lines = output.stdout.splitlines()
    assert Path(lines[0]).resolve() == workdir.resolve()
    assert lines[1] == "x"


if __name__ == "__main__":
    pytest.main(sys.argv)
