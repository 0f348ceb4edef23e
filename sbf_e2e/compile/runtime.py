"""Build of the native runtime archive shared by every test case."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List

from sbf_e2e.config import HarnessConfig
from sbf_e2e.errors import RuntimeArtifactMissing, RuntimeBuildFailure, ToolNotRunnable
from sbf_e2e.logging import get_logger
from sbf_e2e.toolchain import ToolchainPaths

from .once import BuildOnce
from .process import child_env, run_tool

logger = get_logger(__name__)

UNSET_ENV_VARS = ["RUSTUP_TOOLCHAIN"]
"""Removed from the cargo environment so rustup cannot swap in a different toolchain."""


@dataclass(frozen=True)
class RuntimeArtifact:
    """The runtime built as a static library for the sandboxed target."""

    archive_file: Path
    """Path to the ``.a`` file."""


class SharedRuntimeBuilder:
    """Builds the native runtime at most once and hands the same artifact to every caller.

    The harness keeps one instance per process. The first :meth:`get` runs ``cargo build`` in
    release mode (debug builds of the runtime overflow the sandbox stack); concurrent callers wait
    for it. A failed build is never retried: every later :meth:`get` re-raises the same error.

    Examples
    --------
    >>> builder = SharedRuntimeBuilder(config, toolchain)
    >>> runtime = builder.get()  # builds
    >>> runtime is builder.get()  # cached
    True
    """

    def __init__(self, config: HarnessConfig, toolchain: ToolchainPaths) -> None:
        self._config = config
        self._toolchain = toolchain
        self._once: BuildOnce[RuntimeArtifact] = BuildOnce(self._build)

    @property
    def archive_file(self) -> Path:
        """Where the runtime archive is expected after a successful build."""
        return self._config.runtime_archive

    @property
    def built(self) -> bool:
        """True once the build has run, whether it succeeded or not."""
        return self._once.done

    def cargo_args(self) -> List[str]:
        return [
            "build",
            "-p",
            self._config.runtime_package,
            "--target",
            self._config.target_triple,
            "--release",
        ]

    def get(self) -> RuntimeArtifact:
        """Get the runtime artifact, building it on the first call.

        Returns
        -------
        RuntimeArtifact
            The shared artifact.

        Raises
        ------
        RuntimeBuildFailure
            If cargo failed, now or on the call that ran the build.
        RuntimeArtifactMissing
            If cargo succeeded but the archive is missing.
        ToolTimeout
            If cargo did not finish within the build timeout.
        """
        return self._once.get()

    def _build(self) -> RuntimeArtifact:
        logger.info("building %s runtime for sbf", self._config.runtime_package)
        env = child_env(
            overrides={"CARGO": self._toolchain.cargo, "RUSTC": self._toolchain.rustc},
            unset=UNSET_ENV_VARS,
        )
        try:
            output = run_tool(
                self._toolchain.cargo,
                self.cargo_args(),
                timeout=self._config.build_timeout,
                env=env,
                cwd=self._config.runtime_workspace,
            )
        except ToolNotRunnable as e:
            raise RuntimeBuildFailure(f"running SBF cargo failed: {e.reason}") from e
        if not output.ok:
            raise RuntimeBuildFailure(
                f"running SBF cargo failed with exit code {output.returncode}",
                stderr=output.stderr,
            )

        archive_file = self.archive_file
        if not archive_file.exists():
            raise RuntimeArtifactMissing(archive_file)

        logger.info("runtime archive ready at %s", archive_file)
        return RuntimeArtifact(archive_file=archive_file)
