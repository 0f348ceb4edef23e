"""Process-wide state shared by every test case."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from sbf_e2e.compile import RuntimeArtifact, SharedRuntimeBuilder
from sbf_e2e.config import HarnessConfig
from sbf_e2e.logging import get_logger
from sbf_e2e.toolchain import ToolchainPaths, resolve_toolchain
from sbf_e2e.vm import ExecutionVerifier, RbpfCliEngine, SandboxEngine

logger = get_logger(__name__)


class HarnessSession:
    """Everything a test case shares with the others: configuration, toolchain, runtime, VM.

    Create one per process, at startup. The toolchain is resolved in the constructor so a bad
    root fails before any test case runs. Everything held here is read-only apart from the
    runtime build gate, which is thread-safe.

    Parameters
    ----------
    config : HarnessConfig
        The harness configuration.
    engine : Optional[SandboxEngine]
        The VM. Defaults to :class:`RbpfCliEngine` configured from ``config``.
    toolchain : Optional[ToolchainPaths]
        Already resolved toolchain. Resolved from ``config.sbf_tools_root`` when omitted.
    """

    def __init__(
        self,
        config: HarnessConfig,
        engine: Optional[SandboxEngine] = None,
        toolchain: Optional[ToolchainPaths] = None,
    ) -> None:
        self.config = config
        self.toolchain = toolchain or resolve_toolchain(config.sbf_tools_root)
        self.runtime_builder = SharedRuntimeBuilder(config, self.toolchain)
        if engine is None:
            engine = RbpfCliEngine(
                executable=config.rbpf_cli,
                timeout=config.vm_timeout,
                instruction_limit=config.instruction_limit,
            )
        self.engine = engine
        self.verifier = ExecutionVerifier(engine)
        logger.debug("toolchain resolved under %s", self.toolchain.root)

    @property
    def link_script(self) -> Path:
        return self.config.link_script

    def runtime(self) -> RuntimeArtifact:
        """The shared runtime, built on first use."""
        return self.runtime_builder.get()
