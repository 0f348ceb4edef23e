"""Harness configuration, built once at startup and passed to every component."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from sbf_e2e import env

DEFAULT_LINK_SCRIPT = Path(__file__).parent / "data" / "sbf-link-script.ld"
"""Linker script shipped with the package. Describes the memory layout the SBF loader expects."""


class HarnessConfig(BaseModel):
    """Configuration of the build-link-execute pipeline.

    Components never read the environment themselves. Construct this object explicitly, or with
    :meth:`from_env`, and pass it down.
    """

    model_config = ConfigDict(use_attribute_docstrings=True, frozen=True)

    sbf_tools_root: Optional[Path] = None
    """Root of the SBF platform tools, containing ``llvm/bin`` and ``rust/bin``."""
    runtime_workspace: Path = Field(default_factory=Path.cwd)
    """Cargo workspace that contains the native runtime crate. Build outputs land in its
    ``target`` directory."""
    runtime_package: str = Field(default="move-native", min_length=1)
    """Cargo package name of the native runtime."""
    runtime_lib_name: str = Field(default="libmove_native.a", min_length=1)
    """File name of the static library produced by the runtime build."""
    target_triple: str = Field(default="sbf-solana-solana", min_length=1)
    """Target triple of the sandboxed VM."""
    link_script: Path = DEFAULT_LINK_SCRIPT
    """Linker script describing the memory layout of the sandboxed target."""
    build_timeout: float = Field(default=1800.0, gt=0)
    """Timeout in seconds for the runtime build."""
    link_timeout: float = Field(default=120.0, gt=0)
    """Timeout in seconds for one linker invocation."""
    vm_timeout: float = Field(default=60.0, gt=0)
    """Timeout in seconds for one VM run."""
    rbpf_cli: str = Field(default="rbpf-cli", min_length=1)
    """Executable of the VM runner used by :class:`sbf_e2e.vm.RbpfCliEngine`."""
    instruction_limit: int = Field(default=1_000_000, gt=0)
    """Maximum number of instructions a VM run may execute."""
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    """Log level of the ``sbf_e2e`` logger."""

    @classmethod
    def from_env(cls, **overrides: Any) -> "HarnessConfig":
        """Build a configuration from environment variables.

        Explicit keyword arguments take precedence over the environment.

        Parameters
        ----------
        overrides : Any
            Field values overriding the environment.

        Returns
        -------
        HarnessConfig
            The configuration.
        """
        values = {
            "sbf_tools_root": env.get_sbf_tools_root(),
            "runtime_workspace": env.get_runtime_workspace(),
            "link_script": env.get_link_script(),
            "rbpf_cli": env.get_rbpf_cli(),
            "log_level": env.get_log_level(),
        }
        values = {k: v for k, v in values.items() if v is not None}
        values.update(overrides)
        return cls(**values)

    @property
    def runtime_archive(self) -> Path:
        """Fixed location of the runtime static library after a release build."""
        return (
            self.runtime_workspace
            / "target"
            / self.target_triple
            / "release"
            / self.runtime_lib_name
        )
