"""Environment variables read by the harness.

This is the only module that looks at ``os.environ``. Its values are read once by
:meth:`sbf_e2e.config.HarnessConfig.from_env` and handed to the components from there.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional


def get_sbf_tools_root() -> Optional[Path]:
    """Root of the SBF platform tools (``SBF_TOOLS_ROOT``)."""
    value = os.environ.get("SBF_TOOLS_ROOT")
    if not value:
        return None
    return Path(value).expanduser()


def get_runtime_workspace() -> Optional[Path]:
    """Cargo workspace containing the native runtime crate (``SBF_E2E_RUNTIME_WORKSPACE``)."""
    value = os.environ.get("SBF_E2E_RUNTIME_WORKSPACE")
    if not value:
        return None
    return Path(value).expanduser()


def get_link_script() -> Optional[Path]:
    """Linker script to use instead of the bundled one (``SBF_E2E_LINK_SCRIPT``)."""
    value = os.environ.get("SBF_E2E_LINK_SCRIPT")
    if not value:
        return None
    return Path(value).expanduser()


def get_rbpf_cli() -> Optional[str]:
    """VM runner executable (``SBF_E2E_RBPF_CLI``)."""
    return os.environ.get("SBF_E2E_RBPF_CLI") or None


def get_log_level() -> Optional[str]:
    """Log level (``SBF_E2E_LOG_LEVEL``)."""
    value = os.environ.get("SBF_E2E_LOG_LEVEL")
    return value.upper() if value else None
