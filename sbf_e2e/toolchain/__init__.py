from .resolver import EXE_SUFFIX, ToolchainPaths, expected_tool_path, resolve_toolchain

__all__ = ["EXE_SUFFIX", "ToolchainPaths", "expected_tool_path", "resolve_toolchain"]
