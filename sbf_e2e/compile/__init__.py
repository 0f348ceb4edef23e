"""Build and link subsystem.

This package turns compiled bytecode into something the VM can load:

- SharedRuntimeBuilder: builds the native runtime archive once per process
- link_object_files: links a test case's object files and the runtime into ``output.so``
- CompilationUnit: a bytecode module and its object file
- run_tool: subprocess wrapper with a mandatory timeout

The typical workflow is:
1. Build the runtime: runtime = SharedRuntimeBuilder(config, toolchain).get()
2. Compile bytecode to objects (external step)
3. Link: exe = link_object_files(toolchain, units, runtime, build_dir, link_script, timeout)
"""

from .linker import LinkedExecutable, build_link_command, link_object_files
from .once import BuildOnce
from .process import ToolOutput, child_env, run_tool
from .runtime import RuntimeArtifact, SharedRuntimeBuilder
from .units import CompilationUnit, ObjectCompiler, units_from_paths

__all__ = [
    "BuildOnce",
    "CompilationUnit",
    "LinkedExecutable",
    "ObjectCompiler",
    "RuntimeArtifact",
    "SharedRuntimeBuilder",
    "ToolOutput",
    "build_link_command",
    "child_env",
    "link_object_files",
    "run_tool",
    "units_from_paths",
]
