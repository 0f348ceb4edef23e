import argparse
import sys
from pathlib import Path
from typing import List, Optional

from sbf_e2e import configure_logging
from sbf_e2e.compile import units_from_paths
from sbf_e2e.config import HarnessConfig
from sbf_e2e.errors import FatalHarnessError, HarnessError
from sbf_e2e.harness import HarnessSession, TestDirective, run_test_case
from sbf_e2e.toolchain import resolve_toolchain

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_FATAL = 2


def _load_config(args: argparse.Namespace) -> HarnessConfig:
    overrides = {}
    if args.tools_root is not None:
        overrides["sbf_tools_root"] = args.tools_root
    if args.runtime_workspace is not None:
        overrides["runtime_workspace"] = args.runtime_workspace
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    if getattr(args, "link_script", None) is not None:
        overrides["link_script"] = args.link_script
    if getattr(args, "rbpf_cli", None) is not None:
        overrides["rbpf_cli"] = args.rbpf_cli
    config = HarnessConfig.from_env(**overrides)
    configure_logging(config.log_level)
    return config


def check_toolchain(args: argparse.Namespace) -> int:
    config = _load_config(args)
    tools = resolve_toolchain(config.sbf_tools_root)
    print(f"clang: {tools.clang}")
    print(f"rustc: {tools.rustc}")
    print(f"cargo: {tools.cargo}")
    print(f"lld:   {tools.lld}")
    return EXIT_OK


def build_runtime(args: argparse.Namespace) -> int:
    session = HarnessSession(_load_config(args))
    runtime = session.runtime()
    print(runtime.archive_file)
    return EXIT_OK


def run(args: argparse.Namespace) -> int:
    session = HarnessSession(_load_config(args))
    build_dir = args.build_dir.resolve()
    directive = TestDirective(name=args.name or build_dir.name, build_dir=build_dir)
    result = run_test_case(session, directive, units_from_paths(args.objects))
    print(result.model_dump_json(indent=2, exclude_none=True))
    return EXIT_OK if result.passed else EXIT_FAILED


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--tools-root", type=Path, default=None, help="SBF platform tools root.")
    parser.add_argument(
        "--runtime-workspace",
        type=Path,
        default=None,
        help="Cargo workspace containing the native runtime crate.",
    )
    parser.add_argument(
        "--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )


def cli(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Link compiled SBF objects against the native runtime and run them in a VM."
    )
    command_subparsers = parser.add_subparsers(
        dest="command", help="Sub-command to run.", required=True
    )

    check_parser = command_subparsers.add_parser(
        "check-toolchain", help="Resolve and print the toolchain binaries."
    )
    _add_common_args(check_parser)
    check_parser.set_defaults(func=check_toolchain)

    runtime_parser = command_subparsers.add_parser(
        "build-runtime", help="Build the native runtime archive."
    )
    _add_common_args(runtime_parser)
    runtime_parser.set_defaults(func=build_runtime)

    run_parser = command_subparsers.add_parser(
        "run", help="Link object files with the runtime and execute the result."
    )
    _add_common_args(run_parser)
    run_parser.add_argument("--build-dir", type=Path, required=True)
    run_parser.add_argument("--name", default=None, help="Test case name.")
    run_parser.add_argument("--link-script", type=Path, default=None)
    run_parser.add_argument("--rbpf-cli", default=None, help="VM runner executable.")
    run_parser.add_argument("objects", nargs="+", type=Path, help="Object files in link order.")
    run_parser.set_defaults(func=run)

    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except FatalHarnessError as e:
        print(f"fatal: {e}", file=sys.stderr)
        return EXIT_FATAL
    except HarnessError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_FAILED


def main() -> None:
    sys.exit(cli())


if __name__ == "__main__":
    main()
