"""!
@brief Primary entry point for the ODT Generator CLI.
@details Parses arguments for the ``generate`` and ``uninstall`` commands,
sets up the dual-stream logging pipeline, and dispatches. Exit codes: ``0``
on success, ``1`` when any host (or the removal) failed, ``2`` for argument
errors raised by :mod:`argparse`.
"""
from __future__ import annotations

import argparse
import logging
import pathlib
import sys
from typing import Iterable, Optional

from . import logging_ext, version
from .errors import OdtGeneratorError
from .generator import GenerationOptions, generate_for_hosts
from .languages import LanguagePolicy
from .uninstall import run_removal


def build_arg_parser() -> argparse.ArgumentParser:
    """!
    @brief Create the top-level argument parser with both subcommands.
    """

    parser = argparse.ArgumentParser(
        prog="odt-generator",
        description="Generate Office Deployment Tool configuration from installed Office.",
    )
    metadata = version.build_info()
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"{metadata['version']} ({metadata['build']})",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--logdir", metavar="DIR", help="Directory for human/JSONL log output.")
    common.add_argument("--quiet", action="store_true", help="Minimal console output (errors only).")
    common.add_argument("--json", action="store_true", help="Mirror structured events to stdout.")

    commands = parser.add_subparsers(dest="command", required=True)

    generate = commands.add_parser("generate", parents=[common], help="Generate configuration XML.")
    generate.add_argument("hosts", nargs="*", metavar="HOST", help="Target computers (default: this machine).")
    generate.add_argument(
        "--language-policy",
        choices=LanguagePolicy.choices(),
        default=LanguagePolicy.ALL_IN_USE.value,
        help="How additional languages are selected.",
    )
    generate.add_argument("--output", metavar="FILE", help="Write the configuration to FILE.")
    generate.add_argument(
        "--include-update-path-as-source-path",
        action="store_true",
        help="Copy the Click-to-Run update URL into Add/SourcePath.",
    )
    generate.add_argument(
        "--default-config",
        metavar="PATH",
        help='Fallback document used when Office is not installed ("" disables it).',
    )
    generate.add_argument("--primary-language", metavar="TAG", help="Force the primary language.")
    generate.add_argument(
        "--show-all-products",
        action="store_true",
        help="Report every detected Office component, not only the primary product.",
    )
    generate.add_argument("--username", metavar="USER", help="Alternate credentials for remote hosts (WMI).")
    generate.add_argument("--password", metavar="PASS", help="Password for --username.")
    generate.add_argument("--stdout", action="store_true", help="Print the XML even when --output is given.")

    uninstall = commands.add_parser("uninstall", parents=[common], help="Remove Office with the ODT.")
    uninstall.add_argument(
        "--product",
        metavar="ID",
        action="append",
        dest="products",
        help="Product ID to remove (repeatable; default: all).",
    )
    uninstall.add_argument("--setup", metavar="PATH", help="Path to the ODT setup.exe.")
    uninstall.add_argument("--force", action="store_true", help="Do not prompt for confirmation.")
    uninstall.add_argument("--dry-run", action="store_true", help="Show the command without running it.")
    uninstall.add_argument("--timeout", metavar="SEC", type=int, help="Timeout for setup.exe in seconds.")
    return parser


def _resolve_log_directory(candidate: Optional[str]) -> pathlib.Path:
    """!
    @brief Determine the log directory, falling back to the platform default.
    """

    if candidate:
        return pathlib.Path(candidate).expanduser().resolve()
    expanded = logging_ext.default_log_directory().expanduser()
    try:
        return expanded.resolve()
    except OSError:
        return expanded


def _bootstrap_logging(args: argparse.Namespace) -> tuple[logging.Logger, logging.Logger]:
    """!
    @brief Initialize human and machine loggers using :mod:`logging_ext` helpers.
    @returns A tuple of configured human and machine loggers.
    """

    logdir = _resolve_log_directory(getattr(args, "logdir", None))
    setattr(args, "logdir", str(logdir))
    human_logger, machine_logger = logging_ext.setup_logging(
        logdir,
        json_to_stdout=getattr(args, "json", False),
        console_level=logging.ERROR if getattr(args, "quiet", False) else logging.INFO,
    )
    return human_logger, machine_logger


def _run_generate(args: argparse.Namespace, human_log: logging.Logger) -> int:
    options = GenerationOptions(
        language_policy=LanguagePolicy.parse(args.language_policy),
        output_path=pathlib.Path(args.output) if args.output else None,
        include_update_path_as_source_path=args.include_update_path_as_source_path,
        default_configuration=args.default_config,
        primary_language=args.primary_language,
        show_all_products=args.show_all_products,
        username=args.username,
        password=args.password,
    )
    try:
        batch = generate_for_hosts(args.hosts, options)
    except Exception:
        # Already logged against the host.
        return 1

    for result in batch.results:
        if result.output_path is None or args.stdout:
            sys.stdout.write(result.configuration_xml + "\n")
        if args.show_all_products:
            for product in result.products:
                human_log.info(
                    "%s: %s %s (%s-bit%s)",
                    result.computer_name,
                    product.display_name,
                    product.version,
                    product.bitness,
                    ", primary" if product.is_primary else "",
                )

    if batch.failed:
        human_log.error("%d of %d host(s) failed", len(batch.failed), len(batch.outcomes))
        return 1
    return 0


def _run_uninstall(args: argparse.Namespace, human_log: logging.Logger) -> int:
    try:
        result = run_removal(
            args.products,
            setup_path=args.setup,
            force=args.force,
            dry_run=args.dry_run,
            timeout=args.timeout,
        )
    except OdtGeneratorError as exc:
        human_log.error("%s", exc)
        return 1
    return 0 if result is not None else 1


def main(argv: Optional[Iterable[str]] = None) -> int:
    """!
    @brief Entry point used by the ``odt-generator`` console script.
    @returns Process exit code integer.
    """

    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if getattr(args, "username", None) and not getattr(args, "password", None):
        parser.error("--username requires --password")

    human_log, machine_log = _bootstrap_logging(args)
    machine_log.info("startup", extra={"event": "startup", "data": {"command": args.command}})

    if args.command == "uninstall":
        return _run_uninstall(args, human_log)
    return _run_generate(args, human_log)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
