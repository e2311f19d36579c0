"""CLI entry point for the NixOS configuration wizard.

Usage:
    nixwizard
    nixwizard --dry-run
    nixwizard --non-interactive --import-file ./host.env --output ./configuration.nix
    python -m nixwizard --list-modules

Values are resolved in this order (later wins):
    1. Field defaults declared by the modules
    2. ``defaults:`` from .nixwizard.yaml
    3. ``NDS_*`` environment variables (and --env-file)
    4. --import-file
    5. Interactive answers
"""

from __future__ import annotations

import argparse
import logging
import shutil
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import ValidationError as SettingsValidationError

from nixwizard import __version__
from nixwizard.lib.env import (
    export_script,
    import_environment,
    load_env_file,
    parse_export_script,
    write_export_script,
)
from nixwizard.lib.errors import (
    ConfigurationError,
    InteractionRequiredError,
    ValidationError,
)
from nixwizard.lib.modules import ConfigSession
from nixwizard.lib.observability import setup_logging
from nixwizard.lib.prompting import Console, NonInteractiveConsole, TerminalConsole
from nixwizard.lib.settings import ProjectSettings, WizardSettings
from nixwizard.lib.workflow import run_workflow
from nixwizard.lib.workspace import working_directory
from nixwizard.modules import MODULE_CLASSES, builtin_modules

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nixwizard",
        description="Interactively build a NixOS configuration.nix",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Walk through every module and write /mnt/etc/nixos/configuration.nix
    nixwizard

    # Print the generated configuration instead of writing it
    nixwizard --dry-run

    # Unattended run, every value from the environment
    NDS_HOSTNAME=web01 NDS_NETWORK_METHOD=dhcp nixwizard --non-interactive

    # Reuse the answers of a previous run
    nixwizard --import-file ./web01.env

    # Save changed answers for the next run
    nixwizard --export changed --export-file ./web01.env

    # Only configure some modules
    nixwizard --modules network,ssh,system
        """,
    )

    parser.add_argument(
        "--modules",
        help="Comma-separated list of modules to configure (default: all)",
    )
    parser.add_argument(
        "--list-modules",
        action="store_true",
        help="List available modules and exit",
    )
    parser.add_argument(
        "--output",
        "-o",
        help="Where to write configuration.nix (default: /mnt/etc/nixos/configuration.nix)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the generated configuration instead of writing it",
    )
    parser.add_argument(
        "--non-interactive",
        action="store_true",
        help="Never prompt; fail if any value is missing or invalid",
    )
    parser.add_argument(
        "--env-prefix",
        help="Prefix of field environment variables (default: NDS_)",
    )
    parser.add_argument(
        "--env-file",
        help="Load environment variables from this .env file first",
    )
    parser.add_argument(
        "--import-file",
        help="Import values from a script written by --export",
    )
    parser.add_argument(
        "--config",
        help="Path to a project settings file (default: ./.nixwizard.yaml if present)",
    )
    parser.add_argument(
        "--export",
        choices=["changed", "all"],
        help="Export field values as shell exports (changed: non-default values only)",
    )
    parser.add_argument(
        "--export-file",
        help="Write the export to this file instead of stdout",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--json-log",
        action="store_true",
        help="Output logs in JSON format (for log aggregation systems)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to a file in addition to stderr",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"nixwizard {__version__}",
    )
    return parser


def list_modules() -> None:
    """Print available modules in generation order."""
    modules = sorted(
        (cls() for cls in MODULE_CLASSES.values()), key=lambda m: (m.priority, m.name)
    )
    print("Available modules:")
    print()
    print(f"  {'Name':<10}  {'Priority':<8}  Title")
    print(f"  {'-' * 10}  {'-' * 8}  {'-' * 20}")
    for module in modules:
        print(f"  {module.name:<10}  {module.priority:<8}  {module.display_title}")


def _module_names(args: argparse.Namespace, project: ProjectSettings) -> Optional[List[str]]:
    if args.modules:
        return [name.strip() for name in args.modules.split(",") if name.strip()]
    return project.modules


def _resolve(cli: Optional[str], settings: WizardSettings, key: str, project: Optional[str]) -> str:
    """CLI flag, then an explicitly set NIXWIZARD_* variable, then the project file."""
    if cli:
        return cli
    if key in settings.model_fields_set or not project:
        return getattr(settings, key)
    return project


def _default_header() -> str:
    return f"Generated by nixwizard {__version__} on {date.today().isoformat()}"


def apply_project_defaults(session: ConfigSession, project: ProjectSettings) -> None:
    """Install ``defaults:`` from the project file as field defaults."""
    for name, value in project.defaults.items():
        if name not in session.fields:
            logger.warning("Ignoring default for unknown field %s", name)
            continue
        session.fields.set_default(name, value)


def import_values(
    session: ConfigSession, prefix: str, import_file: Optional[str]
) -> None:
    """Import values from the environment, then from ``import_file``."""
    report = import_environment(session.fields, prefix)
    for name, issue in report.failed.items():
        print(f"Warning: ignoring {prefix}{name}: {issue.message}", file=sys.stderr)

    if import_file:
        path = Path(import_file)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read import file {path}: {e}", value=str(path)
            ) from e
        report = import_environment(
            session.fields, prefix, parse_export_script(text, prefix)
        )
        for name, issue in report.failed.items():
            print(f"Warning: ignoring {name} from {path}: {issue.message}", file=sys.stderr)
        logger.info("Imported %d values from %s", report.imported_count, path)


def write_configuration(session: ConfigSession, output: Path, header: str) -> Path:
    """Stage the document in a scratch directory, then copy it into place."""
    with working_directory() as workdir:
        staged = session.blocks.write(workdir / "configuration.nix", header)
        output.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(staged, output)
    logger.info("Configuration written to %s", output)
    return output


def main(argv: Optional[Sequence[str]] = None, console: Optional[Console] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command line arguments (default: ``sys.argv[1:]``)
        console: Console to use instead of the terminal

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_modules:
        list_modules()
        return EXIT_OK

    if args.env_file and not load_env_file(args.env_file):
        print(f"Error: .env file not found: {args.env_file}", file=sys.stderr)
        return EXIT_USAGE

    try:
        settings = WizardSettings()
    except SettingsValidationError as e:
        print(f"Error: invalid NIXWIZARD_* settings:\n{e}", file=sys.stderr)
        return EXIT_USAGE

    setup_logging(
        verbose=args.verbose,
        json_format=args.json_log or settings.log_format == "json",
        log_file=args.log_file or settings.log_file,
        level=settings.log_level,
    )

    try:
        project = ProjectSettings.load(config_path=Path(args.config) if args.config else None)
        prefix = _resolve(args.env_prefix, settings, "field_prefix", project.env_prefix)
        interactive = not args.non_interactive and settings.interactive

        session = ConfigSession(modules=builtin_modules(_module_names(args, project)))
        apply_project_defaults(session, project)
        import_values(session, prefix, args.import_file)

        if console is None:
            console = TerminalConsole() if interactive else NonInteractiveConsole()
        run_workflow(session, console, interactive=interactive)

        if args.export:
            text = export_script(session, prefix, changed_only=args.export == "changed")
            if args.export_file:
                write_export_script(text, args.export_file)
            else:
                print(text, end="")

        header = project.header or _default_header()
        document = session.generate(header)

        if args.dry_run:
            print(document, end="")
            return EXIT_OK

        output = Path(_resolve(args.output, settings, "output_path", project.output_path))
        write_configuration(session, output, header)
        print(f"Configuration written to {output}")
        return EXIT_OK

    except ValidationError as e:
        logger.debug("Validation failed", exc_info=True)
        print(f"\nError: {e}", file=sys.stderr)
        return EXIT_INVALID

    except (ConfigurationError, InteractionRequiredError) as e:
        logger.debug("Aborted", exc_info=True)
        print(f"\nError: {e}", file=sys.stderr)
        return EXIT_USAGE

    except OSError as e:
        logger.error("Cannot write configuration: %s", e)
        print(f"\nError: {e}", file=sys.stderr)
        return EXIT_INVALID

    except (KeyboardInterrupt, EOFError):
        print("\nInterrupted by user", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
