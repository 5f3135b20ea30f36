"""
Command line entry point for hv_maped.
Usage: python -m hv_maped {info,export} ...
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .codec import read_document
from .errors import FileFormatError, SchemaMismatch
from .maps.service import MapService
from .properties import ResolutionStrategy
from .settings import AppSettings
from .utils.logging_config import setup_logging


def parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="hv_maped",
        description="Inspect and export hv_maped documents.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Use this ini file instead of the per-user configuration",
    )
    parser.add_argument("--profile", default="default", help="Settings profile name")

    commands = parser.add_subparsers(dest="command", required=True)

    info = commands.add_parser("info", help="Print a summary of a document")
    info.add_argument("file", type=Path, help="Document (.hv) to inspect")

    export = commands.add_parser("export", help="Export document entities as JSON")
    export.add_argument("file", type=Path, help="Document (.hv) to export")
    export.add_argument("output", type=Path, help="JSON file to write")
    decision = export.add_mutually_exclusive_group()
    decision.add_argument(
        "--adopt-map",
        dest="strategy",
        action="store_const",
        const=ResolutionStrategy.ADOPT_MAP,
        help="Keep the property schema stored in the file",
    )
    decision.add_argument(
        "--adopt-app",
        dest="strategy",
        action="store_const",
        const=ResolutionStrategy.ADOPT_APPLICATION,
        help="Conform properties to the application schema",
    )
    return parser.parse_args(argv)


def show_info(service: MapService, path: Path) -> None:
    """Print counts, schemas and drift without resolving the load."""
    pending = read_document(path, service.registry)
    print(f"{path}")
    print(f"  brushes:    {len(pending.brushes)}")
    print(f"  things:     {len(pending.things)}")
    print(f"  animations: {len(pending.animations)}")
    print(f"  props:      {len(pending.props)}")
    for label, schema in (("brush", pending.saved_brush_schema), ("thing", pending.saved_thing_schema)):
        names = ", ".join(f"{d.name}:{d.type.label}" for d in schema) or "-"
        print(f"  {label} schema: {names}")
    if pending.needs_decision:
        print(f"  schema drift: {pending.report}")
    for thing in pending.things:
        if thing.thing_id not in service.catalog:
            print(f"  thing {thing.id} refers to unknown thing ID {thing.thing_id}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main command line entry point."""
    args = parse_args(argv)
    logger = logging.getLogger(f"{__name__}.main")

    settings = AppSettings(profile=args.profile, settings_file=args.settings)
    setup_logging(settings)

    if settings.is_first_run:
        logger.info(f"First run, settings stored at {settings.get_settings_file_path()}")
        settings.set_first_run_complete()

    validation = settings.validate()
    for warning in validation.warnings:
        logger.debug(f"Configuration warning: {warning}")
    for error in validation.errors:
        logger.warning(f"Configuration error: {error}")

    service = MapService(settings)
    try:
        if args.command == "info":
            show_info(service, args.file)
        else:
            service.open_document(args.file, args.strategy)
            service.export(args.output)
    except SchemaMismatch as e:
        logger.error(f"{e}; rerun with --adopt-map or --adopt-app")
        return 2
    except (FileFormatError, OSError) as e:
        logger.error(f"Could not process {args.file}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
