#!/usr/bin/env python3
"""
Legacy import command line
Parses a legacy Access XML export and imports it into the destination store
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from .config import CONFLICT_MODE, DRY_RUN, INPUT_DIR, LOG_LEVEL, OUTPUT_DIR
from .db_utils import db_manager
from .import_result import ImportExecutionResult
from .import_service import ImportExecutionService, ImportPreview
from .import_session import create_import_session
from .parsers import ParseResult
from .reconciliation import ConflictMode, ImportCancelledError, ImportConflictError
from .reports import ImportAuditLog, ImportExceptionWriter, render_summary
from .utils import setup_logging

logger = logging.getLogger(__name__)


class ImportRunner:
    """Runs one import from the command line and prints its summary"""

    def __init__(self, input_path: str, mode: ConflictMode, output_dir: str = OUTPUT_DIR,
                 service: Optional[ImportExecutionService] = None):
        self.input_path = input_path
        self.mode = mode
        self.output_dir = output_dir
        self.service = service or ImportExecutionService()
        self.start_time = datetime.now()
        self.result: Optional[ImportExecutionResult] = None

    async def run_import(self) -> ImportExecutionResult:
        """Create the schema if needed, then import every family"""
        session = create_import_session(f"import_{self.start_time.strftime('%Y%m%d_%H%M%S')}")
        logger.info(f"Created import session: {session.session_id}")

        engine = await self.service.get_engine()
        await self.service.db.create_schema(engine)

        try:
            self.result = await self.service.execute(self.input_path, self.mode, session)
        except (ImportConflictError, ImportCancelledError) as e:
            self.result = e.result
            raise
        finally:
            logger.info(f"Import session summary: {session.get_session_summary()}")
            if self.result is not None:
                self.write_exceptions()
        return self.result

    def write_exceptions(self) -> Path:
        return ImportExceptionWriter(self.output_dir).write(self.result)

    def print_summary(self, reimport: bool = False):
        """Print import summary"""
        result = self.result
        print("\n" + "=" * 70)
        print("=== RE-IMPORT COMPLETE ===" if reimport else "=== IMPORT COMPLETE ===")
        print("=" * 70)

        print(f"Total duration: {datetime.now() - self.start_time}")
        print(f"Conflict mode: {self.mode.value}")
        print("\nEntity families:")
        for name, counts in result.families.items():
            print(f"  {name.replace('_', ' ').title()}: {counts.imported} imported, {counts.updated} updated, "
                  f"{counts.skipped} skipped, {counts.failed} failed")

        print(f"\nSuccess rate: {result.success_rate}%")
        print(f"Exceptions: {len(result.exceptions)}")
        print()
        print(render_summary(result))


def print_preview(preview: ImportPreview):
    print("\n" + "=" * 70)
    print("IMPORT PREVIEW (nothing written)")
    print("=" * 70)

    for name, family in preview.families.items():
        if not family.file_found:
            print(f"  {name.replace('_', ' ').title()}: no files")
            continue
        print(f"  {name.replace('_', ' ').title()}: {family.records} records, {family.mapped} mapped, "
              f"{family.skipped} skipped, {len(family.warnings)} warnings, "
              f"{len(family.errors) + len(family.parse_errors)} errors")
        for error in family.parse_errors:
            print(f"    PARSE ERROR: {error}")
        for error in family.errors:
            print(f"    ERROR [{error.field}]: {error.message}")

    print(f"\nTotal: {preview.total_records} records, {preview.total_mapped} mappable, "
          f"{preview.total_errors} errors")


def run_parse(input_path: str, output: Optional[str] = None) -> int:
    """Parse every family and report record and error counts"""
    service = ImportExecutionService()
    parsed: Dict[str, Optional[ParseResult]] = service.parse_all(input_path)
    audit = ImportAuditLog()

    report = {}
    for family, result in parsed.items():
        if result is None:
            print(f"  {family}: no files")
            report[family] = None
            continue
        audit.add_parse_errors(family, result.errors)
        print(f"  {family}: {len(result.records)} records, {len(result.errors)} errors")
        report[family] = {
            "records": len(result.records),
            "errors": [str(e) for e in result.errors],
        }

    audit.write_to(sys.stdout)

    if output:
        with open(output, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2)
        logger.info(f"Parse report written to {output}")

    return 1 if audit.entries else 0


async def main(argv=None):
    """Main function"""
    parser = argparse.ArgumentParser(description="Import legacy Access XML exports")
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subparsers.add_parser("parse", help="Parse the export without importing")
    parse_cmd.add_argument("--input", default=INPUT_DIR, help="Legacy export folder")
    parse_cmd.add_argument("--output", help="Write a JSON parse report to this file")
    parse_cmd.add_argument("--verbose", action="store_true", help="Enable verbose logging")

    run_cmd = subparsers.add_parser("run", help="Import the export into the store")
    run_cmd.add_argument("--input", default=INPUT_DIR, help="Legacy export folder")
    run_cmd.add_argument("--output", default=OUTPUT_DIR, help="Folder for the exception report")
    run_cmd.add_argument("--mode", default=CONFLICT_MODE,
                         help="FailOnConflict, SkipExisting or Update")
    run_cmd.add_argument("--preview", action="store_true", help="Parse and map without writing")
    run_cmd.add_argument("--verbose", action="store_true", help="Enable verbose logging")

    args = parser.parse_args(argv)

    # Setup logging
    log_level = "DEBUG" if args.verbose else LOG_LEVEL
    setup_logging(log_level)

    try:
        if args.command == "parse":
            if run_parse(args.input, args.output):
                sys.exit(1)
            return

        mode = ConflictMode.parse(args.mode)
        if args.preview or DRY_RUN:
            print_preview(ImportExecutionService().preview(args.input))
            return

        runner = ImportRunner(args.input, mode, args.output)
        try:
            await runner.run_import()
        finally:
            await db_manager.close_connections()
        runner.print_summary(reimport=mode is ConflictMode.UPDATE)
    except ImportConflictError as e:
        logger.error(f"Import stopped on conflict: {e}")
        sys.exit(1)
    except (ImportCancelledError, KeyboardInterrupt):
        logger.info("Import cancelled by user")
        sys.exit(1)
    except (FileNotFoundError, NotADirectoryError, ValueError) as e:
        logger.error(f"Import failed: {e}")
        sys.exit(1)


def cli():
    asyncio.run(main())


if __name__ == "__main__":
    cli()
