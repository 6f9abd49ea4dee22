"""
Operator reports for an import run: JSON/CSV exception files, the parse audit log and
a plain-text summary
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, TextIO, Union

import pandas as pd

from .config import OUTPUT_DIR
from .import_result import ImportExecutionResult
from .parsers import ParseError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ImportExceptionWriter:
    """Writes the exceptions of a run so operators can fix the legacy data"""

    def __init__(self, output_dir: PathLike = OUTPUT_DIR):
        self.output_dir = Path(output_dir)

    def default_path(self, result: ImportExecutionResult, suffix: str = "json") -> Path:
        return self.output_dir / f"import-exceptions-{result.executed_at.strftime('%Y-%m-%d')}.{suffix}"

    def build_report(self, result: ImportExecutionResult) -> dict:
        return {
            "importRun": {
                "timestamp": result.executed_at.isoformat(),
                "inputPath": result.input_path,
                "conflictMode": result.conflict_mode,
            },
            "summary": {
                "totalImported": result.total_imported,
                "totalUpdated": result.total_updated,
                "totalFailed": result.total_failed,
                "totalSkipped": result.total_skipped,
                "successRate": result.success_rate,
            },
            "exceptions": [e.to_dict() for e in result.exceptions],
        }

    def write(self, result: ImportExecutionResult, path: Optional[PathLike] = None) -> Path:
        """Write the JSON exception report and return its path"""
        target = Path(path) if path else self.default_path(result)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            json.dump(self.build_report(result), f, indent=2)
        logger.info(f"Exception report written to {target} ({len(result.exceptions)} exceptions)")
        return target

    def write_csv(self, result: ImportExecutionResult, path: Optional[PathLike] = None) -> Path:
        """Write the exception list as CSV"""
        target = Path(path) if path else self.default_path(result, "csv")
        target.parent.mkdir(parents=True, exist_ok=True)
        columns = ["entityType", "legacyId", "field", "reason", "originalValue"]
        df = pd.DataFrame([e.to_dict() for e in result.exceptions], columns=columns)
        df.to_csv(target, index=False)
        logger.info(f"Exception CSV written to {target}")
        return target


@dataclass
class AuditEntry:
    timestamp: datetime
    source_file: str
    message: str
    line: Optional[int] = None
    position: Optional[int] = None


class ImportAuditLog:
    """Collects XML validation errors for the import audit trail"""

    def __init__(self):
        self.entries: List[AuditEntry] = []

    def add_parse_errors(self, source_file: str, errors: Iterable[ParseError]):
        for error in errors:
            self.entries.append(AuditEntry(datetime.now(), source_file, error.message, error.line, error.position))

    def write_to(self, stream: TextIO):
        for entry in self.entries:
            line = "" if entry.line is None else entry.line
            position = "" if entry.position is None else entry.position
            stream.write(
                f"Import validation error in {entry.source_file} "
                f"(Line {line}, Position {position}): {entry.message}\n")


def render_summary(result: ImportExecutionResult, completed_at: Optional[datetime] = None) -> str:
    """Plain-text summary of a run"""
    completed_at = completed_at or datetime.now()
    return "\n".join([
        "Legacy Import Summary",
        f"Completed: {completed_at.isoformat()}",
        f"Imported: {result.total_imported}",
        f"Updated: {result.total_updated}",
        f"Skipped: {result.total_skipped}",
        f"Errors: {result.total_failed}",
    ])


def write_summary(path: PathLike, result: ImportExecutionResult) -> Path:
    if not str(path).strip():
        raise ValueError("Output path is required.")
    target = Path(path)
    target.write_text(render_summary(result) + "\n", encoding="utf-8")
    return target
