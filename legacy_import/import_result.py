"""
Import run results
Per-family counters, the operator-facing exception list and the aggregated run summary
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class EntityImportResult:
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.imported + self.updated + self.skipped + self.failed

    def to_dict(self) -> Dict[str, int]:
        return {
            "imported": self.imported,
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": self.failed,
        }


@dataclass
class ImportException:
    """One record that could not be imported"""
    entity_type: str
    legacy_id: Optional[str]
    field: str
    reason: str
    original_value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entityType": self.entity_type,
            "legacyId": self.legacy_id,
            "field": self.field,
            "reason": self.reason,
            "originalValue": self.original_value,
        }


@dataclass
class ImportExecutionResult:
    """Summary of one import run across all entity families"""
    input_path: str = ""
    conflict_mode: str = ""
    executed_at: datetime = field(default_factory=datetime.now)
    schools: EntityImportResult = field(default_factory=EntityImportResult)
    class_groups: EntityImportResult = field(default_factory=EntityImportResult)
    activities: EntityImportResult = field(default_factory=EntityImportResult)
    students: EntityImportResult = field(default_factory=EntityImportResult)
    exceptions: List[ImportException] = field(default_factory=list)

    def family(self, name: str) -> EntityImportResult:
        return getattr(self, name)

    @property
    def families(self) -> Dict[str, EntityImportResult]:
        return {
            "schools": self.schools,
            "class_groups": self.class_groups,
            "activities": self.activities,
            "students": self.students,
        }

    @property
    def total_imported(self) -> int:
        return sum(r.imported for r in self.families.values())

    @property
    def total_updated(self) -> int:
        return sum(r.updated for r in self.families.values())

    @property
    def total_skipped(self) -> int:
        return sum(r.skipped for r in self.families.values())

    @property
    def total_failed(self) -> int:
        return sum(r.failed for r in self.families.values())

    @property
    def total_processed(self) -> int:
        return self.total_imported + self.total_updated + self.total_skipped + self.total_failed

    @property
    def success_rate(self) -> float:
        """Percentage of processed records that were imported or updated"""
        if self.total_processed == 0:
            return 0.0
        return round((self.total_imported + self.total_updated) / self.total_processed * 100, 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "executedAt": self.executed_at.isoformat(),
            "inputPath": self.input_path,
            "conflictMode": self.conflict_mode,
            "families": {name: r.to_dict() for name, r in self.families.items()},
            "totalImported": self.total_imported,
            "totalUpdated": self.total_updated,
            "totalSkipped": self.total_skipped,
            "totalFailed": self.total_failed,
            "totalProcessed": self.total_processed,
            "successRate": self.success_rate,
            "exceptions": [e.to_dict() for e in self.exceptions],
        }
