"""
Unit tests for import result aggregation
"""

from datetime import datetime

import pytest

from legacy_import.import_result import EntityImportResult, ImportException, ImportExecutionResult

pytestmark = pytest.mark.unit


@pytest.fixture
def result():
    run = ImportExecutionResult(input_path="docs/legacy", conflict_mode="Update",
                                executed_at=datetime(2024, 1, 15, 10, 30))
    run.schools = EntityImportResult(imported=2)
    run.class_groups = EntityImportResult(imported=2, skipped=1, failed=1)
    run.activities = EntityImportResult(updated=2)
    run.students = EntityImportResult(imported=3, failed=1)
    run.exceptions.append(ImportException("ClassGroup", "9Z", "SchoolId", "Class Group references invalid SchoolId 99."))
    return run


class TestImportExecutionResult:
    """Test totals and serialisation"""

    def test_totals(self, result):
        assert result.total_imported == 7
        assert result.total_updated == 2
        assert result.total_skipped == 1
        assert result.total_failed == 2
        assert result.total_processed == 12

    def test_success_rate(self, result):
        assert result.success_rate == 75.0

    def test_success_rate_without_records(self):
        assert ImportExecutionResult().success_rate == 0.0

    def test_family_lookup(self, result):
        assert result.family("class_groups").skipped == 1
        assert result.class_groups.total == 4

    def test_to_dict(self, result):
        data = result.to_dict()

        assert data["executedAt"] == "2024-01-15T10:30:00"
        assert data["conflictMode"] == "Update"
        assert data["families"]["students"] == {"imported": 3, "updated": 0, "skipped": 0, "failed": 1}
        assert data["exceptions"] == [{
            "entityType": "ClassGroup",
            "legacyId": "9Z",
            "field": "SchoolId",
            "reason": "Class Group references invalid SchoolId 99.",
            "originalValue": None,
        }]
