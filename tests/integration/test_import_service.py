"""
Integration tests for the import execution service against SQLite
"""

from datetime import datetime

import pytest
from sqlalchemy import func, insert, select

from legacy_import.import_service import ImportExecutionService
from legacy_import.import_session import ImportPhase, ImportSession
from legacy_import.import_result import EntityImportResult
from legacy_import.models import School
from legacy_import.reconciliation import (
    ConflictMode,
    ImportCancelledError,
    ImportConflictError,
    reconcile_entities,
)
from legacy_import.schema import class_groups, families, schools, student_families, students
from tests.conftest import SCHOOL_RECORDS, write_family

pytestmark = pytest.mark.integration


@pytest.fixture
def service(db, engine):
    return ImportExecutionService(engine=engine, db=db)


async def _count(engine, table) -> int:
    async with engine.connect() as conn:
        return (await conn.execute(select(func.count()).select_from(table))).scalar_one()


async def _rows(engine, query):
    async with engine.connect() as conn:
        return (await conn.execute(query)).all()


def _counts(result: EntityImportResult):
    return result.imported, result.updated, result.skipped, result.failed


class TestFirstImport:
    """Test an import into an empty store"""

    @pytest.mark.asyncio
    async def test_counts_and_exceptions(self, service, legacy_export):
        result = await service.execute(legacy_export)

        assert _counts(result.schools) == (2, 0, 0, 0)
        assert _counts(result.class_groups) == (2, 0, 1, 1)
        assert _counts(result.activities) == (2, 0, 0, 0)
        assert _counts(result.students) == (3, 0, 0, 1)
        assert result.success_rate == 75.0
        assert result.conflict_mode == "FailOnConflict"
        assert [(e.entity_type, e.legacy_id, e.field) for e in result.exceptions] == [
            ("ClassGroup", "9Z", "SchoolId"),
            ("Student", None, "Reference"),
        ]

    @pytest.mark.asyncio
    async def test_entities_are_written(self, service, engine, legacy_export):
        await service.execute(legacy_export)

        school_rows = await _rows(engine, select(schools.c.id, schools.c.name, schools.c.truck_id,
                                                 schools.c.legacy_id).order_by(schools.c.id))
        assert [tuple(r) for r in school_rows] == [(1, "Laerskool Noord", None, "1"), (2, "Suid", None, "2")]

        group = (await _rows(engine, select(class_groups).where(class_groups.c.legacy_id == "1A")))[0]
        assert group.school_id == 1
        assert group.day_of_week == 2
        assert group.sequence == 2
        assert str(group.end_time) == "09:30:00"

        anna = (await _rows(engine, select(students).where(students.c.reference == "C001")))[0]
        assert anna.school_id == 1
        assert anna.class_group_id == group.id
        assert anna.first_name == "Anna"
        assert anna.date_of_birth == datetime(2015, 3, 4)

        cara = (await _rows(engine, select(students).where(students.c.reference == "C003")))[0]
        assert cara.school_id is None
        assert cara.school_name == "Unknown School"

    @pytest.mark.asyncio
    async def test_families_are_linked(self, service, engine, legacy_export):
        await service.execute(legacy_export)

        family_rows = await _rows(engine, select(families).order_by(families.c.family_name))
        assert [f.family_name for f in family_rows] == ["Jones", "Smith"]
        assert family_rows[0].primary_contact_name == "Pat Jones"
        assert family_rows[1].primary_contact_name == "Jane Smith"
        assert family_rows[1].notes.startswith("Imported from legacy data on ")

        links = await _rows(engine, select(student_families))
        assert len(links) == 3
        assert {link.relationship_type for link in links} == {"Parent"}

    @pytest.mark.asyncio
    async def test_session_tracks_phases(self, service, legacy_export):
        session = ImportSession("import_test")
        await service.execute(legacy_export, session=session)

        assert session.current_phase is ImportPhase.COMPLETION
        assert session.stats["class_groups"] == {"parsed": 4, "mapped": 2, "warnings": 1, "errors": 1}

    @pytest.mark.asyncio
    async def test_foreign_key_checks_disabled(self, db, engine, legacy_export):
        service = ImportExecutionService(engine=engine, db=db, enforce_foreign_keys=False)
        result = await service.execute(legacy_export)

        assert _counts(result.class_groups) == (3, 0, 1, 0)
        truck = (await _rows(engine, select(schools.c.truck_id).where(schools.c.id == 1)))[0]
        assert truck.truck_id == 3

    @pytest.mark.asyncio
    async def test_missing_families_are_ignored(self, service, tmp_path):
        root = tmp_path / "partial"
        write_family(root, "schools", SCHOOL_RECORDS)

        result = await service.execute(root)

        assert result.schools.imported == 2
        assert result.students.total == 0

    @pytest.mark.asyncio
    async def test_parse_errors_are_reported(self, service, tmp_path):
        root = tmp_path / "broken"
        write_family(root, "schools", xml_text="<dataroot><School>")

        result = await service.execute(root)

        assert result.schools.total == 0
        assert result.exceptions[0].field == "_parse"
        assert result.exceptions[0].entity_type == "School"

    @pytest.mark.asyncio
    async def test_missing_input_directory(self, service, tmp_path):
        with pytest.raises(FileNotFoundError):
            await service.execute(tmp_path / "nowhere")

        file_path = tmp_path / "file.xml"
        file_path.write_text("<dataroot/>")
        with pytest.raises(NotADirectoryError):
            await service.execute(file_path)


class TestReimport:
    """Test re-running an import under each conflict mode"""

    @pytest.mark.asyncio
    async def test_fail_on_conflict(self, service, engine, legacy_export):
        await service.execute(legacy_export)

        with pytest.raises(ImportConflictError) as exc_info:
            await service.execute(legacy_export, ConflictMode.FAIL_ON_CONFLICT)

        error = exc_info.value
        assert error.entity_type == "School"
        assert error.legacy_id == "1"
        assert error.result is not None
        assert error.result.schools.total == 0
        assert error.result.exceptions[-1].field == "_conflict"
        assert await _count(engine, schools) == 2
        assert await _count(engine, students) == 3

    @pytest.mark.asyncio
    async def test_fail_on_conflict_rolls_back_earlier_inserts(self, service, engine, tmp_path):
        async with engine.begin() as conn:
            await conn.execute(insert(schools).values(
                id=2, name="Suid", legacy_id="2", is_active=True,
                print_invoice=False, import_flag=True, created_at=datetime.now()))

        root = tmp_path / "legacy"
        write_family(root, "schools", SCHOOL_RECORDS)

        with pytest.raises(ImportConflictError) as exc_info:
            await service.execute(root, ConflictMode.FAIL_ON_CONFLICT)

        assert exc_info.value.legacy_id == "2"
        assert await _count(engine, schools) == 1
        assert await _rows(engine, select(schools).where(schools.c.id == 1)) == []

    @pytest.mark.asyncio
    async def test_skip_existing(self, service, engine, legacy_export):
        await service.execute(legacy_export)
        result = await service.execute(legacy_export, ConflictMode.SKIP_EXISTING)

        assert _counts(result.schools) == (0, 0, 2, 0)
        assert _counts(result.class_groups) == (0, 0, 3, 1)
        assert _counts(result.activities) == (0, 0, 2, 0)
        assert _counts(result.students) == (0, 0, 3, 1)
        assert await _count(engine, students) == 3
        assert await _count(engine, student_families) == 3

    @pytest.mark.asyncio
    async def test_update(self, service, engine, legacy_export):
        await service.execute(legacy_export)
        created = (await _rows(engine, select(schools.c.created_at).where(schools.c.id == 2)))[0].created_at

        changed = [dict(SCHOOL_RECORDS[0]), dict(SCHOOL_RECORDS[1], Short_x0020_School="Suid-Oos")]
        write_family(legacy_export, "schools", changed)
        result = await service.execute(legacy_export, ConflictMode.UPDATE)

        assert _counts(result.schools) == (0, 2, 0, 0)
        assert _counts(result.class_groups) == (0, 2, 1, 1)
        assert _counts(result.activities) == (0, 2, 0, 0)
        assert _counts(result.students) == (0, 3, 0, 1)

        school = (await _rows(engine, select(schools).where(schools.c.id == 2)))[0]
        assert school.name == "Suid-Oos"
        assert school.created_at == created
        assert school.updated_at is not None
        assert await _count(engine, schools) == 2
        assert await _count(engine, families) == 2
        assert await _count(engine, student_families) == 3

    @pytest.mark.asyncio
    async def test_unchanged_update_keeps_rows(self, service, engine, legacy_export):
        await service.execute(legacy_export)

        async def snapshot():
            tables = (schools, class_groups, students)
            result = {}
            for table in tables:
                rows = await _rows(engine, select(table).order_by(table.c.id))
                result[table.name] = [
                    {k: v for k, v in row._mapping.items() if k != "updated_at"} for row in rows
                ]
            return result

        before = await snapshot()
        await service.execute(legacy_export, ConflictMode.UPDATE)

        assert await snapshot() == before


class TestFailureIsolation:
    """Test that one failing record does not stop its family"""

    @pytest.mark.asyncio
    async def test_insert_failure_is_recorded(self, service, engine, tmp_path):
        async with engine.begin() as conn:
            await conn.execute(insert(schools).values(
                id=1, name="Existing", legacy_id=None, is_active=True,
                print_invoice=False, import_flag=False, created_at=datetime.now()))

        root = tmp_path / "legacy"
        write_family(root, "schools", SCHOOL_RECORDS)
        result = await service.execute(root)

        assert _counts(result.schools) == (1, 0, 0, 1)
        failure = result.exceptions[0]
        assert failure.field == "_insert"
        assert failure.legacy_id == "1"
        assert await _count(engine, schools) == 2


class TestCancellation:
    """Test cooperative cancellation"""

    @pytest.mark.asyncio
    async def test_cancel_before_start(self, service, engine, legacy_export):
        session = ImportSession()
        session.cancel()

        with pytest.raises(ImportCancelledError) as exc_info:
            await service.execute(legacy_export, session=session)

        assert exc_info.value.result is not None
        assert session.current_phase is ImportPhase.CANCELLED
        assert await _count(engine, schools) == 0

    @pytest.mark.asyncio
    async def test_cancel_mid_family_rolls_back(self, service, engine):
        checks = iter([False, True])
        adapter = service._adapter("schools")
        items = [School(id=1, name="One", legacy_id="1"), School(id=2, name="Two", legacy_id="2")]
        counts = EntityImportResult()

        with pytest.raises(ImportCancelledError):
            async with engine.begin() as conn:
                await reconcile_entities(conn, adapter, items, ConflictMode.FAIL_ON_CONFLICT,
                                         counts, [], lambda: next(checks))

        assert counts.imported == 1
        assert await _count(engine, schools) == 0


class TestPreview:
    """Test the dry run"""

    def test_preview_reports_without_writing(self, legacy_export):
        preview = ImportExecutionService().preview(legacy_export, sample_size=1)

        assert preview.total_records == 12
        assert preview.total_mapped == 9
        assert preview.total_errors == 2

        class_groups_preview = preview.families["class_groups"]
        assert class_groups_preview.file_found
        assert class_groups_preview.skipped == 1
        assert class_groups_preview.errors[0].field == "SchoolId"
        assert class_groups_preview.warnings == []
        assert len(preview.families["schools"].samples) == 1

    def test_preview_missing_family(self, tmp_path):
        root = tmp_path / "legacy"
        write_family(root, "schools", SCHOOL_RECORDS)

        preview = ImportExecutionService().preview(root)

        assert preview.families["schools"].mapped == 2
        assert not preview.families["students"].file_found
