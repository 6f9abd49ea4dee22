"""
Import execution service
Runs the legacy import family by family (schools, class groups, activities, students):
parse -> map -> reconcile against the store inside one transaction per family.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from sqlalchemy import insert, select

from .config import DEFAULT_VALUES, ENFORCE_FOREIGN_KEYS, ENTITY_FILES, IMPORT_ORDER
from .db_utils import DatabaseManager, db_manager
from .import_result import EntityImportResult, ImportException, ImportExecutionResult
from .import_session import ImportPhase, ImportSession, create_import_session
from .mappers import (
    ActivityDataMapper,
    ClassGroupDataMapper,
    MappingError,
    MappingResult,
    MappingWarning,
    SKIP_FIELD,
    SchoolDataMapper,
    StudentDataMapper,
    ValidationContext,
)
from .mappers.base import BaseDataMapper
from .models import Family, FamilyInfo, StudentMappingData
from .parsers import LegacyXmlParser, ParseError, ParseResult
from .reconciliation import (
    ConflictMode,
    EntityAdapter,
    ImportCancelledError,
    ImportConflictError,
    reconcile_entities,
)
from .schema import activities, class_groups, families, schools, student_families, students
from .utils import format_date

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class EntityFamily:
    """Static description of one importable entity family"""
    name: str
    entity_type: str
    phase: ImportPhase
    parse: Callable[[LegacyXmlParser, Path, Path], ParseResult]
    record_key: Callable[[Any], Optional[str]]


FAMILIES: Dict[str, EntityFamily] = {
    "schools": EntityFamily(
        "schools", "School", ImportPhase.SCHOOLS,
        lambda p, xml, xsd: p.parse_schools(xml, xsd),
        lambda r: str(r.school_id)),
    "class_groups": EntityFamily(
        "class_groups", "ClassGroup", ImportPhase.CLASS_GROUPS,
        lambda p, xml, xsd: p.parse_class_groups(xml, xsd),
        lambda r: r.class_group or None),
    "activities": EntityFamily(
        "activities", "Activity", ImportPhase.ACTIVITIES,
        lambda p, xml, xsd: p.parse_activities(xml, xsd),
        lambda r: str(r.activity_id)),
    "students": EntityFamily(
        "students", "Student", ImportPhase.STUDENTS,
        lambda p, xml, xsd: p.parse_children(xml, xsd),
        lambda r: r.reference or None),
}


@dataclass
class FamilyPreview:
    """What an import of one family would do, without touching the store"""
    family: str
    file_found: bool = False
    records: int = 0
    mapped: int = 0
    skipped: int = 0
    parse_errors: List[ParseError] = field(default_factory=list)
    warnings: List[MappingWarning] = field(default_factory=list)
    errors: List[MappingError] = field(default_factory=list)
    samples: List[Any] = field(default_factory=list)


@dataclass
class ImportPreview:
    input_path: str
    families: Dict[str, FamilyPreview] = field(default_factory=dict)

    @property
    def total_records(self) -> int:
        return sum(f.records for f in self.families.values())

    @property
    def total_mapped(self) -> int:
        return sum(f.mapped for f in self.families.values())

    @property
    def total_errors(self) -> int:
        return sum(len(f.errors) + len(f.parse_errors) for f in self.families.values())


def resolve_family_files(input_dir: Path, family: str) -> Optional[Tuple[Path, Path]]:
    """XML and XSD paths for a family, or None when either file is missing"""
    folder, xml_name, xsd_name = ENTITY_FILES[family]
    xml_path = input_dir / folder / xml_name
    xsd_path = input_dir / folder / xsd_name
    if not xml_path.is_file() or not xsd_path.is_file():
        return None
    return xml_path, xsd_path


class ImportExecutionService:
    """Imports a legacy export folder into the destination store"""

    def __init__(self, engine=None, db: Optional[DatabaseManager] = None,
                 parser: Optional[LegacyXmlParser] = None,
                 enforce_foreign_keys: bool = ENFORCE_FOREIGN_KEYS):
        self.db = db or db_manager
        self.engine = engine
        self.parser = parser or LegacyXmlParser()
        self.enforce_foreign_keys = enforce_foreign_keys

    async def get_engine(self):
        if self.engine is None:
            self.engine = await self.db.connect_async()
        return self.engine

    def parse_family(self, input_dir: PathLike, family: str) -> Optional[ParseResult]:
        """Parse one family's file pair; None when the family is absent from the export"""
        files = resolve_family_files(Path(input_dir), family)
        if files is None:
            return None
        xml_path, xsd_path = files
        return FAMILIES[family].parse(self.parser, xml_path, xsd_path)

    def parse_all(self, input_path: PathLike) -> Dict[str, Optional[ParseResult]]:
        """Parse every family without mapping or writing"""
        input_dir = self._check_input_dir(input_path)
        return {family: self.parse_family(input_dir, family) for family in IMPORT_ORDER}

    async def execute(self, input_path: PathLike, mode: ConflictMode = ConflictMode.FAIL_ON_CONFLICT,
                      session: Optional[ImportSession] = None) -> ImportExecutionResult:
        """
        Run the import.
        Raises ImportConflictError on a collision under FailOnConflict and ImportCancelledError
        when the session is cancelled; both carry the partial result.
        """
        input_dir = self._check_input_dir(input_path)
        session = session or create_import_session()
        result = ImportExecutionResult(input_path=str(input_path), conflict_mode=mode.value)

        logger.info(f"Starting legacy import from {input_dir} (mode: {mode.value})")
        engine = await self.get_engine()

        try:
            for family in IMPORT_ORDER:
                if session.is_cancelled():
                    raise ImportCancelledError(f"Import cancelled before {family}")
                await self._import_family(engine, FAMILIES[family], input_dir, mode, result, session)
        except (ImportConflictError, ImportCancelledError) as e:
            e.result = result
            await session.start_phase(
                ImportPhase.CANCELLED if isinstance(e, ImportCancelledError) else ImportPhase.FAILED)
            logger.error(f"Import stopped: {e}")
            raise

        await session.start_phase(ImportPhase.COMPLETION)
        logger.info(
            f"Import completed: {result.total_imported} imported, {result.total_updated} updated, "
            f"{result.total_skipped} skipped, {result.total_failed} failed "
            f"({result.success_rate}% success)")
        return result

    async def _import_family(self, engine, family: EntityFamily, input_dir: Path, mode: ConflictMode,
                             result: ImportExecutionResult, session: ImportSession):
        parsed = self.parse_family(input_dir, family.name)
        if parsed is None:
            logger.info(f"No {family.name} files in {input_dir}, skipping")
            return

        await session.start_phase(family.phase)
        logger.info(f"=== IMPORTING {family.name.replace('_', ' ').upper()} ===")
        counts = result.family(family.name)

        for error in parsed.errors:
            result.exceptions.append(ImportException(family.entity_type, None, "_parse", str(error)))

        mapper = await self._build_mapper(engine, family.name)
        mapped = self._map_records(mapper, family, parsed.records, result)
        counts.skipped += sum(1 for r in mapped if r.is_skipped)
        counts.failed += sum(1 for r in mapped if r.has_errors)

        batch = MappingResult.combine(mapped)
        session.record_mapping(family.name, len(parsed.records), len(batch.data),
                               len(batch.warnings), len(batch.errors))
        logger.info(f"Mapped {len(batch.data)} of {len(parsed.records)} {family.name} "
                    f"({len(batch.warnings)} warnings, {len(batch.errors)} errors)")

        # Counts only reach the result once the family's transaction commits
        adapter = self._adapter(family.name)
        staged = EntityImportResult()
        exceptions: List[ImportException] = []
        try:
            async with engine.begin() as conn:
                await reconcile_entities(conn, adapter, batch.data, mode, staged, exceptions,
                                         session.is_cancelled)
        except ImportConflictError as e:
            result.exceptions.append(ImportException(
                family.entity_type, e.legacy_id, "_conflict", str(e), str(e.existing_id)))
            raise

        counts.imported += staged.imported
        counts.updated += staged.updated
        counts.skipped += staged.skipped
        counts.failed += staged.failed
        result.exceptions.extend(exceptions)

        logger.info(f"{family.name.capitalize()}: {counts.imported} imported, {counts.updated} updated, "
                    f"{counts.skipped} skipped, {counts.failed} failed")

    def _map_records(self, mapper: BaseDataMapper, family: EntityFamily, records: List[Any],
                     result: ImportExecutionResult) -> List[MappingResult]:
        mapped = []
        for record in records:
            outcome = mapper.map(record)
            for error in outcome.errors:
                result.exceptions.append(ImportException(
                    family.entity_type, family.record_key(record), error.field, error.message))
            for warning in outcome.warnings:
                logger.debug(f"{family.entity_type} {family.record_key(record)}: {warning.message}")
            mapped.append(outcome)
        return mapped

    async def _build_mapper(self, engine, family: str) -> BaseDataMapper:
        """Create the family's mapper with foreign key sets read from the store"""
        trucks = await self.db.get_id_set(engine, "trucks") if self.enforce_foreign_keys else None

        if family == "schools":
            return SchoolDataMapper(ValidationContext(valid_truck_ids=trucks))
        if family == "class_groups":
            valid_schools = await self.db.get_id_set(engine, "schools") if self.enforce_foreign_keys else None
            return ClassGroupDataMapper(ValidationContext(valid_truck_ids=trucks, valid_school_ids=valid_schools))
        if family == "activities":
            return ActivityDataMapper()
        if family == "students":
            return StudentDataMapper(ValidationContext(
                school_ids_by_name=await self.db.get_id_map(engine, "schools", "name"),
                class_group_ids_by_code=await self.db.get_id_map(engine, "class_groups", "legacy_id"),
            ))
        raise ValueError(f"Unknown entity family '{family}'")

    def _adapter(self, family: str) -> EntityAdapter:
        if family == "schools":
            return EntityAdapter("School", schools, lambda s: s.legacy_id, lambda s: s.to_row(include_id=True))
        if family == "class_groups":
            return EntityAdapter("ClassGroup", class_groups, lambda g: g.legacy_id, lambda g: g.to_row())
        if family == "activities":
            return EntityAdapter("Activity", activities, lambda a: a.legacy_id, lambda a: a.to_row(include_id=True))
        if family == "students":
            return EntityAdapter("Student", students,
                                 lambda d: d.student.legacy_id,
                                 lambda d: d.student.to_row(),
                                 after_write=self._link_family)
        raise ValueError(f"Unknown entity family '{family}'")

    async def _link_family(self, conn, student_id: int, data: StudentMappingData):
        """Attach a student to its family, creating the family on first sight"""
        if data.family_info is None:
            return

        family_id = await self._find_or_create_family(conn, data.family_info)
        existing = await conn.execute(
            select(student_families.c.id).where(
                student_families.c.student_id == student_id,
                student_families.c.family_id == family_id))
        if existing.first() is None:
            await conn.execute(insert(student_families).values(
                student_id=student_id,
                family_id=family_id,
                relationship_type=DEFAULT_VALUES["family_relationship"]))

    async def _find_or_create_family(self, conn, info: FamilyInfo) -> int:
        found = await conn.execute(
            select(families.c.id).where(families.c.family_name == info.family_name).limit(1))
        row = found.first()
        if row is not None:
            logger.debug(f"Family '{info.family_name}' already exists. Reusing.")
            return row.id

        family = Family(
            family_name=info.family_name,
            primary_contact_name=info.primary_contact_name,
            phone=info.phone,
            email=info.email,
            address=info.address,
        )
        family.notes = f"Imported from legacy data on {format_date(family.created_at)}"
        created = await conn.execute(insert(families).values(**family.to_row()))
        return created.inserted_primary_key[0]

    def preview(self, input_path: PathLike, sample_size: int = 3) -> ImportPreview:
        """
        Parse and map every family without writing.
        Class groups are checked against the schools found in the same export.
        """
        input_dir = self._check_input_dir(input_path)
        preview = ImportPreview(input_path=str(input_path))
        previewed_school_ids = None

        for family in IMPORT_ORDER:
            family_preview = FamilyPreview(family=family)
            preview.families[family] = family_preview

            parsed = self.parse_family(input_dir, family)
            if parsed is None:
                continue

            family_preview.file_found = True
            family_preview.records = len(parsed.records)
            family_preview.parse_errors = list(parsed.errors)

            if family == "schools":
                mapper = SchoolDataMapper()
            elif family == "class_groups":
                mapper = ClassGroupDataMapper(ValidationContext(valid_school_ids=previewed_school_ids))
            elif family == "activities":
                mapper = ActivityDataMapper()
            else:
                mapper = StudentDataMapper()

            results = [mapper.map(record) for record in parsed.records]
            batch = MappingResult.combine(results)
            family_preview.mapped = len(batch.data)
            family_preview.skipped = sum(1 for r in results if r.is_skipped)
            family_preview.warnings = [w for w in batch.warnings if w.field != SKIP_FIELD]
            family_preview.errors = list(batch.errors)
            family_preview.samples = batch.data[:sample_size]

            if family == "schools":
                previewed_school_ids = frozenset(s.id for s in batch.data)

        return preview

    def _check_input_dir(self, input_path: PathLike) -> Path:
        input_dir = Path(input_path)
        if not input_dir.exists():
            raise FileNotFoundError(f"Input directory not found: {input_dir}")
        if not input_dir.is_dir():
            raise NotADirectoryError(f"Input path is not a directory: {input_dir}")
        return input_dir


# Global service instance
import_service = ImportExecutionService()
