"""
Legacy-id reconciliation
One routine decides, per mapped entity, whether to insert, update or skip by looking up the
legacy_id already stored for that entity type. Per-entity differences live in EntityAdapter.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from sqlalchemy import Table, insert, select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from .import_result import EntityImportResult, ImportException, ImportExecutionResult

logger = logging.getLogger(__name__)


class ConflictMode(Enum):
    """What to do when a legacy_id is already present in the store"""
    FAIL_ON_CONFLICT = "FailOnConflict"
    SKIP_EXISTING = "SkipExisting"
    UPDATE = "Update"

    @classmethod
    def parse(cls, value: str) -> "ConflictMode":
        aliases = {
            "failonconflict": cls.FAIL_ON_CONFLICT,
            "fail": cls.FAIL_ON_CONFLICT,
            "skipexisting": cls.SKIP_EXISTING,
            "skip": cls.SKIP_EXISTING,
            "update": cls.UPDATE,
        }
        key = value.replace("-", "").replace("_", "").strip().lower()
        if key not in aliases:
            raise ValueError(f"Unknown conflict mode '{value}'. Use FailOnConflict, SkipExisting or Update.")
        return aliases[key]


class ImportConflictError(Exception):
    """A legacy_id collision under FailOnConflict; the family's transaction is rolled back"""

    def __init__(self, entity_type: str, legacy_id: str, existing_id: Any,
                 result: Optional[ImportExecutionResult] = None):
        super().__init__(f"{entity_type} with legacy_id '{legacy_id}' already exists (id={existing_id}).")
        self.entity_type = entity_type
        self.legacy_id = legacy_id
        self.existing_id = existing_id
        self.result = result


class ImportCancelledError(Exception):
    """The run was cancelled between families or records"""

    def __init__(self, message: str = "Import cancelled", result: Optional[ImportExecutionResult] = None):
        super().__init__(message)
        self.result = result


@dataclass
class EntityAdapter:
    """How one entity type is identified and written"""
    entity_type: str
    table: Table
    legacy_id: Callable[[Any], Optional[str]]
    to_row: Callable[[Any], Dict[str, Any]]
    after_write: Optional[Callable[[AsyncConnection, int, Any], Awaitable[None]]] = None


async def find_existing(conn: AsyncConnection, table: Table, legacy_id: str):
    """Return (id, created_at) of the row carrying legacy_id, or None"""
    result = await conn.execute(
        select(table.c.id, table.c.created_at).where(table.c.legacy_id == legacy_id).limit(1))
    return result.first()


async def insert_entity(conn: AsyncConnection, adapter: EntityAdapter, item: Any) -> int:
    result = await conn.execute(insert(adapter.table).values(**adapter.to_row(item)))
    return result.inserted_primary_key[0]


async def update_entity(conn: AsyncConnection, adapter: EntityAdapter, item: Any, existing) -> int:
    """Overwrite the mutable columns, keeping id and created_at"""
    row = adapter.to_row(item)
    row.pop("id", None)
    row.pop("created_at", None)
    row["updated_at"] = datetime.now()
    await conn.execute(update(adapter.table).where(adapter.table.c.id == existing.id).values(**row))
    return existing.id


async def reconcile_entities(conn: AsyncConnection, adapter: EntityAdapter, items: Iterable[Any],
                             mode: ConflictMode, counts: EntityImportResult,
                             exceptions: List[ImportException],
                             is_cancelled: Optional[Callable[[], bool]] = None):
    """
    Apply the conflict mode to every item inside the caller's transaction.
    Each write runs in a savepoint so a failing record leaves the rest of the family intact.
    Raises ImportConflictError (FailOnConflict) and ImportCancelledError.
    """
    for item in items:
        if is_cancelled is not None and is_cancelled():
            raise ImportCancelledError(f"Import cancelled while importing {adapter.table.name}")

        legacy_id = adapter.legacy_id(item)
        existing = await find_existing(conn, adapter.table, legacy_id) if legacy_id else None

        if existing is not None:
            if mode is ConflictMode.FAIL_ON_CONFLICT:
                raise ImportConflictError(adapter.entity_type, legacy_id, existing.id)
            if mode is ConflictMode.SKIP_EXISTING:
                counts.skipped += 1
                logger.debug(f"{adapter.entity_type} {legacy_id} already imported, skipping")
                continue

        action = "_insert" if existing is None else "_update"
        try:
            async with conn.begin_nested():
                if existing is None:
                    row_id = await insert_entity(conn, adapter, item)
                else:
                    row_id = await update_entity(conn, adapter, item, existing)
                if adapter.after_write is not None:
                    await adapter.after_write(conn, row_id, item)
        except Exception as e:
            counts.failed += 1
            reason = str(getattr(e, "orig", None) or e)
            exceptions.append(ImportException(adapter.entity_type, legacy_id, action, reason))
            logger.error(f"Failed to write {adapter.entity_type} {legacy_id}: {reason}")
            continue

        if existing is None:
            counts.imported += 1
        else:
            counts.updated += 1
