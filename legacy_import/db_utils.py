"""
Database utilities for the destination store
"""

import logging
from typing import Any, Dict, FrozenSet, List, Optional

import pandas as pd
from sqlalchemy import create_engine, event, text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from .config import DATABASE_URL, IMPORT_DB_CONFIG
from .schema import get_table, metadata

logger = logging.getLogger(__name__)


def _enable_sqlite_savepoints(engine: AsyncEngine):
    """Let SQLAlchemy own BEGIN on SQLite so nested transactions (SAVEPOINT) work"""

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")


class DatabaseManager:
    """Manages the connection to the destination database"""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or DATABASE_URL or None
        self.async_engine = None
        self.sync_engine = None

    def get_connection_string(self, config: Dict[str, Any], async_driver: bool = False) -> str:
        """Generate connection string from config"""
        driver = "postgresql+asyncpg" if async_driver else "postgresql+psycopg2"
        return (
            f"{driver}://{config['user']}:{config['password']}"
            f"@{config['host']}:{config['port']}/{config['database']}"
        )

    def get_url(self, async_driver: bool = True) -> str:
        if not self.database_url:
            return self.get_connection_string(IMPORT_DB_CONFIG, async_driver=async_driver)
        if async_driver:
            return self.database_url
        return self.database_url.replace("+aiosqlite", "").replace("+asyncpg", "+psycopg2")

    async def connect_async(self) -> AsyncEngine:
        """Create asynchronous connection to the destination database"""
        if not self.async_engine:
            url = self.get_url(async_driver=True)
            self.async_engine = create_async_engine(url)
            if url.startswith("sqlite"):
                _enable_sqlite_savepoints(self.async_engine)
            logger.info("Connected to destination database (async)")
        return self.async_engine

    def connect_sync(self):
        """Create synchronous connection, used for pandas reads"""
        if not self.sync_engine:
            self.sync_engine = create_engine(self.get_url(async_driver=False))
            logger.info("Connected to destination database (sync)")
        return self.sync_engine

    async def execute_query(self, engine, query: str, params: Optional[Dict] = None) -> List[Dict]:
        """Execute a query and return results"""
        async with engine.begin() as conn:
            result = await conn.execute(text(query), params or {})
            return [dict(row._mapping) for row in result.fetchall()]

    async def create_schema(self, engine):
        """Create any missing import tables"""
        async with engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        logger.info("Import tables are in place")

    async def get_row_count(self, engine, table_name: str) -> int:
        table = get_table(table_name)
        rows = await self.execute_query(engine, f"SELECT COUNT(*) AS count FROM {table.name}")
        return rows[0]["count"] if rows else 0

    async def get_id_set(self, engine, table_name: str) -> FrozenSet[int]:
        """All primary keys of a table"""
        table = get_table(table_name)
        rows = await self.execute_query(engine, f"SELECT id FROM {table.name}")
        return frozenset(row["id"] for row in rows)

    async def get_id_map(self, engine, table_name: str, key_column: str) -> Dict[str, int]:
        """Map a text column to primary keys, e.g. school name -> id"""
        table = get_table(table_name)
        if key_column not in table.c:
            raise ValueError(f"Column '{key_column}' does not exist on {table.name}")
        rows = await self.execute_query(
            engine, f"SELECT {key_column} AS lookup_key, id FROM {table.name} WHERE {key_column} IS NOT NULL")
        return {row["lookup_key"]: row["id"] for row in rows}

    def read_table_to_dataframe(self, table_name: str, limit: Optional[int] = None) -> pd.DataFrame:
        """Read an import table into a pandas DataFrame"""
        table = get_table(table_name)
        query = f"SELECT * FROM {table.name}"
        if limit:
            query += f" LIMIT {int(limit)}"

        with self.connect_sync().connect() as conn:
            return pd.read_sql(text(query), conn)

    async def close_connections(self):
        """Close all database connections"""
        if self.async_engine:
            await self.async_engine.dispose()
            self.async_engine = None
        if self.sync_engine:
            self.sync_engine.dispose()
            self.sync_engine = None
        logger.info("All database connections closed")


# Global database manager instance
db_manager = DatabaseManager()
