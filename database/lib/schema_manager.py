"""Database schema management module.

This module handles idempotent creation of the versioned table layout and the
destructive teardown used for a full reset. Tables, sequences and indexes are
created with IF NOT EXISTS in the order the schema lists them, so running the
creation again against an initialized database is a no-op.
"""
import logging
from typing import Any, Dict, List, Optional

import asyncpg

from ..exceptions import DatabaseSchemaError
from ..schema import LATEST

logger = logging.getLogger(__name__)


class SchemaManager:
    """Creates and tears down the chain history tables."""

    def __init__(self, session, schema: Optional[Dict[str, Any]] = None) -> None:
        """Initialize schema manager.

        Args:
            session: Database session
            schema: Schema definition, defaults to the latest version
        """
        self.session = session
        self.schema = schema or LATEST

    @property
    def version(self) -> str:
        return self.schema['version']

    @property
    def table_names(self) -> List[str]:
        return [table['name'] for table in self.schema['tables']]

    @property
    def sequence_names(self) -> List[str]:
        names = []
        for table in self.schema['tables']:
            names.extend(table.get('sequences', []))
        return names

    def _check_table(self, table: str) -> None:
        if table not in self.table_names:
            raise ValueError(f"Unknown table: {table}")

    async def create_schema_if_absent(self) -> None:
        """Create every sequence, table and index that does not exist yet.

        Raises:
            DatabaseSchemaError: If any DDL statement fails
        """
        try:
            for table in self.schema['tables']:
                for sequence in table.get('sequences', []):
                    await self.session.execute(f'CREATE SEQUENCE IF NOT EXISTS {sequence}')
                await self.session.execute(self._create_table_sql(table))
                for idx in table.get('indexes', []):
                    await self.session.execute(self._create_index_sql(table['name'], idx))
                logger.debug(f"Ensured table {table['name']}")
        except asyncpg.PostgresError as e:
            logger.error(f"Schema creation failed: {e}")
            raise DatabaseSchemaError(f"Failed to create schema: {e}") from e
        logger.info(f"Schema version {self.version} is in place")

    def _create_table_sql(self, table: Dict[str, Any]) -> str:
        columns = []
        constraints = []

        for col in table['columns']:
            col_def = f"{col['name']} {col['type']}"

            if col.get('nullable') is False:
                col_def += " NOT NULL"

            if 'default' in col:
                col_def += f" DEFAULT {col['default']}"

            if col.get('primary_key'):
                constraints.append(
                    f"CONSTRAINT {table['name']}_pkey PRIMARY KEY ({col['name']})"
                )

            columns.append(col_def)

        table_def = ',\n    '.join(columns + constraints)
        return f"CREATE TABLE IF NOT EXISTS public.{table['name']} (\n    {table_def}\n)"

    def _create_index_sql(self, table: str, idx: Dict[str, Any]) -> str:
        unique = 'UNIQUE ' if idx.get('unique') else ''
        return (
            f"CREATE {unique}INDEX IF NOT EXISTS {idx['name']} "
            f"ON public.{table} USING btree ({', '.join(idx['columns'])})"
        )

    async def drop_all_tables(self) -> None:
        """Drop every table of the schema.

        Raises:
            DatabaseSchemaError: If a drop fails
        """
        for table in self.table_names:
            try:
                await self.session.execute(f'DROP TABLE IF EXISTS public.{table}')
            except asyncpg.PostgresError as e:
                logger.error(f"Drop table {table} failed: {e}")
                raise DatabaseSchemaError(f"Failed to drop table {table}: {e}") from e
            logger.info(f"Dropped table {table}")

    async def drop_all_sequences(self) -> None:
        """Drop every sequence of the schema.

        Raises:
            DatabaseSchemaError: If a drop fails
        """
        for sequence in self.sequence_names:
            try:
                await self.session.execute(f'DROP SEQUENCE IF EXISTS {sequence}')
            except asyncpg.PostgresError as e:
                logger.error(f"Drop sequence {sequence} failed: {e}")
                raise DatabaseSchemaError(f"Failed to drop sequence {sequence}: {e}") from e
            logger.info(f"Dropped sequence {sequence}")

    async def table_exists(self, table: str) -> bool:
        self._check_table(table)
        return await self.session.fetchval(
            '''
            SELECT EXISTS (
                SELECT 1
                FROM pg_tables
                WHERE schemaname = 'public'
                AND tablename = $1
            )
            ''',
            table
        )

    async def table_is_empty(self, table: str) -> bool:
        """Check whether ``table`` has no rows."""
        self._check_table(table)
        row = await self.session.fetchrow(f'SELECT 1 FROM public.{table} LIMIT 1')
        return row is None
