"""Database session module.

This module owns the single PostgreSQL connection used by the write path:
- Connection establishment (with bounded retries on transient connect errors)
- Ad hoc statement execution
- Prepared statement plans, registered once per session and referenced by name
- Bulk-load transfers (COPY ... FROM STDIN, text format)
- Database create/drop helpers used before the session exists
"""
import io
import logging
from typing import Any, Dict, Mapping, Optional, Sequence
from urllib.parse import urlparse, parse_qs, urlunparse

import asyncpg
import backoff
from asyncpg.prepared_stmt import PreparedStatement

from ..exceptions import (
    DatabaseConnectionError,
    StatementError,
    StatementPreparationError,
)
from .statements import STATEMENTS

logger = logging.getLogger(__name__)

APPLICATION_NAME = 'evt-pgsync'

CONNECT_ERRORS = (
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.CannotConnectNowError,
    ConnectionRefusedError,
)


def _get_connection_kwargs(db_url: str) -> Dict[str, Any]:
    """Get connection kwargs from database URL.

    Args:
        db_url: Database connection URL

    Returns:
        Dict of connection parameters
    """
    parsed = urlparse(db_url)
    params = parse_qs(parsed.query)

    server_settings = {'application_name': APPLICATION_NAME}
    if 'application_name' in params:
        server_settings['application_name'] = params['application_name'][0]

    # Calls block until the server answers
    return {
        'server_settings': server_settings,
        'command_timeout': None,
    }


def database_name(db_url: str) -> str:
    """Return the database name a URL points at."""
    parsed = urlparse(db_url)
    name = parsed.path.strip('/')
    if not name:
        params = parse_qs(parsed.query)
        name = params.get('database', ['postgres'])[0]
    return name


def maintenance_url(db_url: str) -> str:
    """Return the same URL pointed at the ``postgres`` maintenance database."""
    parsed = urlparse(db_url)
    return urlunparse(parsed._replace(path='/postgres'))


async def _connect(db_url: str, max_tries: int) -> asyncpg.Connection:
    @backoff.on_exception(backoff.expo, CONNECT_ERRORS, max_tries=max_tries)
    async def attempt() -> asyncpg.Connection:
        return await asyncpg.connect(db_url, **_get_connection_kwargs(db_url))

    try:
        return await attempt()
    except (asyncpg.PostgresError, OSError) as e:
        logger.error(f"Connect to {database_name(db_url)} failed: {e}")
        raise DatabaseConnectionError(f"Connect failed: {e}") from e


async def database_exists(db_url: str, max_tries: int = 5) -> bool:
    """Check whether the database named by ``db_url`` exists."""
    conn = await _connect(maintenance_url(db_url), max_tries)
    try:
        return await conn.fetchval(
            'SELECT EXISTS(SELECT 1 FROM pg_catalog.pg_database WHERE datname = $1)',
            database_name(db_url)
        )
    finally:
        await conn.close()


async def create_database(db_url: str, max_tries: int = 5) -> None:
    """Create the database named by ``db_url`` with UTF8 encoding and C collation."""
    name = database_name(db_url)
    conn = await _connect(maintenance_url(db_url), max_tries)
    try:
        await conn.execute(f'''
            CREATE DATABASE "{name}"
            WITH
            TEMPLATE = template0
            ENCODING = 'UTF8'
            LC_COLLATE = 'C'
            LC_CTYPE = 'C'
            CONNECTION LIMIT = -1
        ''')
        logger.info(f"Created database {name}")
    except asyncpg.PostgresError as e:
        raise DatabaseConnectionError(f"Create database {name} failed: {e}") from e
    finally:
        await conn.close()


async def drop_database(db_url: str, max_tries: int = 5) -> None:
    """Drop the database named by ``db_url``."""
    name = database_name(db_url)
    conn = await _connect(maintenance_url(db_url), max_tries)
    try:
        await conn.execute(f'DROP DATABASE IF EXISTS "{name}"')
        logger.info(f"Dropped database {name}")
    except asyncpg.PostgresError as e:
        raise DatabaseConnectionError(f"Drop database {name} failed: {e}") from e
    finally:
        await conn.close()


class Session:
    """The single database session of the write path.

    Statement plans are looked up in ``statements`` and registered with the
    server on first use; later uses reuse the registered plan.
    """

    def __init__(self, conn, statements: Optional[Mapping[str, str]] = None) -> None:
        """Initialize the session.

        Args:
            conn: An open asyncpg connection
            statements: Mapping of plan name to SQL text
        """
        self.conn = conn
        self._statements = dict(STATEMENTS if statements is None else statements)
        self._plans: Dict[str, PreparedStatement] = {}

    @classmethod
    async def connect(cls, db_url: str, max_tries: int = 5,
                      statements: Optional[Mapping[str, str]] = None) -> 'Session':
        """Open a session against ``db_url``.

        Raises:
            DatabaseConnectionError: If the server stays unreachable
        """
        conn = await _connect(db_url, max_tries)
        logger.info(f"Connected to database {database_name(db_url)}")
        return cls(conn, statements)

    @property
    def closed(self) -> bool:
        return self.conn is None or self.conn.is_closed()

    async def close(self) -> None:
        if self.conn is not None:
            await self.conn.close()
            self.conn = None
            self._plans.clear()

    # Ad hoc statements

    async def execute(self, sql: str, *args: Any) -> str:
        return await self.conn.execute(sql, *args)

    async def fetchval(self, sql: str, *args: Any) -> Any:
        return await self.conn.fetchval(sql, *args)

    async def fetchrow(self, sql: str, *args: Any):
        return await self.conn.fetchrow(sql, *args)

    async def fetch(self, sql: str, *args: Any):
        return await self.conn.fetch(sql, *args)

    def transaction(self):
        """Return the connection's transaction context manager."""
        return self.conn.transaction()

    # Prepared statement plans

    def is_registered(self, name: str) -> bool:
        return name in self._plans

    async def plan(self, name: str) -> PreparedStatement:
        """Return the registered plan ``name``, registering it on first use.

        Raises:
            StatementPreparationError: If the plan is unknown or the server rejects it
        """
        stmt = self._plans.get(name)
        if stmt is not None:
            return stmt

        sql = self._statements.get(name)
        if sql is None:
            raise StatementPreparationError(name, "unknown plan")
        try:
            stmt = await self.conn.prepare(sql)
        except asyncpg.PostgresError as e:
            logger.error(f"Prepare plan {name} failed: {e}")
            raise StatementPreparationError(name, str(e)) from e

        self._plans[name] = stmt
        logger.debug(f"Registered plan {name}")
        return stmt

    async def prepare_all(self) -> None:
        """Register every known plan."""
        for name in self._statements:
            await self.plan(name)

    async def run(self, name: str, *args: Any) -> Any:
        """Execute plan ``name`` and return the first column of the first row."""
        stmt = await self.plan(name)
        return await stmt.fetchval(*args)

    # Bulk load

    async def copy_in(self, table: str, columns: Sequence[str], data: str) -> None:
        """Transfer tab/newline-encoded rows into ``table``.

        Raises:
            StatementError: If the transfer fails
        """
        payload = data.encode('utf-8')
        try:
            await self.conn.copy_to_table(
                table,
                source=io.BytesIO(payload),
                columns=list(columns),
                format='text'
            )
        except (asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            logger.error(f"COPY into {table} failed: {e}")
            raise StatementError(f"COPY into {table} failed: {e}") from e
        logger.debug(f"Copied {len(payload)} bytes into {table}")
