"""Database module for the chain history write path.

This module handles:
- Database creation and session initialization
- Schema management and full reset
- Session lifecycle
"""
import logging
from typing import Optional

from .exceptions import DatabaseError
from .lib.schema_manager import SchemaManager
from .lib.session import Session, create_database, database_exists, database_name

logger = logging.getLogger(__name__)

_session: Optional[Session] = None


async def create_database_if_not_exists(db_url: str, max_tries: int = 5) -> None:
    """Create the database if it doesn't exist.

    Args:
        db_url: Database connection URL
        max_tries: Connection attempts before giving up

    Raises:
        DatabaseConnectionError: If the server is unreachable or creation fails
    """
    if await database_exists(db_url, max_tries):
        return
    logger.info(f"Database {database_name(db_url)} not found, creating it")
    await create_database(db_url, max_tries)


async def init_db(db_url: Optional[str] = None, force_recreate: bool = False) -> Session:
    """Initialize the database session.

    Args:
        db_url: Optional database URL. If not provided, will use settings.
        force_recreate: If True, drop all tables and sequences

    Returns:
        The open session

    Raises:
        ValueError: If database URL is not provided
        DatabaseError: If initialization fails
    """
    global _session

    if _session is not None and not _session.closed:
        return _session

    # Import here to avoid circular imports
    from config import get_settings

    settings = get_settings() if db_url is None else {}
    url = db_url or settings.get('db_url')
    if not url:
        raise ValueError("Database URL not provided")
    max_tries = int(settings.get('connect_max_tries', 5))

    try:
        if settings.get('create_database', True):
            await create_database_if_not_exists(url, max_tries)

        _session = await Session.connect(url, max_tries)

        if force_recreate:
            logger.info("Force recreate requested. Dropping all tables and sequences...")
            schema_manager = SchemaManager(_session)
            await schema_manager.drop_all_tables()
            await schema_manager.drop_all_sequences()
    except DatabaseError as e:
        logger.error(f"Database initialization failed: {e}")
        raise

    return _session


async def get_session() -> Session:
    """Get the database session.

    Returns:
        The session

    Raises:
        RuntimeError: If the session hasn't been initialized
    """
    if not _session:
        await init_db()
    if not _session:
        raise RuntimeError("Failed to initialize database session")
    return _session


async def close() -> None:
    """Close the database session."""
    global _session

    if _session:
        await _session.close()
        _session = None


# Export public interface
__all__ = ['init_db', 'get_session', 'close', 'create_database_if_not_exists', 'Session', 'SchemaManager']
