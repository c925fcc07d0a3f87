"""Database exceptions.

Every failure in the write path is raised as one of these. Startup failures
(connection, schema, preparation, version, sync) are fatal to the process;
a ``StatementError`` aborts the ingestion unit being committed.
"""
from typing import Optional


class DatabaseError(Exception):
    """Base exception for database errors"""
    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when the database session cannot be established"""
    pass


class DatabaseSchemaError(DatabaseError):
    """Raised when DDL fails to apply"""
    pass


class StatementPreparationError(DatabaseSchemaError):
    """Raised when a statement plan cannot be registered"""

    def __init__(self, plan: str, message: str):
        self.plan = plan
        super().__init__(f"Prepare plan '{plan}' failed: {message}")


class StatementError(DatabaseError):
    """Raised when a statement fails while committing an ingestion unit"""

    def __init__(self, message: str, plan: Optional[str] = None):
        self.plan = plan
        super().__init__(f"Statement '{plan}' failed: {message}" if plan else message)


class VersionMismatchError(DatabaseError):
    """Raised when the stored schema version is older than the running one"""
    pass


class SyncMismatchError(DatabaseError):
    """Raised when the checkpoint and the stored chain head disagree"""
    pass


__all__ = [
    'DatabaseError',
    'DatabaseConnectionError',
    'DatabaseSchemaError',
    'StatementPreparationError',
    'StatementError',
    'VersionMismatchError',
    'SyncMismatchError',
]
