"""Checkpoint and version tracking.

The ``stats`` table holds two keys: ``version``, the schema version the
database was created with, and ``last_sync_block_id``, the id of the last
block whose unit was fully committed. The checkpoint is advanced inside the
same transaction as the block's entity mutations, so on startup it is
compared with the literal latest block row and any gap is fatal.
"""
import logging
from typing import Optional

from ..exceptions import SyncMismatchError, VersionMismatchError
from ..schema import LATEST
from .batch import MutationBatch

logger = logging.getLogger(__name__)

VERSION_KEY = 'version'
LAST_SYNC_KEY = 'last_sync_block_id'


class CheckpointTracker:
    """Reads and writes the version and sync checkpoint."""

    def __init__(self, session, version: Optional[str] = None) -> None:
        self.session = session
        self.version = version or LATEST['version']
        self.last_sync_block_id: Optional[str] = None

    # stats primitives

    async def read_stat(self, key: str) -> Optional[str]:
        return await self.session.run('read_stat', key)

    def add_stat(self, batch: MutationBatch, key: str, value: str) -> None:
        batch.add('insert_stat', key, value)

    def update_stat(self, batch: MutationBatch, key: str, value: str) -> None:
        batch.add('update_stat', key, value)

    async def get_latest_block_id(self) -> Optional[str]:
        """Return the id of the block with the highest number, if any."""
        return await self.session.run('latest_block_id')

    async def exists_block(self, block_id: str) -> bool:
        return bool(await self.session.run('block_exists', block_id))

    # checkpoint contract

    async def initialize_checkpoint(self) -> None:
        """Write the initial version and an empty sync checkpoint."""
        batch = MutationBatch(self.session)
        self.add_stat(batch, VERSION_KEY, self.version)
        self.add_stat(batch, LAST_SYNC_KEY, '')
        await batch.commit()
        self.last_sync_block_id = ''
        logger.info(f"Initialized checkpoint at version {self.version}")

    async def check_version_compatible(self) -> str:
        """Fail unless the stored version is at least the running one.

        Versions are compared as strings.

        Raises:
            VersionMismatchError: If the version is missing or older
        """
        stored = await self.read_stat(VERSION_KEY)
        if stored is None:
            raise VersionMismatchError("Version information doesn't exist in current database")
        if stored < self.version:
            raise VersionMismatchError(
                f"Version of current database is obsolete, cur: {stored}, latest: {self.version}"
            )
        return stored

    async def check_sync_consistency(self) -> str:
        """Fail unless the checkpoint equals the latest stored block id.

        On success the verified id becomes the resume point. A database
        without block rows is consistent only with an empty checkpoint.

        Raises:
            SyncMismatchError: If the checkpoint is missing or disagrees
        """
        sync_block_id = await self.read_stat(LAST_SYNC_KEY)
        if sync_block_id is None:
            raise SyncMismatchError("Last sync block id doesn't exist in current database")

        latest_block_id = await self.get_latest_block_id()
        latest_block_id = (latest_block_id or '').strip()
        sync_block_id = sync_block_id.strip()

        if sync_block_id != latest_block_id:
            raise SyncMismatchError(
                f"Sync block and latest block are not match, sync is {sync_block_id!r}, "
                f"latest is {latest_block_id!r}"
            )

        self.last_sync_block_id = latest_block_id
        logger.info(f"Verified resume point: {latest_block_id or '<genesis>'}")
        return latest_block_id

    def advance_checkpoint(self, batch: MutationBatch, block_id: str) -> None:
        """Buffer the checkpoint update into the unit's mutation batch."""
        self.update_stat(batch, LAST_SYNC_KEY, block_id)
