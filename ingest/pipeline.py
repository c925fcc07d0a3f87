"""Ingestion pipeline.

One block is one ingestion unit. Its blocks/transactions/actions rows are
buffered for bulk load and its entity mutations for a single transaction.
On commit the bulk load runs first, then the mutation transaction, which
also advances the sync checkpoint. Units are committed strictly one after
another in chain order.
"""
import logging
from typing import Callable, Dict, List, Optional, Tuple

from database.exceptions import DatabaseError, SyncMismatchError
from database.lib.batch import MutationBatch
from database.lib.bulk import BulkLoadBuffer
from database.lib.checkpoint import CheckpointTracker
from database.lib.schema_manager import SchemaManager

from .mapper import render_action
from .models import Action, Block, Transaction
from .renderer import action_row, block_row, transaction_row

logger = logging.getLogger(__name__)


class IngestionUnit:
    """Buffered writes of a single block.

    Block and transaction rows are rendered by ``flush`` at commit time, once
    the number of transactions and of actions per transaction is known. A
    record that fails to buffer discards the whole unit.
    """

    def __init__(self, block: Block, session,
                 on_discard: Optional[Callable[['IngestionUnit'], None]] = None) -> None:
        self.block = block
        self.bulk = BulkLoadBuffer(session)
        self.batch = MutationBatch(session)
        self.trx_count = 0
        self.action_count = 0
        self.discarded = False
        self._on_discard = on_discard
        self._transactions: List[Tuple[Transaction, int]] = []
        self._trx_actions: Dict[str, int] = {}

    def add_transaction(self, trx: Transaction, seq_num: Optional[int] = None) -> None:
        """Buffer the transaction and every action it carries."""
        self._check_open()
        if seq_num is None:
            seq_num = self.trx_count
        self._transactions.append((trx, seq_num))
        self._trx_actions.setdefault(trx.trx_id, 0)
        self.trx_count += 1
        for i, action in enumerate(trx.actions):
            self.add_action(trx.trx_id, action, i)

    def add_action(self, trx_id: str, action: Action, seq_num: int) -> None:
        self._check_open()
        try:
            render_action(self.batch, action)
            self.bulk.add_action(action_row(self.block, trx_id, action, seq_num))
        except Exception:
            self.discard()
            raise
        self._trx_actions[trx_id] = self._trx_actions.get(trx_id, 0) + 1
        self.action_count += 1

    def flush(self) -> None:
        """Render the block row and the transaction rows into the bulk buffer."""
        self._check_open()
        self.bulk.add_block(block_row(self.block, self.trx_count))
        for trx, seq_num in self._transactions:
            self.bulk.add_transaction(
                transaction_row(self.block, trx, seq_num, self._trx_actions.get(trx.trx_id, 0))
            )
        self._transactions.clear()

    def discard(self) -> None:
        """Drop everything buffered and release the unit."""
        if self.discarded:
            return
        self.discarded = True
        self.bulk.clear()
        self.batch.clear()
        self._transactions.clear()
        if self._on_discard is not None:
            self._on_discard(self)

    def _check_open(self) -> None:
        if self.discarded:
            raise RuntimeError(f"Unit of block {self.block.block_num} was discarded")


class IngestionPipeline:
    """Turns chain events into ordered, batched database writes."""

    def __init__(self, session, schema_manager: Optional[SchemaManager] = None,
                 checkpoint: Optional[CheckpointTracker] = None) -> None:
        self.session = session
        self.schema_manager = schema_manager or SchemaManager(session)
        self.checkpoint = checkpoint or CheckpointTracker(session, self.schema_manager.version)
        self._unit: Optional[IngestionUnit] = None
        self._halted: Optional[str] = None
        self._started = False

    @property
    def resume_point(self) -> Optional[str]:
        """Id of the last committed block, '' before the first block."""
        return self.checkpoint.last_sync_block_id

    async def startup(self) -> str:
        """Prepare the database and verify it against the checkpoint.

        Returns:
            The verified resume point

        Raises:
            DatabaseSchemaError: If DDL or plan registration fails
            VersionMismatchError: If the database schema is older than required
            SyncMismatchError: If the checkpoint and the latest block disagree
        """
        try:
            if not await self.schema_manager.table_exists('stats'):
                logger.info("Schema not found. Creating schema...")
                await self.schema_manager.create_schema_if_absent()
                await self.checkpoint.initialize_checkpoint()
            else:
                await self.schema_manager.create_schema_if_absent()
                await self.checkpoint.check_version_compatible()
                await self.checkpoint.check_sync_consistency()

            await self.session.prepare_all()
        except DatabaseError as e:
            logger.error(f"Pipeline startup failed: {e}")
            raise

        self._halted = None
        self._started = True
        return self.resume_point

    async def needs_bootstrap(self) -> bool:
        """Check whether no block has been ingested yet."""
        return await self.schema_manager.table_is_empty('blocks')

    def begin_block(self, block: Block) -> IngestionUnit:
        """Open the ingestion unit of ``block``.

        Raises:
            SyncMismatchError: If the block does not follow the resume point or
                a previous commit failed
        """
        if not self._started:
            raise RuntimeError("Pipeline startup has not run")
        if self._halted:
            raise SyncMismatchError(f"Ingestion halted: {self._halted}")
        if self._unit is not None:
            raise RuntimeError(f"Block {self._unit.block.block_num} is still open")

        resume_point = self.resume_point
        if resume_point and block.prev_block_id != resume_point:
            raise SyncMismatchError(
                f"Block {block.block_num} does not follow the last synced block, "
                f"prev is {block.prev_block_id}, last sync is {resume_point}"
            )

        self._unit = IngestionUnit(block, self.session, on_discard=self.abort)
        return self._unit

    async def commit(self, unit: IngestionUnit) -> None:
        """Commit ``unit``: bulk load first, then the mutation transaction.

        Raises:
            DatabaseError: If any write fails; ingestion stays halted until startup runs again
        """
        if unit is not self._unit:
            raise RuntimeError("Unit is not the open ingestion unit")

        block = unit.block
        try:
            unit.flush()
            self.checkpoint.advance_checkpoint(unit.batch, block.block_id)
            await unit.bulk.commit()
            await unit.batch.commit()
        except DatabaseError as e:
            self._halted = f"commit of block {block.block_num} ({block.block_id}) failed: {e}"
            logger.error(f"Error committing block {block.block_num} ({block.block_id}): {e}")
            raise
        finally:
            self._unit = None

        self.checkpoint.last_sync_block_id = block.block_id
        logger.info(
            f"Committed block {block.block_num} ({block.block_id}): "
            f"{unit.trx_count} transactions, {unit.action_count} actions"
        )

    def abort(self, unit: IngestionUnit) -> None:
        """Discard ``unit`` without writing anything."""
        if unit is self._unit:
            self._unit = None
        unit.discard()

    async def ingest_block(self, block: Block) -> bool:
        """Buffer and commit ``block`` with all its transactions.

        Returns:
            False if the block was already stored
        """
        if block.block_id == self.resume_point or await self.checkpoint.exists_block(block.block_id):
            logger.info(f"Block {block.block_num} ({block.block_id}) already stored, skipping")
            return False

        unit = self.begin_block(block)
        for seq_num, trx in enumerate(block.transactions):
            unit.add_transaction(trx, seq_num)

        await self.commit(unit)
        return True

    async def mark_irreversible(self, block_id: str) -> None:
        """Clear the pending flag of a block that reached finality."""
        batch = MutationBatch(self.session)
        batch.add('set_block_irreversible', block_id)
        await batch.commit()
        logger.debug(f"Block {block_id} is irreversible")
