"""Ingestion of chain events into PostgreSQL.

Usage:
    pipeline = await open_pipeline()
    await pipeline.ingest_block(block)

or, driven by per-block/per-transaction callbacks:
    unit = pipeline.begin_block(block)
    unit.add_transaction(trx)
    await pipeline.commit(unit)

A record that fails validation discards its unit, after which the next
begin_block may open the block again.
"""
from typing import Optional

from database import init_db

from .models import Action, Block, Transaction
from .pipeline import IngestionPipeline, IngestionUnit


async def open_pipeline(db_url: Optional[str] = None, force_recreate: bool = False) -> IngestionPipeline:
    """Open the database session and run the pipeline's startup checks."""
    session = await init_db(db_url, force_recreate=force_recreate)
    pipeline = IngestionPipeline(session)
    await pipeline.startup()
    return pipeline


__all__ = ['open_pipeline', 'IngestionPipeline', 'IngestionUnit', 'Action', 'Block', 'Transaction']
