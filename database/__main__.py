"""Operator commands for the chain history database.

    python -m database status   Show schema version, checkpoint and latest block
    python -m database reset    Drop all tables and sequences
"""
import argparse
import asyncio
import logging

from config import get_settings
from . import init_db, close
from .lib.checkpoint import CheckpointTracker, LAST_SYNC_KEY, VERSION_KEY
from .lib.schema_manager import SchemaManager

logger = logging.getLogger(__name__)


async def status() -> None:
    session = await init_db()
    try:
        schema_manager = SchemaManager(session)
        if not await schema_manager.table_exists('stats'):
            print("Schema not created")
            return
        checkpoint = CheckpointTracker(session)
        print(f"version: {await checkpoint.read_stat(VERSION_KEY)}")
        print(f"last_sync_block_id: {await checkpoint.read_stat(LAST_SYNC_KEY)}")
        print(f"latest block id: {await checkpoint.get_latest_block_id()}")
    finally:
        await close()


async def reset() -> None:
    session = await init_db()
    try:
        schema_manager = SchemaManager(session)
        await schema_manager.drop_all_tables()
        await schema_manager.drop_all_sequences()
        logger.info("Database reset complete")
    finally:
        await close()


def main() -> None:
    parser = argparse.ArgumentParser(prog='python -m database')
    parser.add_argument('command', choices=['status', 'reset'])
    args = parser.parse_args()

    logging.basicConfig(
        level=get_settings()['log_level'],
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    commands = {'status': status, 'reset': reset}
    asyncio.run(commands[args.command]())


if __name__ == "__main__":
    main()
