"""Row rendering for the append-only tables.

Each function returns the field values of one row, in the column order of
its destination table (see ``database.lib.bulk``).
"""
import json
from typing import Any, Optional, Tuple

from .models import Action, Block, Transaction


def to_json(value: Optional[Any]) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False)


def token_id(domain: str, name: str) -> str:
    return f"{domain}:{name}"


def block_row(block: Block, trx_count: Optional[int] = None) -> Tuple[Any, ...]:
    """Block row; an explicit ``block.trx_count`` wins over the counted one."""
    if block.trx_count is not None:
        trx_count = block.trx_count
    elif trx_count is None:
        trx_count = len(block.transactions)
    return (
        block.block_id,
        block.block_num,
        block.prev_block_id,
        block.timestamp,
        block.trx_merkle_root,
        trx_count,
        block.producer,
        True,
    )


def transaction_row(block: Block, trx: Transaction, seq_num: int,
                    action_count: Optional[int] = None) -> Tuple[Any, ...]:
    if trx.action_count is not None:
        action_count = trx.action_count
    elif action_count is None:
        action_count = len(trx.actions)
    return (
        trx.trx_id,
        seq_num,
        block.block_id,
        block.block_num,
        action_count,
        block.timestamp,
        trx.expiration,
        trx.max_charge,
        trx.payer,
        True,
        trx.type.value,
        trx.status.value,
        list(trx.signatures),
        list(trx.keys),
        trx.elapsed,
        trx.charge,
        trx.suspend_name,
    )


def action_row(block: Block, trx_id: str, action: Action, seq_num: int) -> Tuple[Any, ...]:
    return (
        block.block_id,
        block.block_num,
        trx_id,
        seq_num,
        action.name,
        action.domain,
        action.key,
        action.data,
    )
