"""Bulk load buffer for the append-only tables.

Rows for ``blocks``, ``transactions`` and ``actions`` are encoded in the
PostgreSQL COPY text format (tab separated fields, newline terminated rows)
and transferred per table on commit.
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Sequence, Tuple

logger = logging.getLogger(__name__)

NULL = '\\N'

# Destination columns, in row order. ``created_at`` is left to its default.
BLOCK_COLUMNS: Tuple[str, ...] = (
    'block_id', 'block_num', 'prev_block_id', 'timestamp', 'trx_merkle_root',
    'trx_count', 'producer', 'pending',
)
TRANSACTION_COLUMNS: Tuple[str, ...] = (
    'trx_id', 'seq_num', 'block_id', 'block_num', 'action_count', 'timestamp',
    'expiration', 'max_charge', 'payer', 'pending', 'type', 'status',
    'signatures', 'keys', 'elapsed', 'charge', 'suspend_name',
)
ACTION_COLUMNS: Tuple[str, ...] = (
    'block_id', 'block_num', 'trx_id', 'seq_num', 'name', 'domain', 'key', 'data',
)

TABLE_COLUMNS: Dict[str, Tuple[str, ...]] = {
    'blocks': BLOCK_COLUMNS,
    'transactions': TRANSACTION_COLUMNS,
    'actions': ACTION_COLUMNS,
}

_COPY_ESCAPES = str.maketrans({
    '\\': '\\\\',
    '\t': '\\t',
    '\n': '\\n',
    '\r': '\\r',
})


def escape_text(value: str) -> str:
    """Escape a text value for the COPY text format."""
    return value.translate(_COPY_ESCAPES)


def array_literal(values: Sequence[Any]) -> str:
    """Render ``values`` as a quoted array literal such as ``{"a","b"}``."""
    elements = []
    for value in values:
        text = str(value).replace('\\', '\\\\').replace('"', '\\"')
        elements.append(f'"{text}"')
    return '{' + ','.join(elements) + '}'


def encode_field(value: Any) -> str:
    if value is None:
        return NULL
    if isinstance(value, bool):
        return 't' if value else 'f'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return escape_text(array_literal(value))
    if isinstance(value, dict):
        return escape_text(json.dumps(value, separators=(',', ':'), ensure_ascii=False))
    return escape_text(str(value))


def encode_row(fields: Sequence[Any]) -> str:
    return '\t'.join(encode_field(f) for f in fields) + '\n'


class BulkLoadBuffer:
    """Per-unit row sets for blocks, transactions and actions."""

    def __init__(self, session) -> None:
        self.session = session
        self._rows: Dict[str, List[str]] = {table: [] for table in TABLE_COLUMNS}

    def _add(self, table: str, fields: Sequence[Any]) -> None:
        expected = len(TABLE_COLUMNS[table])
        if len(fields) != expected:
            raise ValueError(f"{table} row has {len(fields)} fields, expected {expected}")
        self._rows[table].append(encode_row(fields))

    def add_block(self, fields: Sequence[Any]) -> None:
        self._add('blocks', fields)

    def add_transaction(self, fields: Sequence[Any]) -> None:
        self._add('transactions', fields)

    def add_action(self, fields: Sequence[Any]) -> None:
        self._add('actions', fields)

    def row_count(self, table: str) -> int:
        return len(self._rows[table])

    def payload(self, table: str) -> str:
        return ''.join(self._rows[table])

    def clear(self) -> None:
        for rows in self._rows.values():
            rows.clear()

    async def commit(self) -> None:
        """Transfer each non-empty row set, blocks first, then transactions, then actions.

        Raises:
            StatementError: If a transfer fails; later tables are not transferred
        """
        for table, columns in TABLE_COLUMNS.items():
            if not self._rows[table]:
                continue
            await self.session.copy_in(table, columns, self.payload(table))
            logger.debug(f"Loaded {len(self._rows[table])} rows into {table}")
        self.clear()
