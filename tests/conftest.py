"""Shared fixtures: an in-process stand-in for an asyncpg connection."""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import asyncpg
import pytest

from database.lib.session import Session
from database.lib.statements import STATEMENTS
from ingest.models import Block, Transaction, Action

PLAN_BY_SQL = {sql: name for name, sql in STATEMENTS.items()}


class FakePreparedStatement:
    def __init__(self, conn: 'FakeConnection', plan: str) -> None:
        self.conn = conn
        self.plan = plan

    async def fetchval(self, *args: Any) -> Any:
        self.conn.calls.append((self.plan, args))
        self.conn.events.append(('plan', self.plan))
        if self.plan == self.conn.fail_plan:
            raise asyncpg.exceptions.UniqueViolationError(f"duplicate key in {self.plan}")
        handler = self.conn.handlers.get(self.plan)
        return handler(*args) if handler else None


class FakeTransaction:
    def __init__(self, conn: 'FakeConnection') -> None:
        self.conn = conn

    async def __aenter__(self):
        self.conn.events.append('begin')
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.conn.events.append('rollback' if exc_type else 'commit')
        return False


class FakeConnection:
    """Records everything the write path sends to the server."""

    def __init__(self) -> None:
        self.executed: List[str] = []
        self.prepared: List[str] = []
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.copies: List[Tuple[str, List[str], str]] = []
        self.events: List[Any] = []
        self.handlers: Dict[str, Callable[..., Any]] = {}
        self.fetchval_result: Any = None
        self.fetchrow_result: Any = None
        self.fail_plan: Optional[str] = None
        self.fail_copy: Optional[str] = None
        self.fail_execute: Optional[str] = None
        self.reject_prepare = False
        self._closed = False

    def on(self, plan: str, handler: Callable[..., Any]) -> None:
        self.handlers[plan] = handler

    def calls_to(self, plan: str) -> List[Tuple[Any, ...]]:
        return [args for name, args in self.calls if name == plan]

    async def execute(self, sql: str, *args: Any) -> str:
        if self.fail_execute and self.fail_execute in sql:
            raise asyncpg.exceptions.SyntaxOrAccessError(f"cannot run: {sql}")
        self.executed.append(sql)
        return 'OK'

    async def fetchval(self, sql: str, *args: Any) -> Any:
        self.executed.append(sql)
        return self.fetchval_result

    async def fetchrow(self, sql: str, *args: Any) -> Any:
        self.executed.append(sql)
        return self.fetchrow_result

    async def fetch(self, sql: str, *args: Any) -> List[Any]:
        self.executed.append(sql)
        return []

    async def prepare(self, sql: str) -> FakePreparedStatement:
        if self.reject_prepare:
            raise asyncpg.exceptions.UndefinedTableError("relation does not exist")
        plan = PLAN_BY_SQL[sql]
        self.prepared.append(plan)
        return FakePreparedStatement(self, plan)

    def transaction(self) -> FakeTransaction:
        return FakeTransaction(self)

    async def copy_to_table(self, table_name: str, *, source, columns=None, format=None, **kwargs) -> str:
        assert format == 'text'
        if table_name == self.fail_copy:
            raise asyncpg.exceptions.BadCopyFileFormatError(f"bad row for {table_name}")
        data = source.read().decode('utf-8')
        self.copies.append((table_name, list(columns), data))
        self.events.append(('copy', table_name))
        return f"COPY {data.count(chr(10))}"

    def is_closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        self._closed = True


@pytest.fixture
def conn() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def session(conn: FakeConnection) -> Session:
    return Session(conn)


def make_block(num: int, prev: Optional[str] = None, transactions=None) -> Block:
    return Block(
        block_id=f"{num:064x}",
        block_num=num,
        prev_block_id=prev if prev is not None else f"{num - 1:064x}",
        timestamp=datetime(2018, 6, 1, 12, 0, num % 60, tzinfo=timezone.utc),
        trx_merkle_root='f' * 64,
        producer='evt',
        transactions=transactions or [],
    )


def make_transaction(trx_id: str, actions=None, **kwargs) -> Transaction:
    fields = dict(
        trx_id=trx_id,
        expiration=datetime(2018, 6, 1, 12, 5, 0, tzinfo=timezone.utc),
        max_charge=10000,
        payer='EVT6Qz3wuRjyN6gaU3P3XRxpz5FDr3kU3QhBDpbtPqrHAq1ZgCaiM',
        signatures=['SIG_K1_first', 'SIG_K1_second'],
        keys=['EVT6Qz3wuRjyN6gaU3P3XRxpz5FDr3kU3QhBDpbtPqrHAq1ZgCaiM',
              'EVT8MGU4aKiVzqMtWi9zLpu8KuTHZWjQQrX475ycSxEkLd6aBpraX'],
        elapsed=120,
        charge=3500,
        actions=actions or [],
    )
    fields.update(kwargs)
    return Transaction(**fields)


def make_action(name: str, domain: str, key: str, data: Dict[str, Any]) -> Action:
    return Action(name=name, domain=domain, key=key, data=data)


PERMISSION = {
    'name': 'issue',
    'threshold': 1,
    'authorizers': [{'ref': '[A] EVT6Qz3wuRjyN6gaU3P3XRxpz5FDr3kU3QhBDpbtPqrHAq1ZgCaiM', 'weight': 1}],
}
