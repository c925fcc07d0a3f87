"""Mutation batch for one ingestion unit.

Entity mutations and stats updates are buffered as plan invocations and
executed inside a single database transaction on commit. If any statement
fails the transaction is rolled back and nothing of the unit is left durable.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

import asyncpg

from ..exceptions import StatementError

logger = logging.getLogger(__name__)


@dataclass
class StatementCall:
    """One buffered plan invocation.

    When ``then`` is set, the value returned by this call is passed as the
    first argument of ``then``, which runs immediately after it.
    """
    plan: str
    args: Tuple[Any, ...] = ()
    then: Optional['StatementCall'] = None


@dataclass
class MutationBatch:
    """Ordered plan invocations committed as one transaction."""
    session: Any
    calls: List[StatementCall] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.calls)

    def add(self, plan: str, *args: Any) -> StatementCall:
        call = StatementCall(plan, args)
        self.calls.append(call)
        return call

    def add_chained(self, plan: str, args: Tuple[Any, ...],
                    then_plan: str, then_args: Tuple[Any, ...]) -> StatementCall:
        """Buffer ``plan`` followed by ``then_plan`` fed with its result."""
        call = StatementCall(plan, tuple(args), StatementCall(then_plan, tuple(then_args)))
        self.calls.append(call)
        return call

    def clear(self) -> None:
        self.calls.clear()

    async def commit(self) -> None:
        """Execute every buffered call in one transaction.

        Raises:
            StatementError: If any statement fails; the transaction is rolled back
        """
        if not self.calls:
            return

        async with self.session.transaction():
            for call in self.calls:
                await self._run(call)

        logger.debug(f"Committed {len(self.calls)} statements")
        self.clear()

    async def _run(self, call: StatementCall) -> None:
        result = await self._execute(call.plan, call.args)
        if call.then is not None:
            if result is None:
                raise StatementError("no value returned for chained statement", call.plan)
            await self._execute(call.then.plan, (result,) + call.then.args)

    async def _execute(self, plan: str, args: Tuple[Any, ...]) -> Any:
        try:
            return await self.session.run(plan, *args)
        except asyncpg.PostgresError as e:
            logger.error(f"Statement {plan} failed: {e}")
            raise StatementError(str(e), plan) from e
