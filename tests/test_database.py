"""Integration tests against a real PostgreSQL server.

Set EVT_PG_TEST_URL to a database the tests may wipe, e.g.
postgresql://postgres@localhost:5432/evt_test
"""
import os

import pytest
import pytest_asyncio

from database.exceptions import SyncMismatchError, VersionMismatchError
from database.lib.session import Session
from database.lib.schema_manager import SchemaManager
from ingest.mapper import BURNED_OWNER
from ingest.pipeline import IngestionPipeline

from conftest import PERMISSION, make_action, make_block, make_transaction

DB_URL = os.environ.get('EVT_PG_TEST_URL')

pytestmark = pytest.mark.skipif(not DB_URL, reason="EVT_PG_TEST_URL not set")

CREATOR = 'EVT6Qz3wuRjyN6gaU3P3XRxpz5FDr3kU3QhBDpbtPqrHAq1ZgCaiM'
OWNER = 'EVT8MGU4aKiVzqMtWi9zLpu8KuTHZWjQQrX475ycSxEkLd6aBpraX'


@pytest_asyncio.fixture
async def pg_session():
    """Session on a wiped database."""
    session = await Session.connect(DB_URL)
    manager = SchemaManager(session)
    await manager.drop_all_tables()
    await manager.drop_all_sequences()
    yield session
    await session.close()


@pytest_asyncio.fixture
async def pipeline(pg_session):
    pipeline = IngestionPipeline(pg_session)
    await pipeline.startup()
    return pipeline


def chain(n, transactions=None):
    """Blocks 1..n, each linked to the previous one."""
    transactions = transactions or {}
    blocks = []
    prev = '0' * 64
    for num in range(1, n + 1):
        block = make_block(num, prev=prev, transactions=transactions.get(num))
        blocks.append(block)
        prev = block.block_id
    return blocks


def newdomain(name):
    return make_action('newdomain', name, '.create', {
        'name': name, 'creator': CREATOR,
        'issue': PERMISSION, 'transfer': PERMISSION, 'manage': PERMISSION,
    })


@pytest.mark.asyncio
async def test_blocks_are_contiguous_and_checkpoint_follows(pipeline, pg_session):
    blocks = chain(5)
    for block in blocks:
        await pipeline.ingest_block(block)

    nums = [r['block_num'] for r in await pg_session.fetch('SELECT block_num FROM blocks ORDER BY block_num')]
    assert nums == [1, 2, 3, 4, 5]

    last_sync = await pg_session.fetchval("SELECT value FROM stats WHERE key = 'last_sync_block_id'")
    head = await pg_session.fetchval('SELECT block_id FROM blocks ORDER BY block_num DESC LIMIT 1')
    assert last_sync == head == blocks[-1].block_id


@pytest.mark.asyncio
async def test_transaction_arrays_round_trip(pipeline, pg_session):
    trx = make_transaction('a' * 64, signatures=['SIG_K1_"quoted"', 'SIG_K1_plain'], keys=[CREATOR, OWNER])
    await pipeline.ingest_block(chain(1, {1: [trx]})[0])

    row = await pg_session.fetchrow('SELECT signatures, keys, suspend_name FROM transactions')
    assert [s.rstrip() for s in row['signatures']] == ['SIG_K1_"quoted"', 'SIG_K1_plain']
    assert row['keys'] == [CREATOR, OWNER]
    assert row['suspend_name'] is None


@pytest.mark.asyncio
async def test_issue_transfer_and_destroy_tokens(pipeline, pg_session):
    issue = make_action('issuetoken', 'D', '.issue', {'domain': 'D', 'names': ['a', 'b'], 'owner': [CREATOR]})
    destroy = make_action('destroytoken', 'D', 'b', {'domain': 'D', 'name': 'b'})
    transfer = make_action('transfer', 'D', 'a', {'domain': 'D', 'name': 'a', 'to': [OWNER]})
    blocks = chain(2, {
        1: [make_transaction('a' * 64, actions=[newdomain('D'), issue])],
        2: [make_transaction('b' * 64, actions=[destroy, transfer])],
    })

    await pipeline.ingest_block(blocks[0])
    rows = await pg_session.fetch('SELECT id, owner FROM tokens ORDER BY id')
    assert [(r['id'], r['owner']) for r in rows] == [('D:a', [CREATOR]), ('D:b', [CREATOR])]

    await pipeline.ingest_block(blocks[1])
    rows = await pg_session.fetch('SELECT id, owner FROM tokens ORDER BY id')
    assert [(r['id'], r['owner']) for r in rows] == [('D:a', [OWNER]), ('D:b', [BURNED_OWNER])]


@pytest.mark.asyncio
async def test_domain_update_keeps_unspecified_rules(pipeline, pg_session):
    new_manage = {'name': 'manage', 'threshold': 2, 'authorizers': []}
    update = make_action('updatedomain', 'D', '.update', {'name': 'D', 'manage': new_manage})
    await pipeline.ingest_block(chain(1, {1: [make_transaction('a' * 64, actions=[newdomain('D'), update])]})[0])

    row = await pg_session.fetchrow('SELECT issue::text, manage::text FROM domains WHERE name = $1', 'D')
    assert '"threshold": 1' in row['issue']
    assert '"threshold": 2' in row['manage']


@pytest.mark.asyncio
async def test_addmeta_appends_to_domain(pipeline, pg_session):
    meta = lambda value: make_action('addmeta', 'D', '.meta', {'key': 'site', 'value': value, 'creator': CREATOR})
    blocks = chain(2, {
        1: [make_transaction('a' * 64, actions=[newdomain('D'), meta('one')])],
        2: [make_transaction('b' * 64, actions=[meta('two')])],
    })
    for block in blocks:
        await pipeline.ingest_block(block)

    ids = [r['id'] for r in await pg_session.fetch('SELECT id FROM metas ORDER BY id')]
    assert len(ids) == 2
    assert await pg_session.fetchval('SELECT metas FROM domains WHERE name = $1', 'D') == ids


@pytest.mark.asyncio
async def test_failed_unit_leaves_no_mutations(pipeline, pg_session):
    # the second newdomain collides on the primary key
    block = chain(1, {1: [make_transaction('a' * 64, actions=[newdomain('D'), newdomain('D')])]})[0]
    with pytest.raises(Exception):
        await pipeline.ingest_block(block)

    assert await pg_session.fetchval('SELECT count(*) FROM domains') == 0
    assert await pg_session.fetchval("SELECT value FROM stats WHERE key = 'last_sync_block_id'") == ''
    # the bulk-loaded block row is durable, so a restart detects the gap
    with pytest.raises(SyncMismatchError):
        await IngestionPipeline(pg_session).startup()


@pytest.mark.asyncio
async def test_schema_creation_is_idempotent(pipeline, pg_session):
    await pipeline.ingest_block(chain(1)[0])
    await SchemaManager(pg_session).create_schema_if_absent()
    assert await pg_session.fetchval('SELECT count(*) FROM blocks') == 1


@pytest.mark.asyncio
async def test_version_check_on_restart(pipeline, pg_session):
    await pg_session.execute("UPDATE stats SET value = '1.1.0' WHERE key = 'version'")
    await IngestionPipeline(pg_session).startup()

    await pg_session.execute("UPDATE stats SET value = '0.9.0' WHERE key = 'version'")
    with pytest.raises(VersionMismatchError):
        await IngestionPipeline(pg_session).startup()


@pytest.mark.asyncio
async def test_mark_irreversible(pipeline, pg_session):
    block = chain(1)[0]
    await pipeline.ingest_block(block)
    assert await pg_session.fetchval('SELECT pending FROM blocks') is True

    await pipeline.mark_irreversible(block.block_id)
    assert await pg_session.fetchval('SELECT pending FROM blocks') is False


@pytest.mark.asyncio
async def test_callback_driven_unit_stores_counts(pipeline, pg_session):
    block = chain(1)[0]
    trx = make_transaction('a' * 64)
    unit = pipeline.begin_block(block)
    unit.add_transaction(trx)
    unit.add_action(trx.trx_id, newdomain('cookie'), 0)
    await pipeline.commit(unit)

    assert await pg_session.fetchval('SELECT trx_count FROM blocks') == 1
    assert await pg_session.fetchval('SELECT action_count FROM transactions') == 1
    assert await pg_session.fetchval('SELECT count(*) FROM actions') == 1
