"""
Unit tests for the ChangePoller.

The RPC client is an ``AsyncMock``; responses are built with the same codec
the poller decodes with.
"""

from unittest.mock import AsyncMock, call, patch

import pytest

from ledger_sync.core.change_poller import ChangePoller
from ledger_sync.core.change_queue import ChangeQueue
from ledger_sync.core.codec import U64, Err, Ok, encode_hex
from ledger_sync.core.cursor import CursorTracker
from ledger_sync.core.exceptions import CodecError, RemoteError, RpcError
from ledger_sync.core.key_router import make_key
from ledger_sync.core.rpc_client import NucleusRpcClient
from ledger_sync.core.wire_types import CHANGE_LOG_RESPONSE, ENTITY_RESPONSES
from ledger_sync.models.dtos import DeleteItem, EntityType, Method, UpsertItem

TARGET_ID = "target-1"


class StopPolling(Exception):
    pass


def change_log(*entries) -> str:
    return encode_hex(CHANGE_LOG_RESPONSE, Ok(list(entries)))


def entity_found(entity_type: EntityType, record) -> str:
    return encode_hex(ENTITY_RESPONSES[entity_type], Ok(record))


@pytest.fixture
def mock_rpc_client():
    return AsyncMock(spec=NucleusRpcClient)


@pytest.fixture
def queue():
    return ChangeQueue()


@pytest.fixture
def poller(mock_rpc_client, queue):
    return ChangePoller(mock_rpc_client, TARGET_ID, queue)


def drain(queue: ChangeQueue):
    items = []
    while queue.qsize():
        items.append(queue._queue.get_nowait())
    return items


@pytest.mark.asyncio
async def test_fetch_changes_sends_encoded_cursor(poller, mock_rpc_client):
    mock_rpc_client.nucleus_post.return_value = change_log()

    assert await poller.fetch_changes(10) == []

    mock_rpc_client.nucleus_post.assert_awaited_once_with(
        TARGET_ID, "get_from_common_key", encode_hex(U64, 10)
    )
    assert encode_hex(U64, 10) == "0a00000000000000"


@pytest.mark.asyncio
async def test_create_enqueues_upsert_and_advances_cursor(poller, mock_rpc_client, queue, subspace_record):
    mock_rpc_client.nucleus_post.return_value = change_log(
        (10, Method.CREATE, make_key(EntityType.SUBSPACE, 42))
    )
    mock_rpc_client.nucleus_get.return_value = entity_found(EntityType.SUBSPACE, subspace_record)

    assert await poller.run_cycle() == 1

    mock_rpc_client.nucleus_get.assert_awaited_once_with(TARGET_ID, "get_subspace", encode_hex(U64, 42))
    items = drain(queue)
    assert items == [
        UpsertItem(entity_type=EntityType.SUBSPACE, operation=Method.CREATE, record=subspace_record)
    ]
    assert poller.cursor.value == 10


@pytest.mark.asyncio
async def test_delete_enqueues_without_fetching(poller, mock_rpc_client, queue):
    mock_rpc_client.nucleus_post.return_value = change_log(
        (11, Method.DELETE, make_key(EntityType.ARTICLE, 7))
    )

    await poller.run_cycle()

    mock_rpc_client.nucleus_get.assert_not_awaited()
    assert drain(queue) == [DeleteItem(entity_type=EntityType.ARTICLE, id=7)]
    assert poller.cursor.value == 11


@pytest.mark.asyncio
async def test_missing_record_is_skipped_but_cursor_advances(poller, mock_rpc_client, queue):
    mock_rpc_client.nucleus_post.return_value = change_log(
        (12, Method.UPDATE, make_key(EntityType.COMMENT, 5))
    )
    mock_rpc_client.nucleus_get.return_value = entity_found(EntityType.COMMENT, None)

    assert await poller.run_cycle() == 1

    assert queue.qsize() == 0
    assert poller.cursor.value == 12


@pytest.mark.asyncio
async def test_unknown_prefix_is_skipped_without_fetch(poller, mock_rpc_client, queue):
    mock_rpc_client.nucleus_post.return_value = change_log((13, Method.CREATE, b"other:\x00\x01"))

    await poller.run_cycle()

    mock_rpc_client.nucleus_get.assert_not_awaited()
    assert queue.qsize() == 0
    assert poller.cursor.value == 13


@pytest.mark.asyncio
async def test_empty_cycle_leaves_cursor_unchanged(mock_rpc_client, queue):
    poller = ChangePoller(mock_rpc_client, TARGET_ID, queue, cursor=CursorTracker(20))
    mock_rpc_client.nucleus_post.return_value = change_log()

    assert await poller.run_cycle() == 0

    assert poller.cursor.value == 20
    assert queue.qsize() == 0


@pytest.mark.asyncio
async def test_entries_are_enqueued_in_returned_order(poller, mock_rpc_client, queue, subspace_record, article_record):
    mock_rpc_client.nucleus_post.return_value = change_log(
        (3, Method.CREATE, make_key(EntityType.SUBSPACE, 42)),
        (4, Method.UPDATE, make_key(EntityType.ARTICLE, 7)),
        (5, Method.DELETE, make_key(EntityType.COMMENT, 5)),
    )
    mock_rpc_client.nucleus_get.side_effect = [
        entity_found(EntityType.SUBSPACE, subspace_record),
        entity_found(EntityType.ARTICLE, article_record),
    ]

    assert await poller.run_cycle() == 3

    items = drain(queue)
    assert [(item.entity_type, item.operation) for item in items] == [
        (EntityType.SUBSPACE, Method.CREATE),
        (EntityType.ARTICLE, Method.UPDATE),
        (EntityType.COMMENT, Method.DELETE),
    ]
    assert poller.cursor.value == 5
    assert mock_rpc_client.nucleus_get.await_args_list == [
        call(TARGET_ID, "get_subspace", encode_hex(U64, 42)),
        call(TARGET_ID, "get_article", encode_hex(U64, 7)),
    ]


@pytest.mark.asyncio
async def test_cursor_is_sent_on_next_cycle(poller, mock_rpc_client):
    mock_rpc_client.nucleus_post.side_effect = [
        change_log((10, Method.DELETE, make_key(EntityType.SUBSPACE, 1))),
        change_log(),
    ]

    await poller.run_cycle()
    await poller.run_cycle()

    assert mock_rpc_client.nucleus_post.await_args_list[1] == call(
        TARGET_ID, "get_from_common_key", encode_hex(U64, 10)
    )


@pytest.mark.asyncio
async def test_change_log_error_is_fatal(poller, mock_rpc_client):
    mock_rpc_client.nucleus_post.return_value = encode_hex(CHANGE_LOG_RESPONSE, Err("no such target"))

    with pytest.raises(RemoteError, match="no such target"):
        await poller.run_cycle()
    assert poller.cursor.value == 0


@pytest.mark.asyncio
async def test_malformed_change_log_is_fatal(poller, mock_rpc_client):
    mock_rpc_client.nucleus_post.return_value = "not hex"

    with pytest.raises(CodecError):
        await poller.run_cycle()


@pytest.mark.asyncio
async def test_entity_fetch_error_is_fatal_and_cursor_stays(poller, mock_rpc_client, queue):
    mock_rpc_client.nucleus_post.return_value = change_log(
        (10, Method.CREATE, make_key(EntityType.ARTICLE, 7))
    )
    mock_rpc_client.nucleus_get.return_value = encode_hex(ENTITY_RESPONSES[EntityType.ARTICLE], Err("storage"))

    with pytest.raises(RemoteError, match="get_article"):
        await poller.run_cycle()
    assert poller.cursor.value == 0


@pytest.mark.asyncio
async def test_transport_failure_propagates(poller, mock_rpc_client):
    mock_rpc_client.nucleus_post.side_effect = RpcError("connection refused")

    with pytest.raises(RpcError):
        await poller.run_cycle()


@pytest.mark.asyncio
async def test_run_forever_sleeps_between_cycles(poller, mock_rpc_client):
    mock_rpc_client.nucleus_post.return_value = change_log()

    with patch("ledger_sync.core.change_poller.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        mock_sleep.side_effect = [None, StopPolling()]
        with pytest.raises(StopPolling):
            await poller.run_forever()

    assert mock_rpc_client.nucleus_post.await_count == 2
    mock_sleep.assert_awaited_with(5.0)
