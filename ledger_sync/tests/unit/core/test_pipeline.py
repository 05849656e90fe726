import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from sqlalchemy import inspect

from ledger_sync.core.exceptions import CodecError
from ledger_sync.core.pipeline import SyncPipeline, main_loop
from ledger_sync.core.rpc_client import NucleusRpcClient


@pytest.fixture
def mock_rpc_client():
    return AsyncMock(spec=NucleusRpcClient)


@pytest.mark.asyncio
async def test_pipeline_wires_components_from_settings(test_settings, mock_rpc_client, empty_engine):
    test_settings.QUEUE_MAXSIZE = 7
    test_settings.POLL_INTERVAL_SECONDS = 0.5

    pipeline = SyncPipeline(test_settings, rpc_client=mock_rpc_client, engine=empty_engine)

    assert pipeline.queue.maxsize == 7
    assert pipeline.poller.poll_interval == 0.5
    assert pipeline.poller.target_id == test_settings.TARGET_ID
    assert pipeline.poller.queue is pipeline.queue


@pytest.mark.asyncio
async def test_prepare_storage_creates_tables(test_settings, mock_rpc_client, empty_engine):
    pipeline = SyncPipeline(test_settings, rpc_client=mock_rpc_client, engine=empty_engine)

    await pipeline.prepare_storage()

    async with empty_engine.connect() as conn:
        tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
    assert {"subspaces", "articles", "comments"} <= set(tables)


@pytest.mark.asyncio
async def test_prepare_storage_fails_when_db_unreachable(test_settings, mock_rpc_client, empty_engine):
    pipeline = SyncPipeline(test_settings, rpc_client=mock_rpc_client, engine=empty_engine)

    with patch('ledger_sync.core.pipeline.check_db_connection', AsyncMock(return_value=False)):
        with pytest.raises(RuntimeError):
            await pipeline.prepare_storage()


@pytest.mark.asyncio
async def test_run_propagates_poller_error_and_stops_writer(test_settings, mock_rpc_client, empty_engine):
    async def malformed_change_log(*args):
        await asyncio.sleep(0)
        return "zz"

    mock_rpc_client.nucleus_post.side_effect = malformed_change_log
    pipeline = SyncPipeline(test_settings, rpc_client=mock_rpc_client, engine=empty_engine)
    writer_stopped = MagicMock()

    async def fake_writer(queue):
        try:
            await queue.get()
        finally:
            writer_stopped()

    with patch.object(pipeline.writer, "run_forever", fake_writer):
        with pytest.raises(CodecError):
            await pipeline.run()

    writer_stopped.assert_called_once()


@pytest.mark.asyncio
async def test_main_loop_reraises_and_closes(test_settings):
    with patch('ledger_sync.core.pipeline.SyncPipeline') as MockPipeline:
        pipeline = MockPipeline.return_value
        pipeline.prepare_storage = AsyncMock()
        pipeline.run = AsyncMock(side_effect=CodecError("bad payload"))
        pipeline.close = AsyncMock()

        with pytest.raises(CodecError):
            await main_loop(test_settings)

    MockPipeline.assert_called_once_with(test_settings)
    pipeline.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_main_loop_logs_name_and_version(test_settings, caplog):
    caplog.set_level("INFO", logger="ledger_sync.core.pipeline")
    with patch('ledger_sync.core.pipeline.SyncPipeline') as MockPipeline:
        pipeline = MockPipeline.return_value
        pipeline.prepare_storage = AsyncMock()
        pipeline.run = AsyncMock()
        pipeline.close = AsyncMock()

        await main_loop(test_settings)

    assert f"{test_settings.APP_NAME} v{test_settings.APP_VERSION} starting" in caplog.text
