"""
Main Pipeline Orchestrator for the ledger sync service.

Runs the change poller (producer) and the persistence writer (consumer) as
two independent tasks joined by a bounded change queue.
"""
import asyncio
import logging
import sys
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from ledger_sync.config.settings import Settings, get_settings
from ledger_sync.core.change_poller import ChangePoller
from ledger_sync.core.change_queue import ChangeQueue
from ledger_sync.core.persistence_writer import PersistenceWriter
from ledger_sync.core.rpc_client import NucleusRpcClient
from ledger_sync.utils.db_health import check_db_connection, init_db
from ledger_sync.utils.db_session import create_engine_from_settings, create_session_factory

logger = logging.getLogger(__name__)


class SyncPipeline:
    """
    Orchestrates the ledger sync pipeline.
    """
    def __init__(
        self,
        settings: Settings,
        rpc_client: Optional[NucleusRpcClient] = None,
        engine: Optional[AsyncEngine] = None,
    ):
        """
        Initializes all necessary components for the pipeline.

        Args:
            settings: Service configuration, built once at startup
            rpc_client: Optional RPC client; built from settings if omitted
            engine: Optional async engine; built from settings if omitted
        """
        logger.info("Initializing Sync Pipeline components...")
        self.settings = settings
        self.rpc_client = rpc_client or NucleusRpcClient.from_settings(settings)
        self.engine = engine or create_engine_from_settings(settings)
        self.queue = ChangeQueue(maxsize=settings.QUEUE_MAXSIZE)
        self.poller = ChangePoller(
            rpc_client=self.rpc_client,
            target_id=settings.TARGET_ID,
            queue=self.queue,
            poll_interval=settings.POLL_INTERVAL_SECONDS,
        )
        self.writer = PersistenceWriter(create_session_factory(self.engine))
        logger.info("Sync Pipeline components initialized.")

    async def prepare_storage(self) -> None:
        """Verify the store is reachable and create missing tables if configured to."""
        if not await check_db_connection(self.engine):
            raise RuntimeError("Database connection failed; cannot start sync pipeline")
        if self.settings.CREATE_TABLES_ON_STARTUP:
            await init_db(self.engine)

    async def run(self) -> None:
        """
        Run poller and writer until the poller fails.

        The writer runs as a background task. When the poller raises, the
        writer is cancelled and the error propagates; queued items are lost.
        """
        writer_task = asyncio.create_task(self.writer.run_forever(self.queue), name="persistence-writer")
        try:
            await self.poller.run_forever()
        finally:
            writer_task.cancel()
            await asyncio.gather(writer_task, return_exceptions=True)

    async def close(self) -> None:
        await self.rpc_client.close()
        await self.engine.dispose()


async def main_loop(settings: Optional[Settings] = None) -> None:
    """
    Main application loop: prepare storage, then sync until a fatal error.
    """
    settings = settings or get_settings()
    pipeline = SyncPipeline(settings)
    logger.info(
        f"{settings.APP_NAME} v{settings.APP_VERSION} starting. RPC: {settings.RPC_URL}, target: {settings.TARGET_ID}, "
        f"poll interval: {settings.POLL_INTERVAL_SECONDS}s, queue capacity: {settings.QUEUE_MAXSIZE}"
    )

    try:
        await pipeline.prepare_storage()
        await pipeline.run()
    except asyncio.CancelledError:
        logger.info("Sync pipeline cancelled. Shutting down.")
    except Exception as e:
        logger.critical(f"Critical error in sync pipeline: {e}. Pipeline will exit.", exc_info=True)
        raise
    finally:
        await pipeline.close()


if __name__ == "__main__":
    from dotenv import load_dotenv
    from ledger_sync.config.settings import PROJECT_ROOT_DIR
    from ledger_sync.utils.logging_utils import setup_logging

    env_path = PROJECT_ROOT_DIR / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    app_settings = get_settings()
    setup_logging(app_settings.LOGGING_CONFIG_PATH)

    try:
        asyncio.run(main_loop(app_settings))
    except KeyboardInterrupt:
        logger.info("Sync pipeline stopped by user (KeyboardInterrupt).")
    except Exception as e:
        print(f"ledger sync failed: {e}", file=sys.stderr)
        sys.exit(1)
