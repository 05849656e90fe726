"""
Persistence Writer component for the ledger sync service.

Applies queued upserts and deletes to the relational store. Storage
failures (constraint violations, lost connections, unsupported item kinds)
are logged and the item is dropped; the writer never stops on them.
"""

import logging
from typing import Dict, Type

from sqlalchemy import delete
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ledger_sync.core.change_queue import ChangeQueue
from ledger_sync.core.exceptions import UnsupportedOperationError
from ledger_sync.models import ArticleORM, Base, CommentORM, SubspaceORM
from ledger_sync.models.dtos import (
    AnyRecord,
    DeleteItem,
    EntityType,
    QueueItem,
    UpsertItem,
    wrap_u64_to_i64,
)
from ledger_sync.utils.db_session import session_scope

logger = logging.getLogger(__name__)

ENTITY_TABLES: Dict[EntityType, Type[Base]] = {
    EntityType.SUBSPACE: SubspaceORM,
    EntityType.ARTICLE: ArticleORM,
    EntityType.COMMENT: CommentORM,
}


class PersistenceWriter:
    """
    Consumer side of the sync pipeline.

    Each item is applied in its own session and transaction.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """
        Initializes the PersistenceWriter.

        Args:
            session_factory: Factory producing sessions bound to the target store.
        """
        self.session_factory = session_factory

    async def apply(self, item: QueueItem) -> bool:
        """
        Apply a single queue item.

        Returns:
            True if the item was written, False if it was logged and dropped.
        """
        try:
            if isinstance(item, UpsertItem):
                await self.upsert(item.entity_type, item.record)
            elif isinstance(item, DeleteItem):
                await self.delete(item.entity_type, item.id)
            else:
                raise UnsupportedOperationError(f"Invalid operation: {item!r}")
            return True
        except UnsupportedOperationError as e:
            logger.error(f"Dropping queue item: {e}")
            return False
        except SQLAlchemyError as e:
            logger.error(
                f"Database error applying {item.operation.name} to {item.entity_type.value}: {e}",
                exc_info=True
            )
            return False
        except Exception as e:
            logger.error(
                f"Unexpected error applying {item.operation.name} to {item.entity_type.value}: {e}",
                exc_info=True
            )
            return False

    async def upsert(self, entity_type: EntityType, record: AnyRecord) -> None:
        """
        Insert ``record`` or, if its id already exists, overwrite every column.

        Applying the same record twice leaves the row unchanged.
        This uses INSERT ... ON CONFLICT (id) DO UPDATE.
        """
        table = self._table_for(entity_type)
        if record.entity_type is not entity_type:
            raise UnsupportedOperationError(
                f"Record of type {record.entity_type.value} cannot be written to {table.__tablename__}"
            )
        row = record.to_row()

        async with session_scope(self.session_factory) as session:
            insert = sqlite.insert if session.bind.dialect.name == "sqlite" else postgresql.insert
            stmt = insert(table).values(**row)
            stmt = stmt.on_conflict_do_update(
                index_elements=[table.id],
                set_={column: stmt.excluded[column] for column in row if column != "id"},
            )
            await session.execute(stmt)
        logger.info(f"Upserted {entity_type.value}: {record.id}")

    async def delete(self, entity_type: EntityType, entity_id: int) -> None:
        """Remove the row with ``entity_id``. A missing row is a no-op."""
        table = self._table_for(entity_type)
        async with session_scope(self.session_factory) as session:
            result = await session.execute(delete(table).where(table.id == wrap_u64_to_i64(entity_id)))
            deleted = result.rowcount
        if deleted:
            logger.info(f"Deleted {table.__tablename__} record: {entity_id}")
        else:
            logger.info(f"No {table.__tablename__} record {entity_id} to delete")

    async def run_forever(self, queue: ChangeQueue) -> None:
        """Apply queued items in FIFO order until cancelled."""
        logger.info("Persistence writer starting.")
        while True:
            item = await queue.get()
            try:
                await self.apply(item)
            finally:
                queue.task_done()

    @staticmethod
    def _table_for(entity_type: EntityType) -> Type[Base]:
        try:
            return ENTITY_TABLES[entity_type]
        except KeyError:
            raise UnsupportedOperationError(f"Invalid model type: {entity_type!r}") from None
