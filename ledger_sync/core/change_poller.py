"""
Change Poller for the ledger sync service.

Polls the remote change log from the current cursor, routes each entry to
an entity type, fetches full records for creates/updates and enqueues the
resulting items for the persistence writer. Any transport or decoding
failure propagates and stops the poller.
"""

import asyncio
import logging
from typing import List, Optional

from ledger_sync.core.change_queue import ChangeQueue
from ledger_sync.core.codec import Err, U64, decode_hex, encode_hex
from ledger_sync.core.cursor import CursorTracker
from ledger_sync.core.entity_fetcher import EntityFetcher
from ledger_sync.core.exceptions import RemoteError
from ledger_sync.core.key_router import route_key
from ledger_sync.core.rpc_client import NucleusRpcClient
from ledger_sync.core.wire_types import CHANGE_LOG_RESPONSE, GET_FROM_COMMON_KEY
from ledger_sync.models.dtos import ChangeEntry, DeleteItem, Method, QueueItem, UpsertItem

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 5.0


class ChangePoller:
    """
    Producer side of the sync pipeline.

    Example:
        >>> poller = ChangePoller(rpc_client, target_id, queue)
        >>> await poller.run_forever()  # Runs until a fatal error
    """

    def __init__(
        self,
        rpc_client: NucleusRpcClient,
        target_id: str,
        queue: ChangeQueue,
        cursor: Optional[CursorTracker] = None,
        fetcher: Optional[EntityFetcher] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ):
        """
        Initialize the poller.

        Args:
            rpc_client: Client for the ledger node
            target_id: Identifier of the remote target the change log belongs to
            queue: Queue the writer consumes from
            cursor: Starting cursor (a fresh one at 0 if omitted)
            fetcher: Entity fetcher (built on ``rpc_client`` if omitted)
            poll_interval: Seconds to sleep after every cycle
        """
        self.rpc_client = rpc_client
        self.target_id = target_id
        self.queue = queue
        self.cursor = cursor or CursorTracker()
        self.fetcher = fetcher or EntityFetcher(rpc_client, target_id)
        self.poll_interval = poll_interval

    async def fetch_changes(self, cursor: int) -> List[ChangeEntry]:
        """
        Request every change-log entry with a sequence after ``cursor``.

        Raises:
            CodecError: If the response cannot be decoded
            RemoteError: If the remote answered with an error
            RpcError: If the call itself failed
        """
        response = await self.rpc_client.nucleus_post(
            self.target_id, GET_FROM_COMMON_KEY, encode_hex(U64, cursor)
        )
        result = decode_hex(CHANGE_LOG_RESPONSE, response)
        if isinstance(result, Err):
            raise RemoteError(GET_FROM_COMMON_KEY, result.value)
        return [
            ChangeEntry(sequence=sequence, operation=operation, key=key)
            for sequence, operation, key in result.value
        ]

    async def build_queue_item(self, entry: ChangeEntry) -> Optional[QueueItem]:
        """
        Turn a change entry into a queue item.

        Returns None for keys outside the known entity prefixes and for
        creates/updates whose record no longer exists remotely.
        """
        routed = route_key(entry.key)
        if routed is None:
            return None

        if entry.operation is Method.DELETE:
            return DeleteItem(entity_type=routed.entity_type, id=routed.id)

        record = await self.fetcher.fetch(routed.entity_type, routed.id)
        if record is None:
            return None
        return UpsertItem(entity_type=routed.entity_type, operation=entry.operation, record=record)

    async def run_cycle(self) -> int:
        """
        Run one poll cycle.

        Entries are handled in the order the remote returned them. The cursor
        moves to the highest sequence seen once every entry has been handled,
        including entries that produced no queue item.

        Returns:
            The number of change entries received.
        """
        logger.info(f"Polling change log after cursor {self.cursor.value}")
        entries = await self.fetch_changes(self.cursor.value)
        if not entries:
            logger.info("No new change entries in this cycle.")
            return 0

        logger.info(f"Received {len(entries)} change entries.")
        enqueued = 0
        for entry in entries:
            item = await self.build_queue_item(entry)
            if item is None:
                logger.debug(f"Entry {entry.sequence} ({entry.operation.name}) produced no queue item")
                continue
            await self.queue.put(item)
            enqueued += 1

        self.cursor.advance(max(entry.sequence for entry in entries))
        logger.info(f"Enqueued {enqueued}/{len(entries)} entries; cursor now {self.cursor.value}")
        return len(entries)

    async def run_forever(self) -> None:
        """Poll at a fixed interval until a fatal error is raised."""
        logger.info(f"Change poller starting. Poll interval: {self.poll_interval}s")
        while True:
            await self.run_cycle()
            await asyncio.sleep(self.poll_interval)
