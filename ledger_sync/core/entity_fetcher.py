"""
Entity Fetcher component for the ledger sync service.

Retrieves the full current record for a created or updated entity.
"""

import logging
from typing import Optional

from ledger_sync.core.codec import Err, decode_hex, encode_hex, U64
from ledger_sync.core.exceptions import RemoteError
from ledger_sync.core.rpc_client import NucleusRpcClient
from ledger_sync.core.wire_types import ENTITY_GETTERS, ENTITY_RESPONSES
from ledger_sync.models.dtos import AnyRecord, EntityType

logger = logging.getLogger(__name__)


class EntityFetcher:
    """Fetches entity records by type and id over RPC."""

    def __init__(self, rpc_client: NucleusRpcClient, target_id: str):
        self.rpc_client = rpc_client
        self.target_id = target_id

    async def fetch(self, entity_type: EntityType, entity_id: int) -> Optional[AnyRecord]:
        """
        Fetch the current record for ``entity_id``.

        Args:
            entity_type: Which key space the id belongs to
            entity_id: Ledger id of the entity

        Returns:
            The decoded record, or None if the remote no longer has it.

        Raises:
            CodecError: If the response is not a well-formed payload
            RemoteError: If the remote answered with an error
            RpcError: If the call itself failed
        """
        getter = ENTITY_GETTERS[entity_type]
        response = await self.rpc_client.nucleus_get(self.target_id, getter, encode_hex(U64, entity_id))
        result = decode_hex(ENTITY_RESPONSES[entity_type], response)

        if isinstance(result, Err):
            raise RemoteError(getter, result.value)
        if result.value is None:
            logger.debug(f"{entity_type.value} {entity_id} not found; change already superseded")
            return None
        return result.value
