"""
Core components for the ledger sync service.
"""

from .change_poller import ChangePoller
from .change_queue import ChangeQueue
from .cursor import CursorTracker
from .entity_fetcher import EntityFetcher
from .key_router import route_key
from .persistence_writer import PersistenceWriter
from .pipeline import SyncPipeline
from .rpc_client import NucleusRpcClient

__all__ = [
    "ChangePoller",
    "ChangeQueue",
    "CursorTracker",
    "EntityFetcher",
    "route_key",
    "PersistenceWriter",
    "SyncPipeline",
    "NucleusRpcClient",
]
