"""
Key Router: maps change-log keys to entity types and numeric ids.

A key is a fixed 5-byte type prefix followed by a big-endian id. Keys whose
prefix is not one of the known entity prefixes are not ours and are ignored.
"""

import logging
from typing import Dict, NamedTuple, Optional

from ledger_sync.models.dtos import EntityType

logger = logging.getLogger(__name__)

PREFIX_LENGTH = 5
ID_LENGTH = 8

PREFIX_SUBSPACE_KEY = b"veSS:"
PREFIX_ARTICLE_KEY = b"veAT:"
PREFIX_COMMENT_KEY = b"veCM:"

KEY_PREFIXES: Dict[bytes, EntityType] = {
    PREFIX_SUBSPACE_KEY: EntityType.SUBSPACE,
    PREFIX_ARTICLE_KEY: EntityType.ARTICLE,
    PREFIX_COMMENT_KEY: EntityType.COMMENT,
}


class RoutedKey(NamedTuple):
    entity_type: EntityType
    id: int


def id_from_suffix(suffix: bytes) -> int:
    """
    Interpret up to 8 bytes as a big-endian id.

    Bytes past the eighth are ignored; a shorter suffix is zero-padded on the
    low end (``b"\\x01"`` reads as ``0x0100000000000000``).
    """
    return int.from_bytes(suffix[:ID_LENGTH].ljust(ID_LENGTH, b"\x00"), "big")


def make_key(entity_type: EntityType, entity_id: int) -> bytes:
    """Build the canonical key for an entity id."""
    prefix = next(p for p, t in KEY_PREFIXES.items() if t is entity_type)
    return prefix + entity_id.to_bytes(ID_LENGTH, "big")


def route_key(key: bytes) -> Optional[RoutedKey]:
    """
    Classify a change-log key.

    Returns:
        The entity type and id, or None when the prefix is unknown
        (including keys shorter than a prefix).
    """
    entity_type = KEY_PREFIXES.get(bytes(key[:PREFIX_LENGTH]))
    if entity_type is None:
        logger.debug(f"Ignoring key with unknown prefix: {bytes(key[:PREFIX_LENGTH])!r}")
        return None
    return RoutedKey(entity_type, id_from_suffix(bytes(key[PREFIX_LENGTH:])))
