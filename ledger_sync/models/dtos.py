"""
Pydantic Data Transfer Objects (DTOs) for the ledger sync service.

Records decoded from the remote ledger, change-log entries and the items
handed from the poller to the persistence writer.
"""

from enum import Enum, IntEnum
from typing import Any, ClassVar, Dict, Literal, Tuple, Union

from pydantic import BaseModel, Field, model_validator

U64_MAX = (1 << 64) - 1
I16_MIN = -(1 << 15)
I16_MAX = (1 << 15) - 1


def wrap_u64_to_i64(value: int) -> int:
    """Reinterpret an unsigned 64-bit value as two's-complement signed (BIGINT storage)."""
    return value - (1 << 64) if value >= (1 << 63) else value


class EntityType(str, Enum):
    SUBSPACE = "subspace"
    ARTICLE = "article"
    COMMENT = "comment"


class Method(IntEnum):
    """Change-log operation kind. Values are the wire variant indices."""

    CREATE = 0
    UPDATE = 1
    DELETE = 2


class ChangeEntry(BaseModel):
    """One logged mutation from the remote change log."""

    sequence: int = Field(..., ge=0, le=U64_MAX)
    operation: Method
    key: bytes

    model_config = {"frozen": True}


class EntityRecord(BaseModel):
    """
    Base for records fetched from the remote ledger.

    Subclasses declare which fields carry unsigned 64-bit values; those are
    wrapped into signed range by ``to_row`` before they reach BIGINT columns.
    """

    entity_type: ClassVar[EntityType]
    u64_fields: ClassVar[Tuple[str, ...]] = ()

    model_config = {"frozen": True}

    def to_row(self) -> Dict[str, Any]:
        row = self.model_dump()
        for name in self.u64_fields:
            row[name] = wrap_u64_to_i64(row[name])
        return row


class SubspaceRecord(EntityRecord):
    entity_type: ClassVar[EntityType] = EntityType.SUBSPACE
    u64_fields: ClassVar[Tuple[str, ...]] = ("id", "created_time")

    id: int = Field(..., ge=0, le=U64_MAX)
    title: str
    slug: str
    description: str = ""
    banner: str = ""
    status: int = Field(0, ge=I16_MIN, le=I16_MAX)
    weight: int = Field(0, ge=I16_MIN, le=I16_MAX)
    created_time: int = Field(0, ge=0, le=U64_MAX)


class ArticleRecord(EntityRecord):
    entity_type: ClassVar[EntityType] = EntityType.ARTICLE
    u64_fields: ClassVar[Tuple[str, ...]] = ("id", "author_id", "subspace_id", "created_time", "updated_time")

    id: int = Field(..., ge=0, le=U64_MAX)
    title: str
    content: str
    author_id: int = Field(..., ge=0, le=U64_MAX)
    author_nickname: str
    subspace_id: int = Field(..., ge=0, le=U64_MAX)
    ext_link: str = ""
    status: int = Field(0, ge=I16_MIN, le=I16_MAX)
    weight: int = Field(0, ge=I16_MIN, le=I16_MAX)
    created_time: int = Field(0, ge=0, le=U64_MAX)
    updated_time: int = Field(0, ge=0, le=U64_MAX)


class CommentRecord(EntityRecord):
    entity_type: ClassVar[EntityType] = EntityType.COMMENT
    u64_fields: ClassVar[Tuple[str, ...]] = ("id", "author_id", "post_id", "created_time")

    id: int = Field(..., ge=0, le=U64_MAX)
    content: str
    author_id: int = Field(..., ge=0, le=U64_MAX)
    author_nickname: str
    post_id: int = Field(..., ge=0, le=U64_MAX)
    status: int = Field(0, ge=I16_MIN, le=I16_MAX)
    weight: int = Field(0, ge=I16_MIN, le=I16_MAX)
    created_time: int = Field(0, ge=0, le=U64_MAX)


AnyRecord = Union[SubspaceRecord, ArticleRecord, CommentRecord]


class UpsertItem(BaseModel):
    """Create/update hand-off: the full current record to write."""

    entity_type: EntityType
    operation: Literal[Method.CREATE, Method.UPDATE]
    record: AnyRecord

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _record_matches_type(self) -> "UpsertItem":
        if self.record.entity_type is not self.entity_type:
            raise ValueError(
                f"{type(self.record).__name__} cannot be queued as {self.entity_type.value}"
            )
        return self


class DeleteItem(BaseModel):
    """Delete hand-off: only the id is known."""

    entity_type: EntityType
    id: int = Field(..., ge=0, le=U64_MAX)
    operation: Literal[Method.DELETE] = Method.DELETE

    model_config = {"frozen": True}


QueueItem = Union[UpsertItem, DeleteItem]
