"""
Wire layouts of the remote ledger's RPC payloads.

Field order matters: records are encoded field by field in the order
declared here.
"""

from typing import Dict

from ledger_sync.core.codec import (
    BYTES,
    I16,
    STR,
    U64,
    EnumType,
    OptionType,
    ResultType,
    ScaleType,
    StructType,
    TupleType,
    VecType,
)
from ledger_sync.models.dtos import ArticleRecord, CommentRecord, EntityType, Method, SubspaceRecord

METHOD = EnumType(Method)

# (sequence, operation, key)
CHANGE_ENTRY = TupleType(U64, METHOD, BYTES)
CHANGE_LOG_RESPONSE = ResultType(VecType(CHANGE_ENTRY), STR)

SUBSPACE_RECORD = StructType(
    [
        ("id", U64),
        ("title", STR),
        ("slug", STR),
        ("description", STR),
        ("banner", STR),
        ("status", I16),
        ("weight", I16),
        ("created_time", U64),
    ],
    factory=SubspaceRecord,
)

ARTICLE_RECORD = StructType(
    [
        ("id", U64),
        ("title", STR),
        ("content", STR),
        ("author_id", U64),
        ("author_nickname", STR),
        ("subspace_id", U64),
        ("ext_link", STR),
        ("status", I16),
        ("weight", I16),
        ("created_time", U64),
        ("updated_time", U64),
    ],
    factory=ArticleRecord,
)

COMMENT_RECORD = StructType(
    [
        ("id", U64),
        ("content", STR),
        ("author_id", U64),
        ("author_nickname", STR),
        ("post_id", U64),
        ("status", I16),
        ("weight", I16),
        ("created_time", U64),
    ],
    factory=CommentRecord,
)

ENTITY_RESPONSES: Dict[EntityType, ScaleType] = {
    EntityType.SUBSPACE: ResultType(OptionType(SUBSPACE_RECORD), STR),
    EntityType.ARTICLE: ResultType(OptionType(ARTICLE_RECORD), STR),
    EntityType.COMMENT: ResultType(OptionType(COMMENT_RECORD), STR),
}

# Remote method names
GET_FROM_COMMON_KEY = "get_from_common_key"
ENTITY_GETTERS: Dict[EntityType, str] = {
    EntityType.SUBSPACE: "get_subspace",
    EntityType.ARTICLE: "get_article",
    EntityType.COMMENT: "get_comment",
}
