"""
Models package for the ledger sync service.

This package contains SQLAlchemy ORM models and Pydantic DTOs.
"""

# Ensure all ORM models are registered with the Base metadata when this package is imported.
from . import base
from . import subspace_orm
from . import article_orm
from . import comment_orm

# Import Base and ORM models for easy access
from .base import Base
from .subspace_orm import SubspaceORM
from .article_orm import ArticleORM
from .comment_orm import CommentORM

# Import DTOs for easy access
from .dtos import (
    AnyRecord,
    ArticleRecord,
    ChangeEntry,
    CommentRecord,
    DeleteItem,
    EntityRecord,
    EntityType,
    Method,
    QueueItem,
    SubspaceRecord,
    UpsertItem,
)

# Define what is exported with 'from ledger_sync.models import *'
__all__ = [
    # Base
    "Base",
    # ORMs
    "ArticleORM",
    "CommentORM",
    "SubspaceORM",
    # DTOs
    "AnyRecord",
    "ArticleRecord",
    "ChangeEntry",
    "CommentRecord",
    "DeleteItem",
    "EntityRecord",
    "EntityType",
    "Method",
    "QueueItem",
    "SubspaceRecord",
    "UpsertItem",
]
