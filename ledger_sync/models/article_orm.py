"""
SQLAlchemy ORM model for the 'articles' table.
"""

from sqlalchemy import BigInteger, Column, ForeignKey, SmallInteger, String, Text

from .base import Base


class ArticleORM(Base):
    """
    SQLAlchemy ORM model representing an article posted in a subspace.

    Attributes:
        id (int): Primary key, the ledger-assigned article id.
        title (str): Article title.
        content (str): Article body.
        author_id (int): Ledger id of the author.
        author_nickname (str): Author display name at posting time.
        subspace_id (int): Owning subspace. Foreign key to `subspaces.id`.
        ext_link (str, optional): External link attached to the article.
        status (int): Ledger status code.
        weight (int): Ordering weight.
        created_time (int): Creation time, seconds since epoch.
        updated_time (int): Last update time, seconds since epoch.
    """
    __tablename__ = "articles"

    id = Column(BigInteger, primary_key=True, autoincrement=False, comment="Ledger-assigned article id.")
    title = Column(String, nullable=False, comment="Article title.")
    content = Column(Text, nullable=False, comment="Article body.")
    author_id = Column(BigInteger, nullable=False, comment="Ledger id of the author.")
    author_nickname = Column(String, nullable=False, comment="Author display name.")
    subspace_id = Column(BigInteger, ForeignKey("subspaces.id"), nullable=False, comment="Owning subspace.")
    ext_link = Column(String, nullable=True, comment="External link.")
    status = Column(SmallInteger, nullable=False, comment="Ledger status code.")
    weight = Column(SmallInteger, nullable=False, comment="Ordering weight.")
    created_time = Column(BigInteger, nullable=False, comment="Creation time, seconds since epoch.")
    updated_time = Column(BigInteger, nullable=False, comment="Last update time, seconds since epoch.")

    def __repr__(self) -> str:
        return (
            f"<ArticleORM(id={self.id}, subspace_id={self.subspace_id}, "
            f"title='{(self.title or '')[:50]}')>"
        )
