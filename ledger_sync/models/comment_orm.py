"""
SQLAlchemy ORM model for the 'comments' table.
"""

from sqlalchemy import BigInteger, Column, ForeignKey, SmallInteger, String, Text

from .base import Base


class CommentORM(Base):
    __tablename__ = "comments"

    id = Column(BigInteger, primary_key=True, autoincrement=False, comment="Ledger-assigned comment id.")
    content = Column(Text, nullable=False, comment="Comment body.")
    author_id = Column(BigInteger, nullable=False, comment="Ledger id of the author.")
    author_nickname = Column(String, nullable=False, comment="Author display name.")
    post_id = Column(BigInteger, ForeignKey("articles.id"), nullable=False, comment="Article the comment belongs to.")
    status = Column(SmallInteger, nullable=False, comment="Ledger status code.")
    weight = Column(SmallInteger, nullable=False, comment="Ordering weight.")
    created_time = Column(BigInteger, nullable=False, comment="Creation time, seconds since epoch.")

    def __repr__(self) -> str:
        return f"<CommentORM(id={self.id}, post_id={self.post_id}, author_id={self.author_id})>"
