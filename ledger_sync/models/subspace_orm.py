"""
SQLAlchemy ORM model for the 'subspaces' table.
"""

from sqlalchemy import BigInteger, Column, SmallInteger, String, Text

from .base import Base


class SubspaceORM(Base):
    """
    SQLAlchemy ORM model representing a subspace mirrored from the remote ledger.

    Attributes:
        id (int): Primary key, the ledger-assigned subspace id.
        title (str): Display title.
        slug (str): URL slug.
        description (str, optional): Free-form description.
        banner (str, optional): Banner image reference.
        status (int): Ledger status code.
        weight (int): Ordering weight.
        created_time (int): Creation time, seconds since epoch.
    """
    __tablename__ = "subspaces"

    id = Column(BigInteger, primary_key=True, autoincrement=False, comment="Ledger-assigned subspace id.")
    title = Column(String, nullable=False, comment="Display title.")
    slug = Column(String, nullable=False, comment="URL slug.")
    description = Column(Text, nullable=True, comment="Free-form description.")
    banner = Column(String, nullable=True, comment="Banner image reference.")
    status = Column(SmallInteger, nullable=False, comment="Ledger status code.")
    weight = Column(SmallInteger, nullable=False, comment="Ordering weight.")
    created_time = Column(BigInteger, nullable=False, comment="Creation time, seconds since epoch.")

    def __repr__(self) -> str:
        return f"<SubspaceORM(id={self.id}, slug='{self.slug}', status={self.status})>"
