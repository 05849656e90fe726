"""Declarative base shared by all ledger sync ORM models."""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
