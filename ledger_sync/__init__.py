"""Ledger sync service: mirrors a remote ledger's change log into a relational store."""

__version__ = "0.1.0"
