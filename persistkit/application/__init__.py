"""Application layer - capability interfaces consumed by callers."""

from .interfaces import IDatabaseConnection, IUnitOfWork, TransactionHandler

__all__ = ["IDatabaseConnection", "IUnitOfWork", "TransactionHandler"]
