from __future__ import annotations

from .atomic import Atomic, TransactionError, commit, rollback

__all__ = [
    "Atomic",
    "TransactionError",
    "commit",
    "rollback",
]
