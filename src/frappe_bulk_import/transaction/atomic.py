"""Savepoint-based atomic blocks on top of Frappe's database API.

Frappe owns BEGIN / COMMIT / ROLLBACK for requests and jobs. ``atomic()`` only
adds a savepoint so a block of inserts can be undone as a unit without
discarding the rest of the surrounding transaction.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import ContextDecorator
from dataclasses import dataclass, field
from functools import wraps
from typing import Optional, ParamSpec, TypeVar, overload

try:
    import frappe
except ImportError:  # pragma: no cover
    frappe = None

P = ParamSpec("P")
R = TypeVar("R")


class TransactionError(RuntimeError):
    """No Frappe database connection to open a savepoint on."""


@dataclass
class TransactionState:
    """Nesting depth and savepoint stack of the current request/job."""

    depth: int = 0
    savepoints: list[str] = field(default_factory=list)


_GLOBAL_STATE = TransactionState()


def _get_db():
    """Return ``frappe.db``, raising :class:`TransactionError` when unset."""
    db = getattr(frappe, "db", None) if frappe is not None else None

    if db is None:
        raise TransactionError(
            "frappe.db is not initialized; call frappe.init(site=...) and "
            "frappe.connect() before opening an atomic block."
        )

    return db


def _get_state() -> TransactionState:
    """Return per-request transaction state.

    Stored on ``frappe.local`` so each request / job / worker gets its own;
    falls back to a module-level instance outside a Frappe context.
    """
    local = getattr(frappe, "local", None) if frappe is not None else None

    if local is None:
        return _GLOBAL_STATE

    state = getattr(local, "_bulk_import_txn_state", None)
    if state is None:
        state = TransactionState()
        setattr(local, "_bulk_import_txn_state", state)
    return state


def _savepoint_name(depth: int) -> str:
    return f"bulk_import_sp_{depth}"


class Atomic(ContextDecorator):
    """Roll back every write made inside the block if it raises.

    Nested blocks get their own savepoints. An exception rolls back every block
    it propagates through, each to its own savepoint.
    """

    def __init__(self) -> None:
        self._savepoint: Optional[str] = None

    def __enter__(self) -> "Atomic":
        db = _get_db()
        state = _get_state()
        state.depth += 1

        name = _savepoint_name(state.depth)
        self._savepoint = name
        state.savepoints.append(name)

        db.savepoint(name)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool | None:
        state = _get_state()

        try:
            name = self._savepoint
            if not name:
                return False

            db = _get_db()
            if exc_type is not None:
                db.rollback(save_point=name)
            else:
                release_savepoint = getattr(db, "release_savepoint", None)
                if callable(release_savepoint):
                    release_savepoint(name)
        finally:
            if state.savepoints:
                state.savepoints.pop()
            if state.depth > 0:
                state.depth -= 1

        return False


@overload
def atomic(func_or_none: None = None) -> Atomic:
    ...


@overload
def atomic(func_or_none: Callable[P, R]) -> Callable[P, R]:
    ...


def atomic(func_or_none: Callable[P, R] | None = None):
    """Use as ``with atomic():`` or as a bare ``@atomic`` decorator."""
    if func_or_none is None:
        return Atomic()

    func = func_or_none

    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with Atomic():
            return func(*args, **kwargs)

    return wrapper


def commit() -> None:
    """Commit the outer transaction.

    Only needed where Frappe does not own the transaction (bench commands and
    scripts); requests and jobs are committed by Frappe itself.
    """
    _get_db().commit()


def rollback() -> None:
    """Roll back the outer transaction."""
    _get_db().rollback()
