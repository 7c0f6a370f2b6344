"""Helpers for tests that need specific import settings."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from ._repository import FakeConfigRepository, peek_repository, set_repository


@contextmanager
def override_settings(
    *,
    env: dict[str, str] | None = None,
    site: dict[str, Any] | None = None,
    common: dict[str, Any] | None = None,
) -> Iterator[FakeConfigRepository]:
    """Serve ``ImportSettings.load()`` from the given dicts inside the block.

    The fake repository is yielded so a test can change values mid-block::

        with override_settings(site={"bulk_import_parallel_workers": 4}) as repo:
            repo.set_env("BULK_IMPORT_CSV_DELIMITER", ";")
            settings = ImportSettings.load()
    """
    previous = peek_repository()
    fake = FakeConfigRepository(env=dict(env or {}), site=dict(site or {}), common=dict(common or {}))
    set_repository(fake)
    try:
        yield fake
    finally:
        set_repository(previous)
