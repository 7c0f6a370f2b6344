"""Where setting values are read from.

``ImportSettings.load`` asks a repository for one key at a time, in the order
environment, site config, common site config. ``None`` means "not set here".
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

try:
    import frappe
except ImportError:  # pragma: no cover
    frappe = None


@runtime_checkable
class ConfigRepository(Protocol):
    def get_env(self, key: str) -> str | None:
        ...

    def get_site_config(self, key: str) -> Any:
        ...

    def get_common_config(self, key: str) -> Any:
        ...


class FrappeConfigRepository:
    """Reads ``os.environ``, ``frappe.conf`` and ``common_site_config.json``.

    Outside a bench only the environment is consulted.
    """

    def get_env(self, key: str) -> str | None:
        return os.environ.get(key)

    def get_site_config(self, key: str) -> Any:
        conf = getattr(frappe, "conf", None) if frappe is not None else None
        return conf.get(key) if conf is not None else None

    def get_common_config(self, key: str) -> Any:
        if frappe is None:
            return None
        try:
            return frappe.get_common_site_config().get(key)
        except (AttributeError, OSError):
            return None


@dataclass
class FakeConfigRepository:
    """In-memory repository for tests.

    >>> FakeConfigRepository(env={"BULK_IMPORT_PARALLEL_WORKERS": "4"}).get_env(
    ...     "BULK_IMPORT_PARALLEL_WORKERS"
    ... )
    '4'
    """

    env: dict[str, str] = field(default_factory=dict)
    site: dict[str, Any] = field(default_factory=dict)
    common: dict[str, Any] = field(default_factory=dict)

    def get_env(self, key: str) -> str | None:
        return self.env.get(key)

    def get_site_config(self, key: str) -> Any:
        return self.site.get(key)

    def get_common_config(self, key: str) -> Any:
        return self.common.get(key)

    def set_env(self, key: str, value: str) -> None:
        self.env[key] = value

    def set_site(self, key: str, value: Any) -> None:
        self.site[key] = value


_active: ConfigRepository | None = None


def set_repository(repo: ConfigRepository | None) -> None:
    """Install ``repo`` as the process-wide settings source (``None`` resets it)."""
    global _active
    _active = repo


def get_repository() -> ConfigRepository:
    global _active
    if _active is None:
        _active = FrappeConfigRepository()
    return _active


def peek_repository() -> ConfigRepository | None:
    """Return the installed repository, or ``None`` if none was created yet."""
    return _active
