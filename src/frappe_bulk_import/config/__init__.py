"""Typed, validated settings for the bulk importer.

Values come from environment variables, the site config or the common site
config, and fall back to defaults; nothing requires a running Frappe site.
"""

from frappe_bulk_import.errors import ConfigError

from ._casters import Csv, parse_file_size
from ._repository import (
    ConfigRepository,
    FakeConfigRepository,
    FrappeConfigRepository,
    get_repository,
    set_repository,
)
from ._settings import ImportSettings
from ._testing import override_settings

__all__ = [
    "ImportSettings",
    "ConfigError",
    # Helpers
    "Csv",
    "parse_file_size",
    # Sources
    "ConfigRepository",
    "FrappeConfigRepository",
    "FakeConfigRepository",
    "get_repository",
    "set_repository",
    # Testing
    "override_settings",
]
