"""Typed import settings.

Resolution per field, first hit wins:

1. Environment variable ``BULK_IMPORT_<FIELD>`` (upper-cased)
2. Site config key ``bulk_import_<field>``
3. Common site config key ``bulk_import_<field>``
4. The field default
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from frappe_bulk_import.errors import ConfigError

from ._casters import Csv, parse_file_size
from ._repository import ConfigRepository, get_repository


DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024


class ImportSettings(BaseModel):
    """Settings consumed by the import service, the Frappe adapter and the CLI."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    class Meta:
        prefix = "bulk_import"
        env_prefix = "BULK_IMPORT"

    max_file_size_bytes: int | None = Field(default=DEFAULT_MAX_FILE_SIZE, ge=1)
    allowed_extensions: list[str] = Field(default_factory=lambda: [".csv", ".xlsx", ".xlsm"])
    csv_delimiter: str = Field(default=",", min_length=1, max_length=1)
    parallel_workers: int = Field(default=1, ge=1)
    max_error_messages: int = Field(default=50, ge=1)
    tenant_field: str = Field(default="company", min_length=1)
    customer_doctype: str = Field(default="Customer", min_length=1)
    product_doctype: str = Field(default="Item", min_length=1)

    @field_validator("max_file_size_bytes", mode="before")
    @classmethod
    def _cast_file_size(cls, value: Any) -> Any:
        return parse_file_size(value)

    @field_validator("allowed_extensions", mode="before")
    @classmethod
    def _cast_extensions(cls, value: Any) -> Any:
        extensions = Csv()(value)
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions]

    def allows(self, file_name: str | None) -> bool:
        """Return True if the file name carries an accepted extension."""
        if not file_name:
            return False
        return file_name.lower().endswith(tuple(self.allowed_extensions))

    @classmethod
    def load(cls, repo: ConfigRepository | None = None) -> "ImportSettings":
        """Load settings from the active repository and validate them.

        Raises:
            ConfigError: If a configured value fails validation
        """
        if repo is None:
            repo = get_repository()

        raw_data: dict[str, Any] = {}
        for field_name in cls.model_fields:
            value = _lookup(repo, field_name, cls.Meta.prefix, cls.Meta.env_prefix)
            if value is not None:
                raw_data[field_name] = value

        try:
            return cls.model_validate(raw_data)
        except ValidationError as e:
            raise ConfigError(f"Invalid bulk import settings: {e}") from e


def _lookup(repo: ConfigRepository, field_name: str, prefix: str, env_prefix: str) -> Any:
    env_value = repo.get_env(f"{env_prefix}_{field_name}".upper())
    if env_value is not None:
        return env_value

    key = f"{prefix}_{field_name}"
    site_value = repo.get_site_config(key)
    if site_value is not None:
        return site_value
    return repo.get_common_config(key)
