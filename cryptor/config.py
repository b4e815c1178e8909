"""
Cryptor Configuration — Storage backend selection.

Reads settings from environment variables:
    CRYPTOR_STORAGE_BACKEND = memory | file | postgres   (default: memory)
    CRYPTOR_FILE_PATH = <path to JSON-lines file>        (file backend)
    CRYPTOR_TABLE_NAME = [schema.]table                  (postgres backend)

The encryption algorithm and key size are fixed and are not configurable.
"""
import os
import re
import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger("cryptor")

BACKENDS = ("memory", "file", "postgres")

_TABLE_PATTERN = re.compile(
    r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$"
)


class CryptorConfig(BaseModel):
    """Validated storage configuration."""

    storage_backend: str = Field(default="memory")
    file_path: Optional[str] = Field(default=None)
    table_name: str = Field(default="cryptor_strings")

    @field_validator("storage_backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Validate storage backend is supported."""
        v = v.lower()
        if v not in BACKENDS:
            raise ValueError(f"Unsupported storage backend: {v}")
        return v

    @field_validator("table_name")
    @classmethod
    def validate_table_name(cls, v: str) -> str:
        """Table name is interpolated into SQL, so only plain identifiers."""
        if not _TABLE_PATTERN.match(v):
            raise ValueError(f"Invalid table name: {v!r}")
        return v

    @model_validator(mode="after")
    def validate_file_path(self) -> "CryptorConfig":
        """The file backend needs somewhere to write."""
        if self.storage_backend == "file" and not self.file_path:
            raise ValueError("file_path is required for the file storage backend")
        return self

    @classmethod
    def from_env(cls) -> "CryptorConfig":
        """Create CryptorConfig by loading values from environment.

        Returns:
            Populated CryptorConfig instance.
        """
        values = {
            "storage_backend": os.environ.get("CRYPTOR_STORAGE_BACKEND", "memory"),
            "file_path": os.environ.get("CRYPTOR_FILE_PATH"),
        }
        table_name = os.environ.get("CRYPTOR_TABLE_NAME")
        if table_name:
            values["table_name"] = table_name
        config = cls(**values)
        logger.debug("Loaded config: backend=%s", config.storage_backend)
        return config
