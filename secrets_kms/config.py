"""
Storage Configuration: behaviour toggles and filesystem defaults.

Every StorageEngine holds its own immutable ``StorageConfig``; nothing here
is process-wide mutable state. Hosts may build one from environment variables:
    SECRETS_KMS_ALLOW_WRITES = <bool>
    SECRETS_KMS_ALLOW_DELETES = <bool>
    SECRETS_KMS_FILE_EXTENSIONS = <bool>
    SECRETS_KMS_UMASK = <octal string, e.g. 077>

Security Note:
    Never log key material. Only log secret ids and version numbers.
"""
import os
import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("secrets_kms.config")

# Supported secret key lengths, in bytes.
SECRET_KEY_SIZES = (16, 20, 24, 32, 40, 64)

# Versions are stored in the half-open range [0, VERSION_LIMIT).
VERSION_LIMIT = 65535

DEFAULT_FILE_EXTENSION = ".key"
DEFAULT_UMASK = 0o077
DEFAULT_DIR_PERMISSION = 0o700
DEFAULT_FILE_PERMISSION = 0o600
DEFAULT_VERSION_PADDING = 5


def _env_flag(name: str) -> Optional[str]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def _env_octal(name: str) -> Optional[int]:
    """Read an octal permission value (``"077"`` or ``"0o077"``)."""
    raw = _env_flag(name)
    if raw is None:
        return None
    try:
        return int(raw, 8)
    except ValueError as err:
        raise ValueError(f"{name} must be an octal number, got {raw!r}") from err


class StorageConfig(BaseModel):
    """Validated, immutable storage engine configuration."""

    allow_writes: bool = False
    allow_deletes: bool = False
    use_file_extensions: bool = False
    file_extension: str = Field(default=DEFAULT_FILE_EXTENSION)
    umask: int = Field(default=DEFAULT_UMASK, ge=0, le=0o777)
    dir_permission: int = Field(default=DEFAULT_DIR_PERMISSION, ge=0, le=0o777)
    file_permission: int = Field(default=DEFAULT_FILE_PERMISSION, ge=0, le=0o777)
    version_padding: int = Field(default=DEFAULT_VERSION_PADDING, ge=5, le=10)
    allow_null_padding: bool = False

    model_config = {"frozen": True}

    @field_validator("file_extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        """Extension must be a single dot-prefixed suffix."""
        if not v.startswith(".") or len(v) < 2:
            raise ValueError(f"File extension must start with '.': {v!r}")
        if "/" in v or "\\" in v or "\0" in v:
            raise ValueError(f"File extension cannot contain separators: {v!r}")
        return v

    @property
    def extension(self) -> str:
        """Suffix appended to secret filenames (empty when disabled)."""
        return self.file_extension if self.use_file_extensions else ""

    @classmethod
    def from_env(cls, **overrides) -> "StorageConfig":
        """Create StorageConfig by loading toggles from environment.

        Args:
            overrides: Explicit field values, taking precedence over env vars.

        Returns:
            Populated StorageConfig instance.
        """
        values = {
            "allow_writes": _env_flag("SECRETS_KMS_ALLOW_WRITES"),
            "allow_deletes": _env_flag("SECRETS_KMS_ALLOW_DELETES"),
            "use_file_extensions": _env_flag("SECRETS_KMS_FILE_EXTENSIONS"),
            "umask": _env_octal("SECRETS_KMS_UMASK"),
        }
        values = {k: v for k, v in values.items() if v is not None}
        values.update(overrides)
        config = cls(**values)
        logger.debug(
            "Storage config from env: writes=%s deletes=%s extensions=%s",
            config.allow_writes, config.allow_deletes, config.use_file_extensions,
        )
        return config
