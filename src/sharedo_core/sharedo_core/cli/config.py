# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.
"""Central ShareDo workflow tooling configuration.

All values have sensible defaults and can be overridden via environment variables
using the ``SHAREDO_`` prefix:

  SHAREDO_LOG_LEVEL                 Log level (default: INFO)
  SHAREDO_LOG_FILE                  Write logs to this file instead of stderr
                                    (optional)
  SHAREDO_MAX_LOG_FILE_BYTES        Max bytes per log file (optional)
  SHAREDO_LOG_BACKUP_COUNT          Log rotation backup count (optional)
  SHAREDO_LOG_JSON                  Emit one JSON object per log line (default: false)
  SHAREDO_MAX_WORKFLOW_BYTES        Max serialized workflow size in bytes
                                    (default: 10 MiB)
  SHAREDO_MAX_STEPS                 Max steps per workflow (default: 1000)
  SHAREDO_MAX_VARIABLES             Max variables per workflow (default: 500)
  SHAREDO_MAX_SYSTEM_NAME_LENGTH    Max workflow system name length (default: 100)
  SHAREDO_MAX_DISPLAY_NAME_LENGTH   Max sanitized display name length (default: 200)
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "WARN", "ERROR", "CRITICAL"})


class SharedoConfig(BaseSettings):
    """Central ShareDo workflow tooling configuration.

    Instantiate with ``SharedoConfig()`` to read defaults and any
    ``SHAREDO_*`` environment variable overrides automatically.
    """

    model_config = SettingsConfigDict(env_prefix="SHAREDO_")

    # ── Logging configuration ──────────────────────────────────────────────
    log_level: str = "INFO"
    log_file: Optional[str] = None
    max_log_file_bytes: Optional[int] = None
    log_backup_count: Optional[int] = None
    log_json: bool = False

    # ── Workflow guard limits ──────────────────────────────────────────────
    max_workflow_bytes: int = 10 * 1024 * 1024
    max_steps: int = 1000
    max_variables: int = 500
    max_system_name_length: int = 100
    max_display_name_length: int = 200

    # ── Validators ─────────────────────────────────────────────────────────

    @field_validator("log_level")
    @classmethod
    def _valid_log_level(cls, v: str) -> str:
        if v.upper() not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level={v!r} is not a valid log level. "
                f"Valid values: {', '.join(sorted(_VALID_LOG_LEVELS))}"
            )
        return v.upper()

    @field_validator("max_log_file_bytes", "log_backup_count")
    @classmethod
    def _non_negative(cls, v: Optional[int], info: ValidationInfo) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError(f"{info.field_name}={v} must be >= 0")
        return v

    @field_validator(
        "max_workflow_bytes",
        "max_steps",
        "max_variables",
        "max_system_name_length",
        "max_display_name_length",
    )
    @classmethod
    def _positive_limit(cls, v: int, info: ValidationInfo) -> int:
        if v < 1:
            raise ValueError(f"{info.field_name}={v} must be >= 1")
        return v

    @field_validator("max_display_name_length")
    @classmethod
    def _room_for_ellipsis(cls, v: int) -> int:
        # Truncated names end with "..."
        if v < 4:
            raise ValueError(f"max_display_name_length={v} must be >= 4")
        return v


# ── Module-level singleton ─────────────────────────────────────────────────────

_config: Optional[SharedoConfig] = None


def get_config() -> SharedoConfig:
    """Return the process-wide config singleton.

    Creates a fresh ``SharedoConfig`` on first call (reading env vars).
    Subsequent calls return the cached instance.

    Note: not thread-safe. In multi-threaded contexts, call
    ``load_and_validate_config()`` once during startup before spawning threads.
    """
    global _config
    if _config is None:
        _config = SharedoConfig()
    return _config


def load_and_validate_config() -> SharedoConfig:
    """Build, validate, cache and return the config.

    Raises ``pydantic.ValidationError`` with a clear message if any value is
    invalid. Call this once at CLI startup to surface config errors before
    any workflow is loaded.
    """
    global _config
    cfg = SharedoConfig()
    _config = cfg
    return cfg
