"""Collection settings."""

from __future__ import annotations

import logging
import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

_ENV_FIELDS = (
    "logger_name",
    "progress_level",
    "unnamed_prefix",
    "strict_attach_points",
)


class CollectionSettings(BaseModel):
    """Tunables shared by every collection built with these settings."""

    model_config = ConfigDict(frozen=True)

    logger_name: str = Field(
        default="taskchain",
        description="Logger that receives progress messages when none is set explicitly",
    )
    progress_level: int = Field(
        default=logging.INFO,
        description="Log level for progress messages that do not name one",
    )
    unnamed_prefix: str = Field(
        default="task-",
        min_length=1,
        description="Prefix for names generated for unnamed tasks and code steps",
    )
    strict_attach_points: bool = Field(
        default=True,
        description="Fail the run when a hook names an unknown attach point",
    )

    @field_validator("progress_level", mode="before")
    @classmethod
    def _parse_level(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip().isdigit():
            level = logging.getLevelName(value.strip().upper())
            if not isinstance(level, int):
                raise ValueError(f"Unknown log level: {value!r}")
            return level
        return value

    @classmethod
    def from_env(
        cls, prefix: str = "TASKCHAIN_", dotenv_path: str | None = None
    ) -> "CollectionSettings":
        """Build settings from ``<prefix><FIELD>`` environment variables.

        A ``.env`` file is loaded first (without overriding variables that
        are already set).  Unset variables keep their defaults.
        """
        load_dotenv(dotenv_path)
        values = {}
        for name in _ENV_FIELDS:
            raw = os.environ.get(f"{prefix}{name.upper()}")
            if raw is not None:
                values[name] = raw
        if values:
            logger.debug("Collection settings from environment: %s", values)
        return cls(**values)
