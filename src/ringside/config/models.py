"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, ringside.toml only contains
overrides. A fresh roster needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- ringside.toml sections ---


class DatabaseConfig(BaseModel):
    """[database] section.

    ``path`` is relative to the roster root unless absolute; ``":memory:"``
    selects an in-memory database.
    """

    model_config = {"frozen": True}

    path: str = ".ringside/roster.db"


class CascadeConfig(BaseModel):
    """[cascade] section."""

    model_config = {"frozen": True}

    max_depth: int = Field(default=32, ge=1)


class PipelineConfig(BaseModel):
    """[pipeline] section."""

    model_config = {"frozen": True}

    continue_on_error: bool = False


class EventsConfig(BaseModel):
    """[events] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    max_retries: int = Field(default=3, ge=1)


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    audit: bool = True


class RingsideConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    cascade: CascadeConfig = Field(default_factory=CascadeConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
