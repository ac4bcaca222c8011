"""Configuration for a JsonFile instance."""

from __future__ import annotations

from pydantic import BaseModel, Field


class FileConfig(BaseModel):
    """Validated configuration for a JsonFile. Passed via DI at construction."""

    store_streamer_infos: bool = True
    reproducible: bool = False
    indent: int | None = Field(default=3, ge=0)
