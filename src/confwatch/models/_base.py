"""Base model shared by confwatch value types."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ConfWatchModel(BaseModel):
    """Immutable model with strict field checking."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )
