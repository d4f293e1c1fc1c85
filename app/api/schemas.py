from __future__ import annotations

from pydantic import BaseModel, Field


class HealthOut(BaseModel):
    """Health check response."""

    status: str = Field(
        description="Service status indicator. `ok` means the API process is up and responding.",
        examples=["ok"],
    )


class ServiceInfoOut(BaseModel):
    """Static service information served at the root path."""

    status: str = Field(examples=["ok"])
    message: str = Field(examples=["LLM Integration API is running"])
    version: str = Field(examples=["1.0.0"])
    timestamp: str = Field(description="Server time (ISO-8601, UTC).")
