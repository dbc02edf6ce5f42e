"""Pydantic data models shared by the client and the tool layer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DATABASE = "us"
DEFAULT_COUNTRY = "us"


class ApiResponse(BaseModel):
    """Envelope for one upstream response, shared by reference from the cache."""

    model_config = ConfigDict(frozen=True)

    data: Any = Field(description="Decoded JSON body, or the raw text for CSV reports")
    status: int
    headers: dict[str, str] = Field(default_factory=dict)
