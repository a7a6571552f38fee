"""Shared model base."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ApiModel(BaseModel):
    """Base for immutable models decoded from server payloads."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)
