"""Response bodies of the wellness API."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from wellness.domain.models import SideEffectRecord


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(_ApiModel):
    error: str


class SaveResponse(_ApiModel):
    ok: bool = True
    saved_at: str = Field(alias="savedAt")


class SideEffectsResponse(_ApiModel):
    side_effects: list[SideEffectRecord] = Field(alias="sideEffects")


class HealthResponse(_ApiModel):
    status: Literal["ok"] = "ok"
    data_file: Literal["exists", "empty"] = Field(alias="dataFile")
    origin: str
