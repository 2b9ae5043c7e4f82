"""
Pydantic schemas for wire messages and channel files.

UpdateSnapshot is the outbound message pushed to viewers; its JSON shape is a
stable contract with the player page. The *Schema models validate channel
files before they are turned into runtime objects.
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class UpdateSnapshot(BaseModel):
    """Outbound state snapshot: ``{type, isLive, referenceId, offsetSec}``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: Literal["update"] = "update"
    is_live: bool = Field(..., alias="isLive")
    reference_id: str = Field(..., alias="referenceId")
    offset_sec: int = Field(..., ge=0, alias="offsetSec")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


# Channel file schemas
class SimpleEntrySchema(BaseModel):
    """A single filler video in a channel file."""

    model_config = ConfigDict(extra="forbid")

    reference_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("reference_id", "referenceId", "embed_code", "embedCode"),
    )
    duration_sec: int = Field(
        ..., gt=0, validation_alias=AliasChoices("duration_sec", "durationSec", "duration")
    )


class CompositeEntrySchema(BaseModel):
    """A multi-part filler entry; ``duration_sec`` is optional and checked against the parts."""

    model_config = ConfigDict(extra="forbid")

    parts: list[SimpleEntrySchema] = Field(..., min_length=1)
    duration_sec: int | None = Field(
        None, gt=0, validation_alias=AliasChoices("duration_sec", "durationSec", "duration")
    )


class LiveSourceSchema(BaseModel):
    """A live source candidate; priority comes from list position."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1)


class ChannelFileSchema(BaseModel):
    """Top-level channel file."""

    model_config = ConfigDict(extra="forbid")

    sources: list[Union[str, LiveSourceSchema]] = Field(
        ..., min_length=1, validation_alias=AliasChoices("sources", "streamers", "candidates")
    )
    playlist: list[Union[CompositeEntrySchema, SimpleEntrySchema]] = Field(..., min_length=1)
    poll_interval_sec: float | None = Field(None, gt=0)
    tick_interval_sec: float | None = Field(None, gt=0)
