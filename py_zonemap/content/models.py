"""Typed records exchanged with the content generator."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FillerProposal(BaseModel):
    """A generic location type and the share of cells it should claim."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str = Field(..., alias="location_type", description="Filler type, e.g. forest")
    probability: float = Field(0.0, alias="location_probability",
                               description="Advisory share of tessellation cells")


class SpecialProposal(BaseModel):
    """A rare, named location idea."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str = Field(..., alias="location_type")
    name: str = Field(..., alias="location_name")
    short_lore: str = Field("", alias="location_short_lore")


class ZoneTemplate(BaseModel):
    """Full attribute record for one zone type, before placement."""

    model_config = ConfigDict(extra="ignore")

    type: str
    name: Optional[str] = None
    where_to_place: Optional[str] = None
    placement_entropy: float = Field(5.0, description="0 clusters tightly, 10 is fully random")
    display_color: str = "#888888"
    biome: str = ""

    elevation_min: float = 0.0
    elevation_max: float = 0.0
    temperature_min: float = 0.0
    temperature_max: float = 0.0
    moisture_min: float = 0.0
    moisture_max: float = 0.0

    resources: List[str] = Field(default_factory=list)
    lore: str = ""
    danger_level: float = 0.0
    population: Optional[float] = None
    development: Optional[float] = None
    world_wonder: Optional[bool] = None
    probability: Optional[float] = None

    @field_validator("placement_entropy")
    @classmethod
    def clamp_entropy(cls, value: float) -> float:
        return min(max(value, 0.0), 10.0)
