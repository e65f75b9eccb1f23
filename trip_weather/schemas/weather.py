from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..services.icons import ICON_CODES


WeatherSourceName = Literal["openweather", "accuweather", "openweather18m", "climateNormals"]
Confidence = Literal["high", "medium", "low"]


class WeatherRecord(BaseModel):
    """Normalized daily weather, identical in shape for every provider.

    Serialized with camelCase keys (``isoDate``, ``hiC``, ``loC``, ``precipMM``)
    since that is what itinerary clients consume.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    iso_date: str = Field(alias="isoDate", pattern=r"^\d{4}-\d{2}-\d{2}$")
    source: WeatherSourceName
    hi_c: float = Field(alias="hiC")
    lo_c: float = Field(alias="loC")
    precip_mm: float = Field(alias="precipMM", ge=0.0)
    icon: str
    confidence: Confidence

    @field_validator("icon")
    @classmethod
    def _validate_icon(cls, v: str) -> str:
        if v not in ICON_CODES:
            raise ValueError(f"unknown icon code {v!r}")
        return v

    @model_validator(mode="after")
    def _check_temperature_range(self) -> "WeatherRecord":
        if self.hi_c < self.lo_c:
            raise ValueError(f"hiC {self.hi_c} is below loC {self.lo_c}")
        return self

    def to_wire(self) -> Dict[str, object]:
        return self.model_dump(by_alias=True)


class DayDescriptor(BaseModel):
    day_id: str
    date: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class WeatherRequest(BaseModel):
    days: List[DayDescriptor]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "days": [
                        {"day_id": "d1", "date": "2025-01-01", "latitude": 48.85, "longitude": 2.35},
                        {"day_id": "d2", "date": "2025-01-02"},
                    ]
                }
            ]
        }
    }


WeatherResponse = Dict[str, Optional[WeatherRecord]]
