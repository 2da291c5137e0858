"""
Analysis payload models.

The browser client posts a completed analysis in camelCase JSON; every model
accepts both the camelCase aliases and the snake_case field names. Models are
frozen: an Analysis is never mutated once the vision pipeline hands it over.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

_MODEL_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
    "frozen": True,
}


class Alternative(BaseModel):
    """Substitute material suggested for a parent Material."""
    model_config = _MODEL_CONFIG

    name: str
    description: str = ""
    tradeoffs: str = ""


class Material(BaseModel):
    """A construction material identified by the vision model."""
    model_config = _MODEL_CONFIG

    name: str = Field(..., description="e.g., Glass Curtain Wall")
    description: str = ""
    properties: List[str] = Field(default_factory=list)
    tier: Literal[1, 2, 3]                      # 1 readily available, 2 customised, 3 R&D
    reasoning: str = ""
    csi_division: str = Field(..., description="e.g., Openings")
    csi_number: str = Field(..., description="Two-digit MasterFormat number, e.g. 08")
    sustainability_notes: Optional[str] = None
    alternatives: Optional[List[Alternative]] = None
    code_compliance: Optional[str] = None

    @property
    def division_key(self) -> str:
        return f"{self.csi_number} - {self.csi_division}"


class Coordinates(BaseModel):
    model_config = _MODEL_CONFIG

    lat: float
    lng: float


class ProjectLocation(BaseModel):
    """Geocoded project location. Only jurisdiction is interpreted."""
    model_config = _MODEL_CONFIG

    input: str
    coordinates: Optional[Coordinates] = None
    jurisdiction: Optional[str] = None          # e.g. "New York, NY, USA"
    building_code: Optional[str] = None         # e.g. "IBC 2021"

    @property
    def region(self) -> str:
        """Short region label: first comma-separated token of the jurisdiction."""
        if not self.jurisdiction:
            return "Local Area"
        return self.jurisdiction.split(",")[0].strip() or "Local Area"


class ProjectBrief(BaseModel):
    model_config = _MODEL_CONFIG

    text: str = ""
    intent: Optional[str] = None                # extracted intent / constraints summary


class Analysis(BaseModel):
    """A completed analysis run — the report engine's sole input."""
    model_config = {
        **_MODEL_CONFIG,
        "json_schema_extra": {
            "example": {
                "imageUrls": ["data:image/png;base64,iVBORw0KGgo..."],
                "materials": [{
                    "name": "Standing Seam Metal Roof",
                    "description": "Interlocking metal roof panels with concealed fasteners.",
                    "properties": ["Durable", "Weather resistant"],
                    "tier": 1,
                    "reasoning": "Stocked by regional roofing suppliers.",
                    "csiDivision": "Thermal and Moisture Protection",
                    "csiNumber": "07",
                }],
                "timestamp": "2026-10-19T14:05:00Z",
                "includeSustainability": False,
                "includeAlternatives": False,
            }
        },
    }

    image_urls: List[str] = Field(default_factory=list)
    materials: List[Material] = Field(default_factory=list)
    timestamp: datetime
    include_sustainability: bool = False
    include_alternatives: bool = False
    location: Optional[ProjectLocation] = None
    brief: Optional[ProjectBrief] = None
