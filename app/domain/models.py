"""
Domain models for the farm containment hierarchy.

Farm entities live as flat documents in the store and reference their
parent through foreign-key style fields (farmId, sectionId, blockId).
Nothing in the store enforces these references, so orphaned documents
are possible and simply never reached from a farm.
"""
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class StoreDocument(BaseModel):
    """Base for documents read from the store."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        return str(value)


class Farm(StoreDocument):
    """Top-level land holding, root of the hierarchy."""
    name: str
    area: float = Field(description="Total farm area in acres")


class Section(StoreDocument):
    """Subdivision of a farm's area."""
    farm_id: str = Field(alias="farmId")
    name: str
    area: float = Field(description="Section area in acres")


class Block(StoreDocument):
    """Subdivision of a section, optionally planted with a crop."""
    section_id: str = Field(alias="sectionId")
    name: Optional[str] = None
    crop_type: Optional[str] = Field(default=None, alias="cropType")


class Bed(StoreDocument):
    """Leaf unit of the hierarchy; owns the drip-line count."""
    block_id: str = Field(alias="blockId")
    name: Optional[str] = None
    driplines_count: Optional[int] = Field(default=None, alias="driplinesCount")


class NodeType(str, Enum):
    """Level of a node in the hierarchy tree."""
    FARM = "farm"
    SECTION = "section"
    BLOCK = "block"
    IDLE = "idle"


class HierarchyNode(BaseModel):
    """
    A node of the aggregated tree handed to the rendering layer.

    `size` is an area for farm, section and idle nodes and a bed count for
    block nodes. Roll-up counts are only populated where they make sense
    for the level.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: str
    type: NodeType
    size: float
    percentage: Optional[str] = None
    label: Optional[str] = None
    blocks: Optional[int] = None
    beds: Optional[int] = None
    driplines: Optional[int] = None
    crop_type: Optional[str] = Field(default=None, alias="cropType")
    children: List["HierarchyNode"] = Field(default_factory=list)


class FarmHierarchy(BaseModel):
    """Result of an aggregation pass: the root node plus integrity data."""
    root: HierarchyNode
    used_area: float
    idle_area: float

    @property
    def over_allocated_area(self) -> float:
        """Area by which sections exceed the farm, 0 when they fit."""
        return max(-self.idle_area, 0.0)
