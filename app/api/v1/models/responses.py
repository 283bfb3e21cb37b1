"""
API request and response models using Pydantic.
"""
from typing import List
from pydantic import BaseModel, ConfigDict, Field

from app.domain.models import HierarchyNode


class FarmRequest(BaseModel):
    """Farm supplied by a caller that already holds it."""
    id: str = Field(description="Unique identifier for the farm")
    name: str = Field(description="Farm name")
    area: float = Field(description="Total farm area in acres", examples=[10.5])


class HierarchyResponse(BaseModel):
    """Response model for the farm hierarchy endpoints."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "farmId": "farm_123",
                "loading": False,
                "overAllocatedArea": 0.0,
                "hierarchy": [{
                    "name": "Test Farm",
                    "type": "farm",
                    "size": 10.0,
                    "percentage": "100.0",
                    "blocks": 1,
                    "beds": 2,
                    "driplines": 7,
                    "children": [
                        {
                            "name": "North Section",
                            "type": "section",
                            "label": "A",
                            "size": 4.0,
                            "percentage": "40.0",
                            "blocks": 1,
                            "beds": 2,
                            "driplines": 7,
                            "cropType": "Tomatoes",
                            "children": [{
                                "name": "Block A1",
                                "type": "block",
                                "size": 2,
                                "beds": 2,
                                "driplines": 7,
                                "cropType": "Tomatoes",
                                "children": [],
                            }],
                        },
                        {
                            "name": "Idle Area (60.0%)",
                            "type": "idle",
                            "size": 6.0,
                            "children": [],
                        },
                    ],
                }],
            }
        },
    )

    farm_id: str = Field(
        alias="farmId",
        description="Unique identifier for the farm"
    )
    loading: bool = Field(
        default=False,
        description="Whether the hierarchy is still loading"
    )
    hierarchy: List[HierarchyNode] = Field(
        description="Root node list; empty when the farm has no loadable structure"
    )
    over_allocated_area: float = Field(
        default=0.0,
        alias="overAllocatedArea",
        description="Acres by which section areas exceed the farm area"
    )
