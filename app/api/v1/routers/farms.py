"""
API router for farm hierarchy endpoints.
"""
import logging
from fastapi import APIRouter, HTTPException, Path
from typing import Annotated

from app.api.dependencies import HierarchyServiceDep
from app.api.v1.models.responses import FarmRequest, HierarchyResponse
from app.domain.models import Farm
from app.services.application.hierarchy_service import HierarchyService, HierarchyView

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["hierarchy"],
)


async def _hierarchy_response(service: HierarchyService, farm: Farm) -> HierarchyResponse:
    view = HierarchyView(service, farm)
    hierarchy = await view.load()
    return HierarchyResponse(
        farm_id=farm.id,
        loading=view.loading,
        hierarchy=hierarchy,
        over_allocated_area=view.over_allocated_area,
    )


@router.get(
    "/farms/{farm_id}/hierarchy",
    response_model=HierarchyResponse,
    summary="Get farm structure",
    description="""
    Build the farm → sections → blocks structure of a farm.

    Each section reports its share of the farm area and its block, bed and
    drip-line counts. Farm area not covered by any section is reported as an
    idle node. If the structure cannot be read, the hierarchy is empty.
    """,
    responses={
        200: {
            "description": "Farm structure, empty if it could not be loaded",
        },
        404: {
            "description": "Farm not found",
        },
        502: {
            "description": "Farm lookup failed",
        },
    }
)
async def get_farm_hierarchy(
    farm_id: Annotated[str, Path(description="Unique identifier for the farm")],
    hierarchy_service: HierarchyServiceDep,
) -> HierarchyResponse:
    """
    Get the hierarchy of a stored farm.

    Args:
        farm_id: Unique identifier for the farm
        hierarchy_service: Hierarchy service (injected dependency)

    Returns:
        HierarchyResponse for the farm

    Raises:
        HTTPException: If the farm does not exist
    """
    # Lookup failures propagate to the error middleware
    farm = await hierarchy_service.get_farm(farm_id)
    if farm is None:
        raise HTTPException(
            status_code=404,
            detail=f"Farm with ID '{farm_id}' not found"
        )

    return await _hierarchy_response(hierarchy_service, farm)


@router.post(
    "/hierarchy",
    response_model=HierarchyResponse,
    summary="Build structure for a given farm",
    description="""
    Build the structure of a farm supplied in the request body, skipping the
    farm lookup. Sections, blocks and beds are still read from the store.
    """,
)
async def build_farm_hierarchy(
    farm_request: FarmRequest,
    hierarchy_service: HierarchyServiceDep,
) -> HierarchyResponse:
    """
    Get the hierarchy of a caller-supplied farm.

    Args:
        farm_request: Farm id, name and area
        hierarchy_service: Hierarchy service (injected dependency)

    Returns:
        HierarchyResponse for the farm
    """
    farm = Farm(**farm_request.model_dump())
    return await _hierarchy_response(hierarchy_service, farm)
