"""
Dependency injection for FastAPI.
"""
from typing import Annotated
from fastapi import Depends

from app.infrastructure.document_store import (
    HttpDocumentStore,
    get_document_store,
)
from app.services.domain.hierarchy_aggregator import HierarchyAggregator
from app.services.application.hierarchy_service import HierarchyService


def get_hierarchy_aggregator() -> HierarchyAggregator:
    """
    Dependency factory for HierarchyAggregator.

    Returns:
        HierarchyAggregator instance
    """
    return HierarchyAggregator()


def get_hierarchy_service(
    store: Annotated[HttpDocumentStore, Depends(get_document_store)],
    aggregator: Annotated[HierarchyAggregator, Depends(get_hierarchy_aggregator)],
) -> HierarchyService:
    """
    Dependency factory for HierarchyService.

    Args:
        store: Document store (injected)
        aggregator: Hierarchy aggregator (injected)

    Returns:
        HierarchyService instance
    """
    return HierarchyService(store=store, aggregator=aggregator)


# Type aliases for cleaner route signatures
HierarchyServiceDep = Annotated[HierarchyService, Depends(get_hierarchy_service)]
