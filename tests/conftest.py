"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- Sample farm documents
- In-memory document stores
- Hierarchy service wiring
- FastAPI test client
"""
import pytest
from typing import Any, Dict, List
from fastapi.testclient import TestClient

from app.main import app
from app.domain.models import Farm
from app.infrastructure.api_constants import Collections
from app.infrastructure.document_store import InMemoryDocumentStore
from app.services.domain.hierarchy_aggregator import HierarchyAggregator
from app.services.application.hierarchy_service import HierarchyService


def empty_collections() -> Dict[str, List[Dict[str, Any]]]:
    """All hierarchy collections, empty."""
    return {
        Collections.FARMS: [],
        Collections.SECTIONS: [],
        Collections.BLOCKS: [],
        Collections.BEDS: [],
    }


# ============================================================
# Sample Data Fixtures
# ============================================================

@pytest.fixture
def sample_farm() -> Farm:
    """A 10 acre farm."""
    return Farm(id="farm-1", name="Test Farm", area=10.0)


@pytest.fixture
def empty_store(sample_farm) -> InMemoryDocumentStore:
    """Store holding only the sample farm."""
    store = InMemoryDocumentStore(empty_collections())
    store.add(Collections.FARMS, sample_farm.model_dump())
    return store


@pytest.fixture
def sample_store(sample_farm) -> InMemoryDocumentStore:
    """
    Store with a small but complete hierarchy.

    North (4 acres): Block A1 (Tomatoes, 2 beds: 2 + 3 driplines),
                     Block A2 (no crop, 1 bed without a count)
    South (3 acres): no blocks
    An orphaned section of another farm is included.
    """
    store = InMemoryDocumentStore(empty_collections())
    store.add(Collections.FARMS, sample_farm.model_dump())

    store.add(Collections.SECTIONS, {"id": "sec-n", "farmId": "farm-1", "name": "North", "area": 4})
    store.add(Collections.SECTIONS, {"id": "sec-s", "farmId": "farm-1", "name": "South", "area": 3})
    store.add(Collections.SECTIONS, {"id": "sec-x", "farmId": "farm-2", "name": "Elsewhere", "area": 99})

    store.add(Collections.BLOCKS, {"id": "blk-a1", "sectionId": "sec-n", "name": "A1", "cropType": "Tomatoes"})
    store.add(Collections.BLOCKS, {"id": "blk-a2", "sectionId": "sec-n", "name": "A2"})

    store.add(Collections.BEDS, {"id": "bed-1", "blockId": "blk-a1", "name": "Bed 1", "driplinesCount": 2})
    store.add(Collections.BEDS, {"id": "bed-2", "blockId": "blk-a1", "name": "Bed 2", "driplinesCount": 3})
    store.add(Collections.BEDS, {"id": "bed-3", "blockId": "blk-a2", "name": "Bed 3"})
    return store


@pytest.fixture
def aggregator() -> HierarchyAggregator:
    """Aggregator with the default crop type."""
    return HierarchyAggregator(default_crop_type="Mixed")


@pytest.fixture
def hierarchy_service(sample_store, aggregator) -> HierarchyService:
    """Hierarchy service over the sample store."""
    return HierarchyService(store=sample_store, aggregator=aggregator)


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client() -> TestClient:
    """Create a synchronous test client for FastAPI."""
    return TestClient(app)
