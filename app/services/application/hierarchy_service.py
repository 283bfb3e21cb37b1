"""
Application service: loads a farm's hierarchy from the document store.

Fetching happens in two concurrent waves (blocks per section, then beds per
block across all sections), each joined all-or-nothing. Aggregation is
delegated to the domain layer once both waves are in.
"""
import asyncio
import logging
from typing import Any, Awaitable, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import ValidationError

from app.domain.models import (
    Bed,
    Block,
    Farm,
    FarmHierarchy,
    HierarchyNode,
    Section,
    StoreDocument,
)
from app.infrastructure.api_constants import Collections
from app.infrastructure.document_store import DocumentStore, FetchFailure
from app.services.domain.hierarchy_aggregator import HierarchyAggregator

logger = logging.getLogger(__name__)

DocumentT = TypeVar("DocumentT", bound=StoreDocument)


async def gather_all(requests: Sequence[Awaitable[Any]]) -> List[Any]:
    """
    Run requests concurrently and return their results in input order.

    If any request fails the others are cancelled and the first
    FetchFailure is raised; no partial results are returned.
    """
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(request) for request in requests]
    except ExceptionGroup as errors:
        failures = [e for e in errors.exceptions if isinstance(e, FetchFailure)]
        if not failures:
            raise
        raise failures[0] from errors
    return [task.result() for task in tasks]


class HierarchyService:
    """
    Application service for farm hierarchy loading.

    Orchestrates store reads and hands the results to the aggregator.
    No aggregation logic lives here.
    """

    def __init__(
        self,
        store: DocumentStore,
        aggregator: HierarchyAggregator,
    ):
        """
        Initialize the service with dependencies.

        Args:
            store: Document store to read farm entities from
            aggregator: Domain aggregator building the tree
        """
        self.store = store
        self.aggregator = aggregator

    @staticmethod
    async def _read(collection: str, read: Awaitable[Any]) -> Any:
        try:
            return await read
        except FetchFailure:
            raise
        except Exception as e:
            raise FetchFailure(f"Failed to read {collection}: {str(e)}") from e

    async def _query(
        self,
        model: Type[DocumentT],
        collection: str,
        field: str,
        value: str,
    ) -> List[DocumentT]:
        documents = await self._read(collection, self.store.where(collection, field, value))
        return [self._parse(model, collection, doc) for doc in documents]

    @staticmethod
    def _parse(model: Type[DocumentT], collection: str, document: Dict[str, Any]) -> DocumentT:
        try:
            return model.model_validate(document)
        except ValidationError as e:
            raise FetchFailure(
                f"Malformed {collection} document {document.get('id')!r}: {e.error_count()} errors"
            ) from e

    async def get_farm(self, farm_id: str) -> Optional[Farm]:
        """
        Fetch a farm by id.

        Returns:
            Farm, or None if the store has no such farm

        Raises:
            FetchFailure: If the read fails
        """
        document = await self._read(Collections.FARMS, self.store.get(Collections.FARMS, farm_id))
        if document is None:
            return None
        return self._parse(Farm, Collections.FARMS, document)

    async def load_hierarchy(self, farm: Farm) -> FarmHierarchy:
        """
        Load and aggregate the hierarchy of a farm.

        This method orchestrates:
        1. Fetching the farm's sections
        2. Fetching every section's blocks concurrently
        3. Fetching every block's beds concurrently, across all sections
        4. Aggregating the tree

        Args:
            farm: Farm to load

        Returns:
            FarmHierarchy for the farm

        Raises:
            FetchFailure: If any read in any wave fails
        """
        sections = await self._query(Section, Collections.SECTIONS, "farmId", farm.id)
        logger.debug(f"Farm {farm.id}: {len(sections)} sections")

        blocks_per_section = await gather_all([
            self._query(Block, Collections.BLOCKS, "sectionId", section.id)
            for section in sections
        ])

        flat_blocks = [block for blocks in blocks_per_section for block in blocks]
        logger.debug(f"Farm {farm.id}: {len(flat_blocks)} blocks")

        flat_beds = await gather_all([
            self._query(Bed, Collections.BEDS, "blockId", block.id)
            for block in flat_blocks
        ])

        # Regroup the flat bed wave by section, by index
        beds_per_section = []
        offset = 0
        for blocks in blocks_per_section:
            beds_per_section.append(flat_beds[offset:offset + len(blocks)])
            offset += len(blocks)

        return self.aggregator.aggregate(farm, sections, blocks_per_section, beds_per_section)


class HierarchyView:
    """
    View-model state of a farm structure view.

    `loading` starts True and is cleared when a load finishes, whether it
    succeeded or not. A failed load leaves an empty hierarchy, the same
    state as a farm without sections. Results of a load that was superseded
    by another load or by dismiss() are discarded.
    """

    def __init__(self, service: HierarchyService, farm: Farm):
        self.service = service
        self.farm = farm
        self.loading = True
        self.hierarchy: List[HierarchyNode] = []
        self.over_allocated_area = 0.0
        self.dismissed = False
        self._generation = 0

    def dismiss(self):
        """Mark the view as gone; in-flight results will be dropped."""
        self.dismissed = True
        self._generation += 1

    async def load(self) -> List[HierarchyNode]:
        """
        Load the farm hierarchy into the view.

        Never raises FetchFailure.

        Returns:
            The hierarchy root list, empty on failure
        """
        self._generation += 1
        generation = self._generation
        self.loading = True

        try:
            result = await self.service.load_hierarchy(self.farm)
        except FetchFailure as e:
            logger.error(f"Error loading hierarchy for farm {self.farm.id}: {e.message}")
            result = None

        if generation != self._generation:
            logger.debug(f"Discarding stale hierarchy for farm {self.farm.id}")
            return self.hierarchy

        if result is None:
            self.hierarchy = []
            self.over_allocated_area = 0.0
        else:
            self.hierarchy = [result.root]
            self.over_allocated_area = result.over_allocated_area
            logger.info(
                f"Loaded hierarchy for farm {self.farm.id}: "
                f"{len(result.root.children)} top-level nodes"
            )
        self.loading = False
        return self.hierarchy
