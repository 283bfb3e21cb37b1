"""
Domain service: farm hierarchy aggregation.

Builds the farm → sections → blocks tree from already-fetched documents and
computes the area percentages and bed / drip-line roll-ups shown by the
farm structure view. This module does no I/O; fetching lives in the
application service.
"""
import logging
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Sequence

from app.domain.models import (
    Bed,
    Block,
    Farm,
    FarmHierarchy,
    HierarchyNode,
    NodeType,
    Section,
)
from app.config import settings

logger = logging.getLogger(__name__)


def percentage_of(part: float, whole: float) -> float:
    """
    Return part as a percentage of whole.

    A zero whole follows float semantics instead of raising: nan for a
    zero part, signed infinity otherwise.
    """
    try:
        return part / whole * 100
    except ZeroDivisionError:
        if part == 0 or math.isnan(part):
            return math.nan
        return math.copysign(math.inf, part)


def format_percentage(value: float) -> str:
    """
    Format a percentage to one decimal place.

    Ties on the exact binary value round away from zero, so 56.25 gives
    "56.3". Non-finite values come out as "inf", "-inf" or "nan".
    """
    if not math.isfinite(value):
        return f"{value:.1f}"
    return str(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def section_label(index: int) -> str:
    """Spreadsheet-style label for the section at index: A..Z, AA, AB..."""
    label = ""
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        label = chr(65 + remainder) + label
    return label


def sum_driplines(beds: Sequence[Bed]) -> int:
    """Total drip lines across beds; a bed without a count contributes 0."""
    return sum(
        bed.driplines_count if bed.driplines_count is not None else 0
        for bed in beds
    )


class HierarchyAggregator:
    """Aggregates fetched farm documents into a HierarchyNode tree."""

    def __init__(self, default_crop_type: str = None):
        self.default_crop_type = default_crop_type or settings.default_crop_type

    def build_block_node(self, block: Block, beds: Sequence[Bed]) -> HierarchyNode:
        bed_count = len(beds)
        return HierarchyNode(
            name=block.name or block.id,
            type=NodeType.BLOCK,
            size=bed_count or 1,
            beds=bed_count,
            driplines=sum_driplines(beds),
            crop_type=block.crop_type,
        )

    def build_section_node(
        self,
        farm: Farm,
        section: Section,
        index: int,
        blocks: Sequence[Block],
        beds_per_block: Sequence[Sequence[Bed]],
    ) -> HierarchyNode:
        """
        Build a section node and its block children.

        Args:
            farm: Farm the section belongs to, for the area percentage
            section: Section document
            index: Position of the section among the farm's sections
            blocks: The section's blocks, in store order
            beds_per_block: Beds of blocks[i] at position i

        Returns:
            Section HierarchyNode
        """
        block_nodes = []
        total_beds = 0
        total_driplines = 0

        for block, beds in zip(blocks, beds_per_block):
            node = self.build_block_node(block, beds)
            total_beds += node.beds
            total_driplines += node.driplines
            block_nodes.append(node)

        crop_type = blocks[0].crop_type if blocks else None

        return HierarchyNode(
            name=section.name,
            type=NodeType.SECTION,
            label=section_label(index),
            size=section.area,
            percentage=format_percentage(percentage_of(section.area, farm.area)),
            blocks=len(blocks),
            beds=total_beds,
            driplines=total_driplines,
            crop_type=crop_type or self.default_crop_type,
            children=block_nodes,
        )

    def build_idle_node(self, farm: Farm, idle_area: float) -> HierarchyNode:
        idle_percentage = format_percentage(percentage_of(idle_area, farm.area))
        return HierarchyNode(
            name=f"Idle Area ({idle_percentage}%)",
            type=NodeType.IDLE,
            size=idle_area,
        )

    def aggregate(
        self,
        farm: Farm,
        sections: Sequence[Section],
        blocks_per_section: Sequence[Sequence[Block]],
        beds_per_section: Sequence[Sequence[Sequence[Bed]]],
    ) -> FarmHierarchy:
        """
        Aggregate a farm's documents into its hierarchy tree.

        Inputs are parallel sequences: blocks_per_section[i] holds the
        blocks of sections[i], and beds_per_section[i][j] the beds of
        blocks_per_section[i][j]. Children keep that order.

        Args:
            farm: Root farm
            sections: The farm's sections, in store order
            blocks_per_section: Blocks grouped by section index
            beds_per_section: Beds grouped by section then block index

        Returns:
            FarmHierarchy with the root node and area accounting
        """
        if not (len(sections) == len(blocks_per_section) == len(beds_per_section)):
            raise ValueError("Sections, blocks and beds must be grouped per section")

        children: List[HierarchyNode] = []
        used_area = 0.0

        for index, section in enumerate(sections):
            node = self.build_section_node(
                farm,
                section,
                index,
                blocks_per_section[index],
                beds_per_section[index],
            )
            used_area += section.area
            children.append(node)

        idle_area = farm.area - used_area
        if idle_area > 0:
            children.append(self.build_idle_node(farm, idle_area))
        elif idle_area < 0:
            logger.warning(
                f"Farm {farm.id} sections exceed farm area by {-idle_area:g} acres "
                f"({used_area:g} allocated of {farm.area:g})"
            )

        section_nodes = [node for node in children if node.type == NodeType.SECTION]
        root = HierarchyNode(
            name=farm.name,
            type=NodeType.FARM,
            size=farm.area,
            percentage=format_percentage(100.0),
            blocks=sum(node.blocks for node in section_nodes),
            beds=sum(node.beds for node in section_nodes),
            driplines=sum(node.driplines for node in section_nodes),
            children=children,
        )

        return FarmHierarchy(root=root, used_area=used_area, idle_area=idle_area)
