"""
Farm backend endpoint constants.

The farm management backend exposes each store collection through its own
REST routes. Filtered reads ("documents in a collection where field ==
value") map onto those routes here, so the rest of the service only speaks
in collections and fields.
"""


class Collections:
    """Names of the store collections making up the hierarchy."""

    FARMS = "farms"
    SECTIONS = "sections"
    BLOCKS = "blocks"
    BEDS = "beds"


class FarmBackendEndpoints:
    """Farm backend endpoint paths."""

    FARMS = "/farms"
    SECTIONS = "/sections"
    BLOCKS_BY_SECTION = "/blocks/section/{value}"
    BEDS_BY_BLOCK = "/beds/block/{value}"

    # (collection, field) -> (path template, query parameter or None)
    FILTERED_READS = {
        (Collections.SECTIONS, "farmId"): (SECTIONS, "farmId"),
        (Collections.BLOCKS, "sectionId"): (BLOCKS_BY_SECTION, None),
        (Collections.BEDS, "blockId"): (BEDS_BY_BLOCK, None),
    }

    # Collections read by id through a full listing
    LISTINGS = {
        Collections.FARMS: FARMS,
    }

    @classmethod
    def filtered_read(cls, collection: str, field: str, value: str) -> tuple[str, dict]:
        """
        Resolve a filtered read to an endpoint path and query parameters.

        Args:
            collection: Store collection name
            field: Field the documents are filtered on
            value: Required field value

        Returns:
            Tuple of (path, query params)

        Raises:
            KeyError: If the backend has no route for this filter
        """
        template, param = cls.FILTERED_READS[(collection, field)]
        if param:
            return template, {param: value}
        return template.format(value=value), {}


class APIConstants:
    """General API configuration constants."""

    # HTTP Headers
    CONTENT_TYPE_JSON = "application/json"
