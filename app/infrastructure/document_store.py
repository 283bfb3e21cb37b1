"""
Infrastructure layer: document store read access.

The hierarchy only needs one capability from storage: "get all documents in
a named collection where field == value". Two implementations are provided,
an HTTP client for the farm management backend and an in-memory store.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional, Protocol

import httpx
from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from app.config import settings
from app.infrastructure.api_constants import APIConstants, FarmBackendEndpoints

logger = logging.getLogger(__name__)


class FetchFailure(Exception):
    """A store read failed (network, permission, unknown collection...)."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class DocumentStore(Protocol):
    """Read capability the hierarchy is built from."""

    async def where(self, collection: str, field: str, value: str) -> List[Dict[str, Any]]:
        ...

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        ...


class HttpDocumentStore:
    """
    Store client for the farm management backend REST API.

    Server errors (5xx) are retried with exponential backoff up to
    `max_retry_attempts` attempts; client errors never are.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        max_retry_attempts: Optional[int] = None,
        retry_min_wait: Optional[float] = None,
        retry_max_wait: Optional[float] = None,
    ):
        """Initialize the store client, falling back to settings."""
        self.base_url = base_url or settings.store_base_url
        self.api_key = api_key if api_key is not None else settings.store_api_key
        self.max_retry_attempts = max_retry_attempts or settings.max_retry_attempts
        self.retry_min_wait = retry_min_wait if retry_min_wait is not None else settings.retry_min_wait
        self.retry_max_wait = retry_max_wait if retry_max_wait is not None else settings.retry_max_wait

        headers = {"accept": APIConstants.CONTENT_TYPE_JSON}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=settings.store_timeout,
        )

    async def __aenter__(self) -> "HttpDocumentStore":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def _send(self, method: str, endpoint: str, **kwargs) -> Any:
        try:
            response = await self.client.request(method, endpoint, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            # Server errors are retried by the caller
            if e.response.status_code >= 500:
                raise
            raise FetchFailure(
                f"Store request failed: {e.response.status_code} - {e.response.text}",
                status_code=e.response.status_code,
            )
        except httpx.RequestError as e:
            raise FetchFailure(f"Store request error: {str(e)}")
        except ValueError as e:
            # 2xx with a body that is not JSON
            raise FetchFailure(f"Store returned invalid JSON from {endpoint}: {str(e)}")

    async def _make_request(self, method: str, endpoint: str, **kwargs) -> Any:
        """
        Make an HTTP request with retry logic.

        Args:
            method: HTTP method
            endpoint: Backend endpoint path
            **kwargs: Additional arguments for the request

        Returns:
            Decoded JSON body

        Raises:
            FetchFailure: If the request fails, after retries for 5xx
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retry_attempts),
            wait=wait_exponential(
                multiplier=settings.retry_backoff_multiplier,
                min=self.retry_min_wait,
                max=self.retry_max_wait,
            ),
            retry=retry_if_exception_type(httpx.HTTPStatusError),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._send(method, endpoint, **kwargs)
        except httpx.HTTPStatusError as e:
            raise FetchFailure(
                f"Store request failed: {e.response.status_code} - {e.response.text}"
            )

    async def _read_documents(self, endpoint: str, **kwargs) -> List[Dict[str, Any]]:
        data = await self._make_request("GET", endpoint, **kwargs)
        if not isinstance(data, list):
            raise FetchFailure(f"Expected a list of documents from {endpoint}")
        return data

    async def where(self, collection: str, field: str, value: str) -> List[Dict[str, Any]]:
        """
        Fetch all documents in a collection whose field equals value.

        Raises:
            FetchFailure: If the read fails or the backend has no such filter
        """
        try:
            endpoint, params = FarmBackendEndpoints.filtered_read(collection, field, value)
        except KeyError:
            raise FetchFailure(f"Unsupported query: {collection}.{field}")

        logger.debug(f"Reading {collection} where {field} == {value}")
        return await self._read_documents(endpoint, params=params)

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a single document by id, or None if it does not exist.

        The backend has no single-document routes, so the collection
        listing is scanned.
        """
        endpoint = FarmBackendEndpoints.LISTINGS.get(collection)
        if endpoint is None:
            raise FetchFailure(f"Unsupported collection: {collection}")

        for document in await self._read_documents(endpoint):
            if str(document.get("id")) == doc_id:
                return document
        return None


class InMemoryDocumentStore:
    """
    Store holding collections as lists of documents.

    Query results keep insertion order. Reading a collection that was never
    created is a FetchFailure.
    """

    def __init__(self, collections: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.collections: Dict[str, List[Dict[str, Any]]] = {
            name: [dict(doc) for doc in docs]
            for name, docs in (collections or {}).items()
        }

    def add(self, collection: str, document: Dict[str, Any]) -> str:
        """Insert a document, assigning an id if it has none."""
        doc = dict(document)
        doc.setdefault("id", uuid.uuid4().hex)
        self.collections.setdefault(collection, []).append(doc)
        return doc["id"]

    def _collection(self, collection: str) -> List[Dict[str, Any]]:
        try:
            return self.collections[collection]
        except KeyError:
            raise FetchFailure(f"Collection not found: {collection}", status_code=404)

    async def where(self, collection: str, field: str, value: str) -> List[Dict[str, Any]]:
        return [
            dict(doc) for doc in self._collection(collection)
            if doc.get(field) == value
        ]

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        for doc in self._collection(collection):
            if str(doc.get("id")) == doc_id:
                return dict(doc)
        return None

    async def close(self):
        pass


# Singleton instance
_document_store: Optional[HttpDocumentStore] = None


def get_document_store() -> HttpDocumentStore:
    """
    Get or create the singleton store client.

    Returns:
        HttpDocumentStore instance
    """
    global _document_store
    if _document_store is None:
        _document_store = HttpDocumentStore()
    return _document_store


async def close_document_store():
    """Close the singleton store client, if one was created."""
    global _document_store
    if _document_store is not None:
        await _document_store.close()
        _document_store = None
