"""Pull and push synchronization against a remote HTTP endpoint.

Pull ingests every fetched item as a new record; push sends the whole
collection in one request. Failures are reported as SyncFailed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from core.config import KoraConfig
from core.errors import KoraSyncError
from core.logging_config import get_logger
from core.types import OperationResult, Record, Status, failure, success

if TYPE_CHECKING:
    from store.collection import Collection

_LOGGER = get_logger(__name__)


class SyncManager:
    """Synchronization unit bound to exactly one collection.

    Pull does not match fetched items against existing records, so
    pulling the same data twice stores it twice. Neither direction
    retries, and a failed pull keeps the records inserted before the
    failure even though the result reports SyncFailed.
    """

    def __init__(self, collection: "Collection", config: KoraConfig) -> None:
        self._collection = collection
        self._timeout_seconds = config.sync_timeout_seconds
        self._push_method = config.sync_push_method
        self._endpoint: str | None = None
        self._transport: httpx.AsyncBaseTransport | None = None
        self._logger: Any = _LOGGER

    @property
    def endpoint(self) -> str | None:
        return self._endpoint

    @property
    def configured(self) -> bool:
        return self._endpoint is not None

    def configure(
        self,
        endpoint: str,
        logger: Any = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Set the remote endpoint used by pull and push.

        Args:
            endpoint: URL answering GET with a JSON array and accepting
                the same array shape on push.
            logger: Optional structured logger override.
            transport: Optional httpx transport, used to stub the remote.
        """
        self._endpoint = endpoint
        self._logger = logger or _LOGGER
        self._transport = transport

    async def pull(self) -> OperationResult:
        """Fetch remote items and insert each one as a new record.

        Returns:
            Envelope with the inserted records, or SyncFailed.
        """
        if self._endpoint is None:
            self._logger.error("sync_failed", direction="pull", error="no endpoint configured")
            return failure(Status.SYNC_FAILED)
        inserted: list[Record] = []
        try:
            items = await self._fetch_items(self._endpoint)
            for item in items:
                result = await self._collection.insert(item)
                if not result.ok:
                    raise KoraSyncError(
                        f"Insert of pulled item failed with status {result.code} "
                        f"after {len(inserted)} of {len(items)} items."
                    )
                inserted.append(result.data)
        except (httpx.HTTPError, httpx.InvalidURL, KoraSyncError) as error:
            self._logger.error(
                "sync_failed",
                direction="pull",
                endpoint=self._endpoint,
                applied=len(inserted),
                error=str(error),
            )
            return failure(Status.SYNC_FAILED)
        self._logger.info(
            "sync_pull_completed",
            collection=self._collection.name,
            endpoint=self._endpoint,
            record_count=len(inserted),
        )
        return success(inserted)

    async def push(self) -> OperationResult:
        """Send every record of the collection to the endpoint.

        Returns:
            Envelope with the pushed records, or SyncFailed.
        """
        if self._endpoint is None:
            self._logger.error("sync_failed", direction="push", error="no endpoint configured")
            return failure(Status.SYNC_FAILED)
        try:
            records = await self._collection.read_all()
            async with self._client() as client:
                response = await client.request(self._push_method, self._endpoint, json=records)
                response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as error:
            self._logger.error(
                "sync_failed",
                direction="push",
                endpoint=self._endpoint,
                error=str(error),
            )
            return failure(Status.SYNC_FAILED)
        self._logger.info(
            "sync_push_completed",
            collection=self._collection.name,
            endpoint=self._endpoint,
            record_count=len(records),
        )
        return success(records)

    async def _fetch_items(self, endpoint: str) -> list[Any]:
        """GET the endpoint and return its JSON array body.

        Raises:
            httpx.HTTPError: On transport failure or non-success status.
            httpx.InvalidURL: If the endpoint cannot be parsed.
            KoraSyncError: If the body is not a JSON array.
        """
        async with self._client() as client:
            response = await client.get(endpoint)
            response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as error:
            raise KoraSyncError(f"Response from {endpoint} is not valid JSON: {error}") from error
        if not isinstance(payload, list):
            raise KoraSyncError(
                f"Response from {endpoint} must be a JSON array, "
                f"got {type(payload).__name__}."
            )
        return payload

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout_seconds, transport=self._transport)
