"""
REST Repository - Remote HTTP Persistence Backend

🌐 Remote Resource Repository:
This module maps every repository operation onto exactly one HTTP request
against a resource endpoint fixed at construction time:

    create        POST    {base}          record data
    update        PUT     {base}/{id}     record data
    delete        DELETE  {base}/{id}
    find_by_id    GET     {base}/{id}
    find_one      GET     {base}          filter as query params, first result
    find_all      GET     {base}
    find          GET     {base}          filter, limit, offset, orderBy, order
    create_many   POST    {base}/bulk     list of record data
    update_many   PUT     {base}/bulk     list of {"id", "data"}
    delete_many   DELETE  {base}/bulk     list of ids

A 404 on an item URL is the not-found signal. Any other non-2xx status or
transport error raises BackendFailure. Retries, auth and timeouts belong to
the ``httpx.AsyncClient``; this layer never retries. Transactions are not
supported over HTTP.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Type
import logging

import httpx
from pydantic import ValidationError
from pydantic_core import to_jsonable_python

from .interface import Filter, FindOptions, UpdateSpec, RecordT, as_record_update
from .base import BaseRepository, BackendFailure, UnsupportedOperation

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class RestRepository(BaseRepository[RecordT]):
    """
    Repository backed by a remote REST resource.

    Args:
        record_type: Record type used to decode responses
        base_url: Resource URL, e.g. ``https://api.example.com/users``
        client: Optional pre-configured client; when omitted the repository
            creates one and closes it in ``close()``
        timeout: Timeout for a client created by the repository
    """

    def __init__(self, record_type: Type[RecordT], base_url: str,
                 client: Optional[httpx.AsyncClient] = None,
                 timeout: float = DEFAULT_TIMEOUT):
        super().__init__(record_type)
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    def _item_url(self, record_id: str) -> str:
        return f"{self.base_url}/{record_id}"

    @property
    def _bulk_url(self) -> str:
        return f"{self.base_url}/bulk"

    async def _send(self, method: str, url: str, *, json: Any = None,
                    params: Optional[Dict[str, Any]] = None,
                    allow_not_found: bool = False) -> Optional[httpx.Response]:
        """
        Issue one request.

        Returns:
            The response, or None for a tolerated 404
        """
        self._logger.debug(f"{method} {url} params={params}")
        try:
            response = await self.client.request(method, url, json=json, params=params)
        except httpx.HTTPError as e:
            self._logger.error(f"{method} {url} failed: {e}")
            raise BackendFailure(f"{method} {url} failed: {e}") from e

        if allow_not_found and response.status_code == 404:
            return None
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self._logger.error(f"{method} {url} returned {response.status_code}")
            raise BackendFailure(
                f"{method} {url} returned {response.status_code}",
                status_code=response.status_code
            ) from e
        return response

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise BackendFailure(f"Invalid JSON from {response.request.url}") from e

    def _decode(self, payload: Any) -> Optional[RecordT]:
        if payload is None:
            return None
        try:
            return self.record_type.model_validate(payload)
        except ValidationError as e:
            raise BackendFailure(f"Unexpected {self.record_type.__name__} payload: {e}") from e

    def _decode_list(self, response: httpx.Response) -> List[Optional[RecordT]]:
        payload = self._json(response)
        if not isinstance(payload, list):
            raise BackendFailure(f"Expected a JSON array from {response.request.url}")
        return [self._decode(item) for item in payload]

    def _encode(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """JSON-ready body; a null id is left for the server to assign"""
        body = {key: value for key, value in data.items() if not (key == "id" and value is None)}
        return to_jsonable_python(body)

    @staticmethod
    def _query_params(filters: Optional[Filter], options: Optional[FindOptions] = None) -> Dict[str, Any]:
        params = dict(filters or {})
        if options is not None:
            if options.limit is not None:
                params["limit"] = options.limit
            if options.offset is not None:
                params["offset"] = options.offset
            if options.order_by is not None:
                params["orderBy"] = options.order_by.field
                params["order"] = options.order_by.direction.value
        return params

    # Core CRUD operations
    async def create(self, data: Mapping[str, Any]) -> RecordT:
        response = await self._send("POST", self.base_url, json=self._encode(data))
        return self._decode(self._json(response))

    async def update(self, record_id: str, data: Mapping[str, Any]) -> Optional[RecordT]:
        response = await self._send("PUT", self._item_url(record_id), json=self._encode(data),
                                    allow_not_found=True)
        if response is None:
            return None
        return self._decode(self._json(response))

    async def delete(self, record_id: str) -> None:
        await self._send("DELETE", self._item_url(record_id), allow_not_found=True)

    async def find_by_id(self, record_id: str) -> Optional[RecordT]:
        response = await self._send("GET", self._item_url(record_id), allow_not_found=True)
        if response is None:
            return None
        return self._decode(self._json(response))

    # Query operations
    async def find_one(self, filters: Filter) -> Optional[RecordT]:
        response = await self._send("GET", self.base_url, params=self._query_params(filters))
        results = self._decode_list(response)
        return results[0] if results else None

    async def find_all(self) -> List[RecordT]:
        response = await self._send("GET", self.base_url)
        return self._decode_list(response)

    async def find(self, filters: Optional[Filter] = None,
                   options: Optional[FindOptions] = None) -> List[RecordT]:
        response = await self._send("GET", self.base_url, params=self._query_params(filters, options))
        return self._decode_list(response)

    # Batch operations map onto the resource's bulk endpoint
    async def create_many(self, items: Sequence[Mapping[str, Any]]) -> List[RecordT]:
        response = await self._send("POST", self._bulk_url, json=[self._encode(item) for item in items])
        return self._decode_list(response)

    async def update_many(self, updates: Sequence[UpdateSpec]) -> List[Optional[RecordT]]:
        body = []
        for item in updates:
            change = as_record_update(item)
            body.append({"id": change.id, "data": self._encode(change.data)})
        response = await self._send("PUT", self._bulk_url, json=body)
        return self._decode_list(response)

    async def delete_many(self, record_ids: Sequence[str]) -> None:
        await self._send("DELETE", self._bulk_url, json=list(record_ids))

    # Transaction operations
    async def begin_transaction(self) -> None:
        raise UnsupportedOperation("Transactions are not supported by the REST backend")

    async def commit_transaction(self) -> None:
        raise UnsupportedOperation("Transactions are not supported by the REST backend")

    async def rollback_transaction(self) -> None:
        raise UnsupportedOperation("Transactions are not supported by the REST backend")

    async def close(self) -> None:
        """Close the HTTP client if this repository created it"""
        if self._owns_client:
            await self.client.aclose()


__all__ = ["RestRepository", "DEFAULT_TIMEOUT"]
