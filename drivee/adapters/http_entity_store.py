"""
REST client for the hosted entity store.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Mapping

import requests

from ..domain.exceptions import EntityStoreError

logger = logging.getLogger(__name__)


class HttpEntityStore:
    """
    Client for the entity store's REST API.

    Each entity type lives under ``{base_url}/entities/{Entity}``. Calls are
    blocking ``requests`` calls run in a worker thread so the async service
    layer never stalls on network I/O.
    """

    def __init__(self, base_url: str, api_key: str = "", timeout: float = 30):
        """
        Initialize the store client.

        Args:
            base_url: Root URL of the store API
            api_key: Tenant API key sent as a bearer token
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json"}
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"

    async def list(
        self,
        entity: str,
        sort: str | None = None,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        """Return all records of an entity type."""
        params = self._query_params(sort=sort, limit=limit)
        return await asyncio.to_thread(self._request, "GET", self._url(entity), params=params)

    async def filter(
        self,
        entity: str,
        criteria: Mapping[str, Any],
        sort: str | None = None,
        limit: int | None = None,
    ) -> List[Dict[str, Any]]:
        """Return records whose fields equal every value in ``criteria``."""
        params = self._query_params(sort=sort, limit=limit)
        params["q"] = json.dumps(dict(criteria))
        return await asyncio.to_thread(self._request, "GET", self._url(entity), params=params)

    async def create(self, entity: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Create a record and return it as stored."""
        return await asyncio.to_thread(
            self._request, "POST", self._url(entity), payload=dict(fields)
        )

    async def update(
        self,
        entity: str,
        record_id: str,
        fields: Mapping[str, Any],
    ) -> Dict[str, Any]:
        """Update fields on a record and return it as stored."""
        return await asyncio.to_thread(
            self._request, "PUT", f"{self._url(entity)}/{record_id}", payload=dict(fields)
        )

    def _url(self, entity: str) -> str:
        return f"{self.base_url}/entities/{entity}"

    @staticmethod
    def _query_params(sort: str | None, limit: int | None) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if sort:
            params["sort"] = sort
        if limit is not None:
            params["limit"] = limit
        return params

    def _request(
        self,
        method: str,
        url: str,
        params: Dict[str, Any] | None = None,
        payload: Dict[str, Any] | None = None,
    ) -> Any:
        """
        Perform one HTTP call and decode the JSON body.

        Raises:
            EntityStoreError: If the request fails or the body is not JSON
        """
        logger.debug("%s %s params=%s", method, url, params)

        try:
            response = requests.request(
                method,
                url,
                headers=self.headers,
                params=params,
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()

        except requests.exceptions.RequestException as e:
            raise EntityStoreError(f"Entity store request failed ({method} {url}): {e}") from e
        except ValueError as e:
            raise EntityStoreError(f"Entity store returned invalid JSON for {url}: {e}") from e
