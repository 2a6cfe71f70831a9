"""Targetprocess REST API (v1) client.

One ``TargetProcessService`` is created per server and shared by every tool.
It owns the HTTP connection pool and the entity-type cache.

Lifecycle:
    service = TargetProcessService(config)
    await service.open()
    await service.initialize_entity_type_cache()  # optional, normally in background
    ...
    await service.close()

Until the cache is populated, entity types are checked against
``DEFAULT_ENTITY_TYPES`` so that early requests still work.
"""

import logging
from typing import Any

import httpx

from targetprocess_mcp.config import TargetProcessConfig
from targetprocess_mcp.errors import TargetProcessAPIError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0

DEFAULT_ENTITY_TYPES = (
    "General",
    "Assignable",
    "UserStory",
    "Bug",
    "Task",
    "Feature",
    "Epic",
    "PortfolioEpic",
    "Request",
    "TestCase",
    "TestPlan",
    "Impediment",
    "Release",
    "Iteration",
    "TeamIteration",
    "Project",
    "Program",
    "Team",
    "GeneralUser",
    "User",
    "Role",
    "EntityState",
    "Priority",
    "Comment",
    "Time",
)


def collection_name(entity_type: str) -> str:
    """Resource collection for an entity type (``UserStory`` -> ``UserStories``)."""
    if entity_type.endswith("y") and entity_type[-2:-1].lower() not in "aeiou":
        return entity_type[:-1] + "ies"
    if entity_type.endswith(("s", "x", "ch", "sh")):
        return entity_type + "es"
    return entity_type + "s"


class TargetProcessService:
    """Async client for a single Targetprocess account.

    Attributes:
        config: Connection configuration
        base_url: API root, ``https://<domain>/api/v1``
    """

    def __init__(
        self,
        config: TargetProcessConfig,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the service. No connection is made until ``open()``.

        Args:
            config: Connection configuration
            timeout_seconds: Per-request timeout
            transport: Optional custom httpx transport (used by tests)
        """
        self.config = config
        domain = config.domain.rstrip("/")
        if not domain.startswith(("http://", "https://")):
            domain = f"https://{domain}"
        self.base_url = f"{domain}/api/v1"
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._entity_types: frozenset[str] | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_seconds,
            transport=self._transport,
            headers={"Accept": "application/json"},
        )
        logger.debug("Opened Targetprocess client for %s", self.base_url)

    async def close(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.aclose()
        logger.debug("Closed Targetprocess client")

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def __aenter__(self) -> "TargetProcessService":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        if self._client is None:
            msg = "Targetprocess service is not open"
            raise RuntimeError(msg)

        query = {"format": "json", "access_token": self.config.credentials.token}
        if params:
            query.update({k: v for k, v in params.items() if v is not None})

        response = await self._client.request(method, path, params=query, json=json)
        if response.is_error:
            raise TargetProcessAPIError(_error_detail(response), status_code=response.status_code)
        if not response.content:
            return None
        return response.json()

    # ------------------------------------------------------------------
    # Entity types
    # ------------------------------------------------------------------

    @property
    def entity_type_cache_ready(self) -> bool:
        return self._entity_types is not None

    async def initialize_entity_type_cache(self) -> list[str]:
        """Fetch the account's entity types and cache them.

        Returns:
            Sorted entity type names
        """
        data = await self._request("GET", "/EntityTypes", params={"take": 1000})
        names = {item["Name"] for item in (data or {}).get("Items", []) if item.get("Name")}
        # Accounts may hide base types from EntityTypes
        names.update(DEFAULT_ENTITY_TYPES)
        self._entity_types = frozenset(names)
        logger.info("Entity type cache initialized with %s types", len(self._entity_types))
        return sorted(self._entity_types)

    async def get_valid_entity_types(self) -> list[str]:
        if self._entity_types is None:
            return sorted(DEFAULT_ENTITY_TYPES)
        return sorted(self._entity_types)

    async def validate_entity_type(self, entity_type: str) -> str:
        """Return the entity type if known, else raise ``ValueError``."""
        valid = await self.get_valid_entity_types()
        if entity_type not in valid:
            msg = f"Invalid entity type: '{entity_type}'. Valid types: {', '.join(valid)}"
            raise ValueError(msg)
        return entity_type

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------

    async def search_entities(
        self,
        entity_type: str,
        where: str | None = None,
        include: list[str] | None = None,
        take: int = 100,
        order_by: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        await self.validate_entity_type(entity_type)
        params: dict[str, Any] = {"take": take, "where": where}
        if include:
            params["include"] = _include_clause(include)
        if order_by:
            params["orderBy"] = ",".join(order_by)
        data = await self._request("GET", f"/{collection_name(entity_type)}", params=params)
        return (data or {}).get("Items", [])

    async def get_entity(
        self,
        entity_type: str,
        entity_id: int,
        include: list[str] | None = None,
    ) -> dict[str, Any]:
        await self.validate_entity_type(entity_type)
        params = {"include": _include_clause(include)} if include else None
        return await self._request(
            "GET", f"/{collection_name(entity_type)}/{entity_id}", params=params
        )

    async def create_entity(self, entity_type: str, data: dict[str, Any]) -> dict[str, Any]:
        await self.validate_entity_type(entity_type)
        return await self._request("POST", f"/{collection_name(entity_type)}", json=data)

    async def update_entity(
        self, entity_type: str, entity_id: int, data: dict[str, Any]
    ) -> dict[str, Any]:
        await self.validate_entity_type(entity_type)
        return await self._request(
            "POST", f"/{collection_name(entity_type)}/{entity_id}", json=data
        )

    async def get_entity_metadata(self, entity_type: str) -> dict[str, Any]:
        """Resource metadata (properties, collections) for an entity type."""
        await self.validate_entity_type(entity_type)
        return await self._request("GET", f"/{collection_name(entity_type)}/meta")


def _include_clause(fields: list[str]) -> str:
    return f"[{','.join(fields)}]"


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("Message") or body.get("message")
        if message:
            return f"{response.status_code} {message}"
    text = response.text.strip()
    return f"{response.status_code} {text[:500] or response.reason_phrase}"


__all__ = [
    "DEFAULT_ENTITY_TYPES",
    "TargetProcessService",
    "collection_name",
]
