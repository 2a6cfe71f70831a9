"""Shared fixtures for Target Process MCP server tests."""

import asyncio
from typing import Any

import pytest

from targetprocess_mcp.config import Credentials, TargetProcessConfig
from targetprocess_mcp.server import TargetProcessServer

RECORD = {
    "Id": 42,
    "Name": "Login page",
    "ResourceType": "UserStory",
    "Project": {"Id": 7, "Name": "Web"},
}


class FakeService:
    """In-memory stand-in for TargetProcessService."""

    def __init__(
        self,
        record: dict[str, Any] | None = None,
        warm_error: Exception | None = None,
        warm_gate: asyncio.Event | None = None,
    ) -> None:
        self.record = record if record is not None else dict(RECORD)
        self.warm_error = warm_error
        self.warm_gate = warm_gate
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.opened = False
        self.closed = False
        self.metadata: dict[str, Any] = {
            "Description": "User story",
            "ResourceMetadataPropertiesDescription": {
                "ResourceMetadataPropertiesResourceValuesDescription": {
                    "Items": [
                        {"Name": "Name", "Type": "String", "CanSet": True},
                        {"Name": "Effort", "Type": "Decimal", "CanSet": True},
                    ]
                },
                "ResourceMetadataPropertiesResourceReferencesDescription": {
                    "Items": [{"Name": "Project", "Type": "Project", "CanSet": True}]
                },
            },
        }

    def _record(self, *call: Any) -> None:
        self.calls.append(call)
        error = self.errors.get(call[0])
        if error is not None:
            raise error

    async def open(self) -> None:
        self.opened = True

    async def close(self) -> None:
        self.closed = True

    async def initialize_entity_type_cache(self) -> list[str]:
        if self.warm_gate is not None:
            await self.warm_gate.wait()
        if self.warm_error is not None:
            raise self.warm_error
        return ["Bug", "UserStory"]

    async def search_entities(
        self,
        entity_type: str,
        where: str | None = None,
        include: list[str] | None = None,
        take: int = 100,
        order_by: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        self._record("search_entities", entity_type, where, include, take, order_by)
        return [self.record]

    async def get_entity(
        self, entity_type: str, entity_id: int, include: list[str] | None = None
    ) -> dict[str, Any]:
        self._record("get_entity", entity_type, entity_id, include)
        return self.record

    async def create_entity(self, entity_type: str, data: dict[str, Any]) -> dict[str, Any]:
        self._record("create_entity", entity_type, data)
        return {"Id": 100, **data}

    async def update_entity(
        self, entity_type: str, entity_id: int, data: dict[str, Any]
    ) -> dict[str, Any]:
        self._record("update_entity", entity_type, entity_id, data)
        return {"Id": entity_id, **data}

    async def get_valid_entity_types(self) -> list[str]:
        self._record("get_valid_entity_types")
        return ["Bug", "UserStory"]

    async def get_entity_metadata(self, entity_type: str) -> dict[str, Any]:
        self._record("get_entity_metadata", entity_type)
        return self.metadata


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make sure no real credentials leak into tests."""
    monkeypatch.delenv("TP_DOMAIN", raising=False)
    monkeypatch.delenv("TP_TOKEN", raising=False)


@pytest.fixture
def config() -> TargetProcessConfig:
    return TargetProcessConfig(
        domain="example.tpondemand.com", credentials=Credentials(token="secret")
    )


@pytest.fixture
def fake_service() -> FakeService:
    return FakeService()


@pytest.fixture
def server(config: TargetProcessConfig, fake_service: FakeService) -> TargetProcessServer:
    return TargetProcessServer(config, service=fake_service)
