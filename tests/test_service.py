"""
Tests for the Targetprocess REST client.

Uses httpx.MockTransport, so no network access is needed.
"""

import json
from collections.abc import Callable

import httpx
import pytest

from targetprocess_mcp.config import TargetProcessConfig
from targetprocess_mcp.errors import TargetProcessAPIError
from targetprocess_mcp.service import DEFAULT_ENTITY_TYPES, TargetProcessService, collection_name

Handler = Callable[[httpx.Request], httpx.Response]


def make_service(config: TargetProcessConfig, handler: Handler) -> TargetProcessService:
    return TargetProcessService(config, transport=httpx.MockTransport(handler))


class TestCollectionName:
    @pytest.mark.parametrize(
        ("entity_type", "expected"),
        [
            ("UserStory", "UserStories"),
            ("Bug", "Bugs"),
            ("Priority", "Priorities"),
            ("Process", "Processes"),
            ("General", "Generals"),
            ("Day", "Days"),
        ],
    )
    def test_pluralization(self, entity_type: str, expected: str) -> None:
        assert collection_name(entity_type) == expected


class TestRequests:
    """URL, parameter and error handling."""

    @pytest.mark.asyncio
    async def test_get_entity(self, config: TargetProcessConfig) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Id": 42, "Name": "Login page"})

        async with make_service(config, handler) as service:
            entity = await service.get_entity("UserStory", 42, include=["Project", "Team"])

        assert entity == {"Id": 42, "Name": "Login page"}
        request = seen[0]
        assert request.method == "GET"
        assert request.url.host == "example.tpondemand.com"
        assert request.url.path == "/api/v1/UserStories/42"
        assert request.url.params["access_token"] == "secret"
        assert request.url.params["format"] == "json"
        assert request.url.params["include"] == "[Project,Team]"

    @pytest.mark.asyncio
    async def test_search_entities(self, config: TargetProcessConfig) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Items": [{"Id": 1}, {"Id": 2}]})

        async with make_service(config, handler) as service:
            items = await service.search_entities(
                "Bug", where="EntityState.Name eq 'Open'", take=5, order_by=["CreateDate desc"]
            )

        assert items == [{"Id": 1}, {"Id": 2}]
        params = seen[0].url.params
        assert seen[0].url.path == "/api/v1/Bugs"
        assert params["where"] == "EntityState.Name eq 'Open'"
        assert params["take"] == "5"
        assert params["orderBy"] == "CreateDate desc"
        assert "include" not in params

    @pytest.mark.asyncio
    async def test_create_posts_json(self, config: TargetProcessConfig) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"Id": 100})

        async with make_service(config, handler) as service:
            created = await service.create_entity("Task", {"Name": "Write docs"})

        assert created == {"Id": 100}
        assert seen[0].method == "POST"
        assert seen[0].url.path == "/api/v1/Tasks"
        assert json.loads(seen[0].content) == {"Name": "Write docs"}

    @pytest.mark.asyncio
    async def test_error_status_raises_api_error(self, config: TargetProcessConfig) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400, json={"Status": "BadRequest", "Message": "Invalid where clause"}
            )

        async with make_service(config, handler) as service:
            with pytest.raises(TargetProcessAPIError) as exc_info:
                await service.search_entities("Bug", where="???")

        assert exc_info.value.status_code == 400
        assert "Invalid where clause" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_error_without_json_body(self, config: TargetProcessConfig) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="Service Unavailable")

        async with make_service(config, handler) as service:
            with pytest.raises(TargetProcessAPIError) as exc_info:
                await service.get_entity("Bug", 1)

        assert exc_info.value.status_code == 503
        assert "Service Unavailable" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_requires_open(self, config: TargetProcessConfig) -> None:
        service = TargetProcessService(config)

        with pytest.raises(RuntimeError, match="not open"):
            await service.get_entity("Bug", 1)


class TestEntityTypeCache:
    """Entity type validation before and after warm-up."""

    @pytest.mark.asyncio
    async def test_defaults_before_warmup(self, config: TargetProcessConfig) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            msg = "no request expected"
            raise AssertionError(msg)

        service = make_service(config, handler)

        assert not service.entity_type_cache_ready
        assert await service.validate_entity_type("UserStory") == "UserStory"
        assert await service.get_valid_entity_types() == sorted(DEFAULT_ENTITY_TYPES)
        with pytest.raises(ValueError, match="Invalid entity type: 'Widget'"):
            await service.validate_entity_type("Widget")

    @pytest.mark.asyncio
    async def test_warmup_adds_account_types(self, config: TargetProcessConfig) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"Items": [{"Id": 1, "Name": "Widget"}, {"Id": 2}]})

        async with make_service(config, handler) as service:
            types = await service.initialize_entity_type_cache()

            assert service.entity_type_cache_ready
            assert "Widget" in types
            assert "UserStory" in types
            assert await service.validate_entity_type("Widget") == "Widget"

        assert seen[0].url.path == "/api/v1/EntityTypes"

    @pytest.mark.asyncio
    async def test_invalid_type_never_hits_api(self, config: TargetProcessConfig) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            msg = "no request expected"
            raise AssertionError(msg)

        async with make_service(config, handler) as service:
            with pytest.raises(ValueError, match="Valid types"):
                await service.get_entity("Widget", 1)
