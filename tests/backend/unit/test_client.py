import asyncio
import json

import httpx
import pytest

from encounterbuilder.backend.client import GenerationClient
from encounterbuilder.backend.errors import (
    GenerationRejected,
    GenerationTimeout,
    GenerationTransportError,
)
from encounterbuilder.backend.schemas import CombatRequest, ResearchRequest

COMBAT_REQUEST = CombatRequest(party_level=3, party_size=4, difficulty="severe", terrain="forest")
RESEARCH_REQUEST = ResearchRequest(party_level=4, context="The sealed archive")


def _client(handler, **kwargs) -> GenerationClient:
    return GenerationClient("http://generator.test/", transport=httpx.MockTransport(handler), **kwargs)


def test_generate_posts_wire_body_and_returns_text_payload() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "payload": "## 0. Title\nGoblins"})

    payload = asyncio.run(_client(handler).generate(COMBAT_REQUEST))

    assert payload == "## 0. Title\nGoblins"
    assert seen["method"] == "POST"
    assert seen["path"] == "/encounter"
    assert seen["body"] == {
        "partyLevel": 3,
        "partySize": 4,
        "difficulty": "severe",
        "terrain": "forest",
        "includeTraits": [],
        "excludeTraits": [],
    }


def test_generate_returns_structured_payload_unchanged() -> None:
    structured = {"name": "Archive", "researchPoints": 20, "library": [{"name": "Stacks"}]}

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/research"
        return httpx.Response(200, json={"success": True, "payload": structured})

    assert asyncio.run(_client(handler).generate(RESEARCH_REQUEST)) == structured


def test_generate_accepts_legacy_payload_key() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "encounter": {"name": "Legacy"}})

    assert asyncio.run(_client(handler).generate(RESEARCH_REQUEST)) == {"name": "Legacy"}


def test_deadlines_follow_iteration_count() -> None:
    client = GenerationClient("http://generator.test")

    assert client.deadline_for(COMBAT_REQUEST) == 120.0
    assert client.deadline_for(RESEARCH_REQUEST) == 300.0


def test_generate_classifies_deadline_expiry_as_timeout() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200, json={"success": True, "payload": {}})

    client = _client(handler, deadlines={"research": 0.05})

    with pytest.raises(GenerationTimeout) as exc_info:
        asyncio.run(client.generate(RESEARCH_REQUEST))

    assert exc_info.value.deadline_s == 0.05
    assert not isinstance(exc_info.value, GenerationTransportError)


def test_generate_classifies_http_timeout_as_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(GenerationTimeout):
        asyncio.run(_client(handler).generate(COMBAT_REQUEST))


def test_generate_classifies_unreachable_service_as_transport() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GenerationTransportError) as exc_info:
        asyncio.run(_client(handler).generate(COMBAT_REQUEST))

    assert exc_info.value.status is None


def test_generate_classifies_error_status_as_transport_with_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"success": False, "error": "overloaded"})

    with pytest.raises(GenerationTransportError) as exc_info:
        asyncio.run(_client(handler).generate(COMBAT_REQUEST))

    assert exc_info.value.status == 503
    assert "503" in exc_info.value.message


def test_generate_classifies_malformed_body_as_transport() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>proxy error</html>")

    with pytest.raises(GenerationTransportError) as exc_info:
        asyncio.run(_client(handler).generate(COMBAT_REQUEST))

    assert exc_info.value.status == 200


def test_generate_surfaces_service_error_as_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "error": "No creatures match the traits"})

    with pytest.raises(GenerationRejected) as exc_info:
        asyncio.run(_client(handler).generate(COMBAT_REQUEST))

    assert exc_info.value.message == "No creatures match the traits"


def test_generate_uses_unknown_error_when_service_omits_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False})

    with pytest.raises(GenerationRejected) as exc_info:
        asyncio.run(_client(handler).generate(COMBAT_REQUEST))

    assert exc_info.value.message == "Unknown error"


def test_generate_rejects_success_without_payload() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True})

    with pytest.raises(GenerationRejected):
        asyncio.run(_client(handler).generate(COMBAT_REQUEST))
