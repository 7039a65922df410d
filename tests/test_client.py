from __future__ import annotations

import json
from typing import Callable

import httpx
import pytest

from elevenlabs_ttm.client import ComposeMusicBuilder, MusicClient
from elevenlabs_ttm.config import Settings
from elevenlabs_ttm.errors import (
    ApiError,
    AuthenticationError,
    QuotaExceededError,
    RateLimitError,
    RequestError,
    ValidationError,
)
from elevenlabs_ttm.types import CompositionPlan, CompositionSection, PromptPlan

Handler = Callable[[httpx.Request], httpx.Response]

AUDIO = bytes(range(256)) * 40


def _client(handler: Handler, base_url: str = "https://api.test/v1") -> MusicClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return MusicClient("test-key", base_url, http_client=http)


def _recording(
    captured: list[httpx.Request],
    response: httpx.Response | None = None,
) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return response if response is not None else httpx.Response(200, content=AUDIO)

    return handler


@pytest.mark.asyncio
async def test_prompt_request_wire_format() -> None:
    captured: list[httpx.Request] = []
    client = _client(_recording(captured))

    audio = await client.compose_music(PromptPlan("test")).execute()

    assert audio == AUDIO
    assert len(audio) == len(AUDIO)
    (request,) = captured
    assert request.method == "POST"
    assert request.url.path == "/v1/music"
    assert request.url.params["output_format"] == "mp3_44100_128"
    assert request.headers["xi-api-key"] == "test-key"
    assert request.headers["content-type"] == "application/json"
    assert json.loads(request.content) == {"prompt": "test"}


@pytest.mark.asyncio
async def test_clamped_length_is_sent() -> None:
    captured: list[httpx.Request] = []
    client = _client(_recording(captured))

    await client.compose_music(PromptPlan("rain").with_music_length_ms(5_000)).execute()

    assert json.loads(captured[0].content) == {"prompt": "rain", "music_length_ms": 10_000}


@pytest.mark.asyncio
async def test_composition_request_wire_format() -> None:
    captured: list[httpx.Request] = []
    client = _client(_recording(captured))
    plan = CompositionPlan(
        positive_global_styles=["afrobeats", "guitar"],
        negative_global_styles=["trap"],
        sections=[
            CompositionSection("intro", ["afrobeats"], ["trap"], 2_000, []),
            CompositionSection("verse", ["guitar"], ["jazz"], 30_000, ["Step in the light"]),
        ],
    )

    await client.compose_music(plan).output_format("pcm_44100").model("music_v1").execute()

    request = captured[0]
    assert request.url.params["output_format"] == "pcm_44100"
    body = json.loads(request.content)
    assert body == {
        "composition_plan": {
            "positive_global_styles": ["afrobeats", "guitar"],
            "negative_global_styles": ["trap"],
            "sections": [
                {
                    "section_name": "intro",
                    "positive_local_styles": ["afrobeats"],
                    "negative_local_styles": ["trap"],
                    "duration_ms": 2_000,
                    "lines": [],
                },
                {
                    "section_name": "verse",
                    "positive_local_styles": ["guitar"],
                    "negative_local_styles": ["jazz"],
                    "duration_ms": 30_000,
                    "lines": ["Step in the light"],
                },
            ],
        }
    }
    assert "output_format" not in body
    assert "model_id" not in body


@pytest.mark.asyncio
async def test_base_url_trailing_slash() -> None:
    captured: list[httpx.Request] = []
    client = _client(_recording(captured), base_url="https://eu.api.test/v1/")

    await client.compose_music("ambient").execute()

    assert str(captured[0].url) == "https://eu.api.test/v1/music?output_format=mp3_44100_128"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "error_type"),
    [
        (401, AuthenticationError),
        (402, QuotaExceededError),
        (429, RateLimitError),
        (400, ApiError),
        (500, ApiError),
    ],
)
async def test_non_success_status_is_classified(status: int, error_type: type) -> None:
    response = httpx.Response(status, text='{"detail": "nope"}')
    client = _client(_recording([], response))

    with pytest.raises(error_type) as excinfo:
        await client.compose_music(PromptPlan("x")).execute()

    if error_type is ApiError:
        assert excinfo.value.status == status
        assert excinfo.value.message == '{"detail": "nope"}'
    if error_type is RateLimitError:
        assert excinfo.value.retry_after is None


@pytest.mark.asyncio
async def test_transport_failure_is_request_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection reset", request=request)

    client = _client(handler)

    with pytest.raises(RequestError) as excinfo:
        await client.compose_music(PromptPlan("x")).execute()

    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)
    assert excinfo.value.error is excinfo.value.__cause__


@pytest.mark.asyncio
async def test_no_retries_on_failure() -> None:
    captured: list[httpx.Request] = []
    client = _client(_recording(captured, httpx.Response(503, text="busy")))

    with pytest.raises(ApiError):
        await client.compose_music(PromptPlan("x")).execute()

    assert len(captured) == 1


def test_builder_setters_return_new_builders() -> None:
    client = MusicClient("k")
    base = client.compose_music(PromptPlan("x"))
    configured = base.output_format("opus_48000_96").model("music_v2")

    assert isinstance(configured, ComposeMusicBuilder)
    assert base.requested_output_format is None
    assert base.requested_model_id is None

    default_request = base.request()
    assert default_request.output_format == "mp3_44100_128"
    assert default_request.model_id == "music_v1"

    request = configured.request()
    assert request.output_format == "opus_48000_96"
    assert request.model_id == "music_v2"
    assert request.plan == PromptPlan("x")


def test_compose_music_accepts_text_and_rejects_other_types() -> None:
    client = MusicClient("k")
    assert client.compose_music("lofi").plan == PromptPlan("lofi")
    with pytest.raises(ValidationError):
        client.compose_music({"prompt": "x"})  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_injected_http_client_is_left_open() -> None:
    http = httpx.AsyncClient(transport=httpx.MockTransport(_recording([])))
    async with MusicClient("k", http_client=http) as client:
        await client.compose_music("x").execute()
    assert not http.is_closed
    await http.aclose()


@pytest.mark.asyncio
async def test_owned_http_client_is_closed_and_has_no_timeout() -> None:
    client = MusicClient("k")
    http = client._client()
    assert http.timeout == httpx.Timeout(None)

    await client.aclose()

    assert http.is_closed


@pytest.mark.asyncio
async def test_configured_timeout() -> None:
    client = MusicClient("k", timeout=30.0)
    assert client._client().timeout == httpx.Timeout(30.0)
    await client.aclose()


def test_from_settings() -> None:
    settings = Settings(
        ELEVENLABS_API_KEY="from-env",
        ELEVENLABS_BASE_URL="https://proxy.test/v1/",
        ELEVENLABS_TTM_TIMEOUT=12.5,
    )
    client = MusicClient.from_settings(settings)
    assert client.base_url == "https://proxy.test/v1"
    assert client._timeout == 12.5
    assert client._api_key == "from-env"


def test_with_base_url() -> None:
    client = MusicClient.with_base_url("k", "http://localhost:8080")
    assert client.base_url == "http://localhost:8080"
