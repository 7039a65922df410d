"""Async client for the ElevenLabs text-to-music endpoint.

Usage:

    async with MusicClient(api_key) as client:
        plan = PromptPlan("energetic house with tribal percussion")
        audio = await client.compose_music(plan).output_format("mp3_44100_192").execute()

`audio` is the raw response body; the client never decodes it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from types import TracebackType

import httpx

from elevenlabs_ttm.config import DEFAULT_BASE_URL, Settings, get_settings
from elevenlabs_ttm.errors import (
    ValidationError,
    classify_response,
    classify_transport_error,
)
from elevenlabs_ttm.models import DEFAULT_MODEL_ID, DEFAULT_OUTPUT_FORMAT
from elevenlabs_ttm.types import CompositionPlan, MusicPlan, MusicRequest, PromptPlan

logger = logging.getLogger(__name__)


class MusicClient:
    """Holds the API key, base URL and a long-lived httpx.AsyncClient.

    Safe to share between concurrent tasks: its own state never changes
    after construction. No retries and, unless `timeout` is given, no
    deadline; callers that need bounded latency must impose their own.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        # An injected client belongs to the caller and is not closed here.
        self._owns_http = http_client is None
        self._http = http_client

    @classmethod
    def with_base_url(cls, api_key: str, base_url: str) -> "MusicClient":
        """Create a client against a custom base URL (testing/enterprise)."""
        return cls(api_key, base_url)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "MusicClient":
        """Create a client from ELEVENLABS_* environment settings."""
        s = settings or get_settings()
        return cls(s.elevenlabs_api_key, s.elevenlabs_base_url, timeout=s.timeout_s)

    @property
    def base_url(self) -> str:
        return self._base_url

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._timeout)
        return self._http

    def _headers(self) -> dict[str, str]:
        return {
            "xi-api-key": self._api_key,
            "Content-Type": "application/json",
        }

    def compose_music(self, plan: MusicPlan | str) -> "ComposeMusicBuilder":
        """Start building a compose request.

        A bare string is taken as a PromptPlan.
        """
        if isinstance(plan, str):
            plan = PromptPlan(plan)
        if not isinstance(plan, (PromptPlan, CompositionPlan)):
            raise ValidationError(f"Unsupported plan type: {type(plan).__name__}")
        return ComposeMusicBuilder(client=self, plan=plan)

    async def execute_request(self, request: MusicRequest) -> bytes:
        """Send one request and return the audio bytes.

        Raises:
            AuthenticationError, RateLimitError, QuotaExceededError, ApiError:
                The API answered with a non-2xx status.
            RequestError: No response was received.
        """
        url = f"{self._base_url}/music"
        body = request.body()
        kind = "composition" if isinstance(request.plan, CompositionPlan) else "prompt"
        logger.debug(
            f"POST {url} ({kind} plan, output_format={request.output_format}, "
            f"model_id={request.model_id})"
        )

        try:
            response = await self._client().post(
                url,
                params={"output_format": request.output_format},
                headers=self._headers(),
                json=body,
            )
        except httpx.HTTPError as e:
            logger.warning(f"Music request failed before a response: {e}")
            raise classify_transport_error(e) from e

        if not response.is_success:
            error = classify_response(response.status_code, response.text)
            logger.warning(f"Music request rejected ({response.status_code}): {error}")
            raise error

        audio = response.content
        logger.info(f"Received {len(audio)} bytes of {request.output_format} audio")
        return audio

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this object created it."""
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> "MusicClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


@dataclass(frozen=True)
class ComposeMusicBuilder:
    """Per-request settings layered on top of a plan.

    Setters return a new builder and leave this one untouched. Defaults
    (mp3_44100_128, music_v1) are applied when the request is built.
    """

    client: MusicClient
    plan: MusicPlan
    requested_output_format: str | None = None
    requested_model_id: str | None = None

    def output_format(self, output_format: str) -> "ComposeMusicBuilder":
        """Output format, as codec_samplerate_bitrate (e.g. mp3_22050_32).

        Sent as the `output_format` query parameter, not in the body.
        """
        return replace(self, requested_output_format=output_format)

    def model(self, model_id: str) -> "ComposeMusicBuilder":
        """Model to use for the generation (only music_v1 exists)."""
        return replace(self, requested_model_id=model_id)

    def request(self) -> MusicRequest:
        """Build the request with defaults filled in."""
        return MusicRequest(
            plan=self.plan,
            output_format=self.requested_output_format or DEFAULT_OUTPUT_FORMAT,
            model_id=self.requested_model_id or DEFAULT_MODEL_ID,
        )

    async def execute(self) -> bytes:
        """Send the request and return the raw audio bytes."""
        return await self.client.execute_request(self.request())
