"""Async client for the ElevenLabs text-to-music API."""

from elevenlabs_ttm.client import ComposeMusicBuilder, MusicClient
from elevenlabs_ttm.errors import (
    ApiError,
    AuthenticationError,
    ElevenLabsTTMError,
    ParseError,
    QuotaExceededError,
    RateLimitError,
    RequestError,
    ValidationError,
)
from elevenlabs_ttm.models import DEFAULT_OUTPUT_FORMAT, MUSIC_V1, OUTPUT_FORMATS
from elevenlabs_ttm.types import (
    CompositionPlan,
    CompositionSection,
    MusicPlan,
    MusicRequest,
    PromptPlan,
    plan_from_json,
    plan_to_body,
    validate_plan,
)

__all__ = [
    "ApiError",
    "AuthenticationError",
    "ComposeMusicBuilder",
    "CompositionPlan",
    "CompositionSection",
    "DEFAULT_OUTPUT_FORMAT",
    "ElevenLabsTTMError",
    "MUSIC_V1",
    "MusicClient",
    "MusicPlan",
    "MusicRequest",
    "OUTPUT_FORMATS",
    "ParseError",
    "PromptPlan",
    "QuotaExceededError",
    "RateLimitError",
    "RequestError",
    "ValidationError",
    "plan_from_json",
    "plan_to_body",
    "validate_plan",
]
