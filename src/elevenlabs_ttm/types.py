"""Music plans and their wire format.

A request carries exactly one plan: either a short text prompt
(`PromptPlan`) or a structured, multi-section `CompositionPlan`. The two
serialize to different JSON shapes with no type tag; the API tells them
apart by shape, so `plan_to_body` builds each shape explicitly.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from typing import Any, Union

from elevenlabs_ttm.errors import ParseError, ValidationError

MIN_MUSIC_LENGTH_MS = 10_000
MAX_MUSIC_LENGTH_MS = 300_000

# Documented by the API but only checked by validate_plan().
MIN_SECTION_DURATION_MS = 3_000
MAX_SECTION_DURATION_MS = 120_000
MAX_SECTION_NAME_LENGTH = 100


def clamp_music_length_ms(length_ms: int) -> int:
    return max(MIN_MUSIC_LENGTH_MS, min(length_ms, MAX_MUSIC_LENGTH_MS))


@dataclass(frozen=True)
class PromptPlan:
    """A simple text prompt to generate a song from.

    Attributes:
        prompt: Free-text description of the music.
        music_length_ms: Target length. None lets the model pick a length
            from the prompt.
    """

    prompt: str
    music_length_ms: int | None = None

    def with_music_length_ms(self, length_ms: int) -> "PromptPlan":
        """Return a copy with the length clamped into [10000, 300000] ms."""
        return replace(self, music_length_ms=clamp_music_length_ms(length_ms))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"prompt": self.prompt}
        if self.music_length_ms is not None:
            data["music_length_ms"] = self.music_length_ms
        return data


@dataclass(frozen=True)
class CompositionSection:
    """One section of a composition plan (verse, chorus, ...).

    Sequence fields are stored as tuples; their order is kept as given.
    """

    section_name: str
    positive_local_styles: tuple[str, ...]
    negative_local_styles: tuple[str, ...]
    duration_ms: int
    lines: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "positive_local_styles", tuple(self.positive_local_styles))
        object.__setattr__(self, "negative_local_styles", tuple(self.negative_local_styles))
        object.__setattr__(self, "lines", tuple(self.lines))

    def to_dict(self) -> dict[str, Any]:
        return {
            "section_name": self.section_name,
            "positive_local_styles": list(self.positive_local_styles),
            "negative_local_styles": list(self.negative_local_styles),
            "duration_ms": self.duration_ms,
            "lines": list(self.lines),
        }


@dataclass(frozen=True)
class CompositionPlan:
    """Global styles plus an ordered list of sections.

    Section order defines the song structure.
    """

    positive_global_styles: tuple[str, ...] = ()
    negative_global_styles: tuple[str, ...] = ()
    sections: tuple[CompositionSection, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "positive_global_styles", tuple(self.positive_global_styles))
        object.__setattr__(self, "negative_global_styles", tuple(self.negative_global_styles))
        object.__setattr__(self, "sections", tuple(self.sections))

    @property
    def total_duration_ms(self) -> int:
        """Sum of the section durations."""
        return sum(s.duration_ms for s in self.sections)

    def to_dict(self) -> dict[str, Any]:
        return {
            "positive_global_styles": list(self.positive_global_styles),
            "negative_global_styles": list(self.negative_global_styles),
            "sections": [s.to_dict() for s in self.sections],
        }


MusicPlan = Union[PromptPlan, CompositionPlan]


@dataclass(frozen=True)
class MusicRequest:
    """A finalized request, built by ComposeMusicBuilder.

    `output_format` travels in the query string and never in the body.
    """

    plan: MusicPlan
    output_format: str
    model_id: str

    def body(self) -> dict[str, Any]:
        return plan_to_body(self.plan)


def plan_to_body(plan: MusicPlan) -> dict[str, Any]:
    """Serialize a plan to the JSON body of the music endpoint.

    PromptPlan  -> {"prompt": ..., "music_length_ms"?: ...}
    CompositionPlan -> {"composition_plan": {...}}
    """
    if isinstance(plan, PromptPlan):
        return plan.to_dict()
    if isinstance(plan, CompositionPlan):
        return {"composition_plan": plan.to_dict()}
    raise ValidationError(f"Unsupported plan type: {type(plan).__name__}")


def _str_list(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"'{key}' must be a list of strings")
    return value


def _int_field(data: dict[str, Any], key: str) -> int:
    value = data.get(key)
    # bool is an int subclass; reject it explicitly.
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"'{key}' must be an integer")
    return value


def _section_from_dict(data: Any) -> CompositionSection:
    if not isinstance(data, dict):
        raise ValidationError("Each section must be an object")
    name = data.get("section_name")
    if not isinstance(name, str):
        raise ValidationError("'section_name' must be a string")
    return CompositionSection(
        section_name=name,
        positive_local_styles=_str_list(data, "positive_local_styles"),
        negative_local_styles=_str_list(data, "negative_local_styles"),
        duration_ms=_int_field(data, "duration_ms"),
        lines=_str_list(data, "lines"),
    )


def plan_from_dict(data: Any) -> MusicPlan:
    """Build a plan from a wire-shaped dict.

    A `composition_plan` key selects CompositionPlan, a `prompt` key selects
    PromptPlan. A bare composition object (with `sections`) is accepted too.
    The prompt length goes through the same clamp as the setter.
    """
    if not isinstance(data, dict):
        raise ValidationError("Plan must be a JSON object")

    if "composition_plan" in data or "sections" in data:
        if "prompt" in data:
            raise ValidationError("Use either 'prompt' or 'composition_plan', not both")
        comp = data.get("composition_plan", data)
        if not isinstance(comp, dict):
            raise ValidationError("'composition_plan' must be an object")
        sections = comp.get("sections", [])
        if not isinstance(sections, list):
            raise ValidationError("'sections' must be a list")
        return CompositionPlan(
            positive_global_styles=_str_list(comp, "positive_global_styles"),
            negative_global_styles=_str_list(comp, "negative_global_styles"),
            sections=[_section_from_dict(s) for s in sections],
        )

    if "prompt" in data:
        prompt = data["prompt"]
        if not isinstance(prompt, str):
            raise ValidationError("'prompt' must be a string")
        plan = PromptPlan(prompt)
        if data.get("music_length_ms") is not None:
            plan = plan.with_music_length_ms(_int_field(data, "music_length_ms"))
        return plan

    raise ValidationError("Plan needs a 'prompt' or a 'composition_plan'")


def plan_from_json(text: str | bytes) -> MusicPlan:
    """Decode a plan from JSON text or UTF-8 bytes.

    Raises:
        ParseError: The input is not valid JSON (or not valid UTF-8).
        ValidationError: The JSON does not describe a plan.
    """
    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        raise ParseError(e) from e
    return plan_from_dict(data)


def validate_plan(plan: MusicPlan) -> None:
    """Check a plan against the API's documented bounds.

    Opt-in: the client sends plans as given and leaves these checks to
    the server unless the caller runs this first.
    """
    problems: list[str] = []

    if isinstance(plan, PromptPlan):
        if not plan.prompt.strip():
            problems.append("prompt is empty")
        length = plan.music_length_ms
        if length is not None and not MIN_MUSIC_LENGTH_MS <= length <= MAX_MUSIC_LENGTH_MS:
            problems.append(
                f"music_length_ms={length} outside "
                f"[{MIN_MUSIC_LENGTH_MS}, {MAX_MUSIC_LENGTH_MS}]"
            )
    elif isinstance(plan, CompositionPlan):
        if not plan.sections:
            problems.append("composition plan has no sections")
        for i, section in enumerate(plan.sections, start=1):
            label = f"section #{i} ({section.section_name!r})"
            if not 1 <= len(section.section_name) <= MAX_SECTION_NAME_LENGTH:
                problems.append(
                    f"{label} name must be 1-{MAX_SECTION_NAME_LENGTH} characters"
                )
            if not MIN_SECTION_DURATION_MS <= section.duration_ms <= MAX_SECTION_DURATION_MS:
                problems.append(
                    f"{label} duration_ms={section.duration_ms} outside "
                    f"[{MIN_SECTION_DURATION_MS}, {MAX_SECTION_DURATION_MS}]"
                )
    else:
        problems.append(f"unsupported plan type {type(plan).__name__}")

    if problems:
        raise ValidationError("; ".join(problems))
