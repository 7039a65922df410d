"""CLI interface for the text-to-music client."""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path

import typer
from pydantic import ValidationError as SettingsError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from elevenlabs_ttm.client import MusicClient
from elevenlabs_ttm.config import Settings, get_settings
from elevenlabs_ttm.errors import ElevenLabsTTMError
from elevenlabs_ttm.models import (
    DEFAULT_MODEL_ID,
    DEFAULT_OUTPUT_FORMAT,
    OUTPUT_FORMATS,
    file_extension,
)
from elevenlabs_ttm.types import (
    CompositionPlan,
    MusicPlan,
    PromptPlan,
    plan_from_json,
    plan_to_body,
    validate_plan,
)

app = typer.Typer(
    name="elevenlabs-ttm",
    help="Generate music with the ElevenLabs text-to-music API.",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log requests and responses",
    ),
):
    """Generate music with the ElevenLabs text-to-music API."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_settings() -> Settings:
    try:
        return get_settings()
    except SettingsError:
        console.print("[red]ELEVENLABS_API_KEY is not set (environment or .env).[/red]")
        raise typer.Exit(1)


def _build_client(settings: Settings) -> MusicClient:
    return MusicClient.from_settings(settings)


def _output_paths(
    settings: Settings,
    output: Path | None,
    output_format: str,
) -> tuple[Path, Path]:
    if output is None:
        filename_base = f"track_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        output = settings.output_dir / f"{filename_base}.{file_extension(output_format)}"
    return output, output.with_name(f"{output.stem}.meta.json")


def _compose_and_save(
    plan: MusicPlan,
    output_format: str | None,
    model: str | None,
    output: Path | None,
    plan_file: Path | None = None,
) -> Path:
    """Run one compose request and write the audio plus a metadata sidecar."""
    settings = _load_settings()
    fmt = output_format or DEFAULT_OUTPUT_FORMAT
    audio_path, metadata_path = _output_paths(settings, output, fmt)
    if plan_file is not None and plan_file.resolve() in {
        audio_path.resolve(),
        metadata_path.resolve(),
    }:
        console.print(f"[red]{escape(f'Refusing to overwrite the plan file {plan_file}')}[/red]")
        raise typer.Exit(1)

    async def _run() -> bytes:
        async with _build_client(settings) as client:
            builder = client.compose_music(plan)
            if output_format:
                builder = builder.output_format(output_format)
            if model:
                builder = builder.model(model)
            return await builder.execute()

    try:
        with console.status("Composing music..."):
            audio = asyncio.run(_run())
    except ElevenLabsTTMError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    audio_path.parent.mkdir(parents=True, exist_ok=True)
    with open(audio_path, "wb") as f:
        f.write(audio)

    metadata = {
        "request": plan_to_body(plan),
        "output_format": fmt,
        "model_id": model or DEFAULT_MODEL_ID,
        "size_bytes": len(audio),
        "created_at": datetime.now().isoformat(),
    }
    with open(metadata_path, "w") as f:
        json.dump(metadata, f, indent=2)

    console.print(Panel(
        f"[green]Generated {len(audio)} bytes[/green]\n\n"
        f"Audio: {audio_path}\n"
        f"Metadata: {metadata_path}",
        title="Complete",
    ))
    return audio_path


@app.command()
def prompt(
    text: str = typer.Argument(
        ...,
        help="Text prompt describing the music",
    ),
    length_ms: int = typer.Option(
        None,
        "--length",
        "-l",
        help="Target length in ms (clamped to 10000-300000)",
    ),
    output_format: str = typer.Option(
        None,
        "--format",
        "-f",
        help=f"Output format (default: {DEFAULT_OUTPUT_FORMAT})",
    ),
    model: str = typer.Option(
        None,
        "--model",
        "-m",
        help=f"Model id (default: {DEFAULT_MODEL_ID})",
    ),
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="Audio file to write (default: <output_dir>/track_<timestamp>.<ext>); metadata goes to <stem>.meta.json",
    ),
):
    """
    Compose a track from a text prompt.

    Example:
        elevenlabs-ttm prompt "energetic house, tribal percussion" -l 60000
    """
    plan = PromptPlan(text)
    if length_ms is not None:
        plan = plan.with_music_length_ms(length_ms)
        if plan.music_length_ms != length_ms:
            console.print(f"[yellow]Length clamped to {plan.music_length_ms}ms[/yellow]")

    _compose_and_save(plan, output_format, model, output)


@app.command()
def plan(
    plan_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="JSON file with a prompt or composition_plan",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Check documented section bounds before sending",
    ),
    output_format: str = typer.Option(
        None,
        "--format",
        "-f",
        help=f"Output format (default: {DEFAULT_OUTPUT_FORMAT})",
    ),
    model: str = typer.Option(
        None,
        "--model",
        "-m",
        help=f"Model id (default: {DEFAULT_MODEL_ID})",
    ),
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="Audio file to write (default: <output_dir>/track_<timestamp>.<ext>); metadata goes to <stem>.meta.json",
    ),
):
    """
    Compose a track from a plan file.

    The file uses the request body shape, e.g.
    {"composition_plan": {"positive_global_styles": [...], "sections": [...]}}

    Example:
        elevenlabs-ttm plan song.json --strict -f mp3_44100_192
    """
    try:
        music_plan = plan_from_json(plan_file.read_bytes())
        if strict:
            validate_plan(music_plan)
    except ElevenLabsTTMError as e:
        console.print(f"[red]{escape(f'{plan_file}: {e}')}[/red]")
        raise typer.Exit(1)

    if isinstance(music_plan, CompositionPlan):
        table = Table(title="Composition Plan")
        table.add_column("#", style="cyan", width=3)
        table.add_column("Section", style="white")
        table.add_column("Duration", width=8)
        table.add_column("Lines", width=5)
        for i, section in enumerate(music_plan.sections, start=1):
            duration_sec = section.duration_ms // 1000
            table.add_row(
                str(i),
                escape(section.section_name),
                f"{duration_sec // 60}:{duration_sec % 60:02d}",
                str(len(section.lines)),
            )
        console.print(table)

    _compose_and_save(music_plan, output_format, model, output, plan_file=plan_file)


@app.command()
def formats():
    """List the output formats the API accepts."""
    table = Table(title="Output Formats")
    table.add_column("Format", style="cyan")
    table.add_column("Codec")
    table.add_column("Notes")

    for fmt in OUTPUT_FORMATS:
        codec = fmt.split("_", 1)[0]
        notes = ""
        if fmt == DEFAULT_OUTPUT_FORMAT:
            notes = "[green]DEFAULT[/green]"
        elif fmt == "mp3_44100_192":
            notes = "Creator tier or above"
        elif fmt == "pcm_44100":
            notes = "Pro tier or above"
        table.add_row(fmt, codec, notes)

    console.print(table)


@app.command()
def config():
    """Show current configuration."""
    s = _load_settings()

    def mask_key(key: str) -> str:
        if len(key) > 12:
            return f"{key[:8]}...{key[-4:]}"
        return "***"

    table = Table(show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("ElevenLabs API Key", mask_key(s.elevenlabs_api_key))
    table.add_row("Base URL", s.elevenlabs_base_url)
    table.add_row("Timeout", f"{s.timeout_s}s" if s.timeout_s is not None else "(none)")
    table.add_row("Output Directory", str(s.output_dir))

    console.print(table)


if __name__ == "__main__":
    app()
