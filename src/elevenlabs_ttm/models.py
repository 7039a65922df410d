"""Model ids and output formats accepted by the music endpoint."""

# Only model the music endpoint serves today.
MUSIC_V1 = "music_v1"

DEFAULT_MODEL_ID = MUSIC_V1

# codec_samplerate_bitrate. mp3_44100_192 needs Creator tier or above,
# pcm_44100 needs Pro tier or above.
OUTPUT_FORMATS: tuple[str, ...] = (
    "mp3_22050_32",
    "mp3_44100_32",
    "mp3_44100_64",
    "mp3_44100_96",
    "mp3_44100_128",
    "mp3_44100_192",
    "pcm_8000",
    "pcm_16000",
    "pcm_22050",
    "pcm_24000",
    "pcm_44100",
    "pcm_48000",
    "ulaw_8000",
    "alaw_8000",
    "opus_48000_32",
    "opus_48000_64",
    "opus_48000_96",
)

DEFAULT_OUTPUT_FORMAT = "mp3_44100_128"


def file_extension(output_format: str) -> str:
    """Return a file extension for an output format string.

    Formats are opaque to the client; this only looks at the codec prefix.
    """
    codec = output_format.split("_", 1)[0]
    if codec in {"mp3", "opus"}:
        return codec
    if codec == "pcm":
        return "pcm"
    if codec in {"ulaw", "alaw"}:
        return "raw"
    return "bin"
