"""FFmpeg command builders for the segment muxer."""

from __future__ import annotations

import shutil
from pathlib import Path

HLS_PROTOCOLS = "file,http,https,tcp,tls"


class FFmpegError(Exception):
    """Raised when FFmpeg is unavailable or a command cannot be built."""


def verify_ffmpeg(binary: str = "ffmpeg") -> str:
    """Return the resolved path of the FFmpeg binary or raise FFmpegError."""
    resolved = shutil.which(binary)
    if resolved is None:
        raise FFmpegError(
            f"{binary} not found. Please install FFmpeg:\n"
            "  - macOS: brew install ffmpeg\n"
            "  - Ubuntu/Debian: sudo apt install ffmpeg"
        )
    return resolved


def is_hls_url(url: str) -> bool:
    """True when the URL points at an HLS manifest."""
    return url.split("?", 1)[0].lower().endswith(".m3u8")


def segment_pattern(prefix: str, width: int, extension: str) -> str:
    """FFmpeg output pattern, e.g. ``segment-%03d.mp3``."""
    return f"{prefix}-%0{width}d.{extension}"


def build_segment_command(
    url: str,
    output_pattern: Path | str,
    *,
    segment_seconds: int,
    start_number: int,
    binary: str = "ffmpeg",
) -> list[str]:
    """Build the segment-muxer invocation for a continuous stream or HLS manifest."""
    if segment_seconds <= 0:
        raise FFmpegError(f"segment_seconds must be positive, got {segment_seconds}")
    if start_number < 0:
        raise FFmpegError(f"start_number must be >= 0, got {start_number}")

    cmd = [binary, "-hide_banner", "-nostdin", "-loglevel", "error"]
    if is_hls_url(url):
        cmd.extend(["-protocol_whitelist", HLS_PROTOCOLS])
    cmd.extend([
        "-i", url,
        "-f", "segment",
        "-segment_time", str(segment_seconds),
        "-segment_start_number", str(start_number),
        "-reset_timestamps", "1",
        str(output_pattern),
    ])
    return cmd
