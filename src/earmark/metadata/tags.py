# ABOUTME: Audio tag extraction (title, artist, AUDIBLE_ASIN) via the ffprobe media probe.
# ABOUTME: Container tags win over first-audio-stream tags; untagged files yield an empty TagSet.

import json
import logging
import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

AUDIBLE_ASIN_URL_PREFIX = "http://www.audible.com/pd/"

_POLL_INTERVAL = 0.2


class ProbeError(Exception):
    """Raised when an audio file cannot be probed for tags."""

    def __init__(self, message: str, *, canceled: bool = False) -> None:
        super().__init__(message)
        self.canceled = canceled


def normalize_asin(value: str) -> str:
    """Strip the Audible product URL prefix that MP3 taggers store in AUDIBLE_ASIN."""
    value = value.strip()
    while value.startswith(AUDIBLE_ASIN_URL_PREFIX):
        value = value[len(AUDIBLE_ASIN_URL_PREFIX):].strip()
    return value


@dataclass(frozen=True)
class TagSet:
    """The small set of tags the importer cares about. Absent fields are None."""

    title: str | None = None
    artist: str | None = None
    audible_asin: str | None = None

    def __post_init__(self) -> None:
        if self.audible_asin is not None:
            object.__setattr__(self, "audible_asin", normalize_asin(self.audible_asin) or None)

    @property
    def is_empty(self) -> bool:
        return self.title is None and self.artist is None and self.audible_asin is None

    @classmethod
    def from_tag_list(cls, tags: dict[str, Any]) -> "TagSet":
        """Build a TagSet from a raw tag mapping; key lookup ignores case.

        Blank values are treated as absent.
        """
        lowered: dict[str, str] = {}
        for key, value in tags.items():
            if value is None:
                continue
            text = str(value).strip()
            if text:
                lowered.setdefault(str(key).lower(), text)
        return cls(
            title=lowered.get("title"),
            artist=lowered.get("artist"),
            audible_asin=lowered.get("audible_asin"),
        )


@runtime_checkable
class TagReader(Protocol):
    """Protocol for reading a TagSet from an audio file."""

    def read(self, path: Path, cancel: threading.Event | None = None) -> TagSet: ...


def select_tag_list(probe_data: dict[str, Any]) -> dict[str, Any]:
    """Pick the tag source from ffprobe JSON output.

    Container-level tags first, then the first audio stream's tags; the first
    non-empty source wins. Returns an empty dict when neither has tags.
    """
    format_tags = (probe_data.get("format") or {}).get("tags") or {}
    if format_tags:
        return format_tags

    for stream in probe_data.get("streams") or []:
        if stream.get("codec_type", "audio") != "audio":
            continue
        stream_tags = stream.get("tags") or {}
        if stream_tags:
            logger.info("Using stream-level tags as format tags were empty")
        return stream_tags
    return {}


class FFProbeTagReader:
    """TagReader that shells out to ffprobe and parses its JSON output."""

    def __init__(self, command: str = "ffprobe", timeout: float = 60.0) -> None:
        self._command = command
        self._timeout = timeout

    def read(self, path: Path, cancel: threading.Event | None = None) -> TagSet:
        """Probe a file and return its TagSet.

        Raises:
            ProbeError: ffprobe is missing, fails, times out, emits invalid
                JSON, or the cancel event is set while it runs.
        """
        probe_data = self._probe(path, cancel)
        tags = TagSet.from_tag_list(select_tag_list(probe_data))
        logger.info(
            "Read tags path=%s title=%s artist=%s asin=%s",
            path, tags.title, tags.artist, tags.audible_asin,
        )
        return tags

    def _probe(self, path: Path, cancel: threading.Event | None) -> dict[str, Any]:
        cmd = [
            self._command,
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(path),
        ]
        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as exc:
            raise ProbeError(f"unable to run {self._command}: {exc}") from exc

        deadline = time.monotonic() + self._timeout
        while True:
            if cancel is not None and cancel.is_set():
                process.kill()
                process.communicate()
                raise ProbeError(f"probe canceled: {path}", canceled=True)
            try:
                stdout, stderr = process.communicate(timeout=_POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                if time.monotonic() >= deadline:
                    process.kill()
                    process.communicate()
                    raise ProbeError(f"probe timed out after {self._timeout:g}s: {path}") from None

        if process.returncode != 0:
            detail = stderr.strip() or f"exit status {process.returncode}"
            raise ProbeError(f"unable to probe metadata: {path}: {detail}")

        try:
            data = json.loads(stdout or "{}")
        except json.JSONDecodeError as exc:
            raise ProbeError(f"invalid probe output for {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ProbeError(f"invalid probe output for {path}")
        return data
