"""Per-entry metadata enrichers for archive import.

An enricher runs after an entry has been extracted and before its record is
created. It may fill in ``uuid``, ``recorded_at`` or ``duration`` on the
pending record fields. Enrichers are best-effort: the import service logs and
ignores their failures.
"""
import asyncio
import json
import logging
import zipfile
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from filemanager.models.file_record import MAX_DURATION

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"
# Accepted unix timestamps: 1970-01-01 through 9999-12-31
MIN_TIMESTAMP = 0
MAX_TIMESTAMP = 253402300799


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class Enricher(ABC):
    """Base class for import metadata enrichers."""

    @abstractmethod
    async def enrich(self, entry_name: str, dest_path: Path, fields: dict[str, Any]) -> None:
        """Update ``fields`` in place for the extracted entry."""


class ManifestEnricher(Enricher):
    """Applies metadata from the archive's manifest.json.

    The manifest maps entry names to objects with optional ``uuid``,
    ``recorded_at`` (RFC 3339 string or unix seconds) and ``duration``
    (seconds). Entries missing from the manifest are left untouched.
    """

    def __init__(self, manifest: dict[str, dict[str, Any]]):
        self.manifest = manifest

    @classmethod
    def from_archive(cls, archive: zipfile.ZipFile) -> "ManifestEnricher | None":
        """Load the manifest from an open archive. Returns None if absent or unreadable."""
        try:
            raw = archive.read(MANIFEST_NAME)
        except KeyError:
            return None
        except (zipfile.BadZipFile, OSError) as e:
            logger.warning(f"Ignoring unreadable {MANIFEST_NAME}: {e}")
            return None
        try:
            manifest = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring unreadable {MANIFEST_NAME}: {e}")
            return None
        if not isinstance(manifest, dict):
            logger.warning(f"Ignoring {MANIFEST_NAME}: expected an object")
            return None
        return cls(manifest)

    async def enrich(self, entry_name: str, dest_path: Path, fields: dict[str, Any]) -> None:
        data = self.manifest.get(entry_name)
        if not isinstance(data, dict):
            return

        if isinstance(data.get("uuid"), str):
            fields["uuid"] = data["uuid"]

        recorded_at = data.get("recorded_at")
        if isinstance(recorded_at, str):
            parsed = datetime.fromisoformat(recorded_at.replace("Z", "+00:00"))
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            fields["recorded_at"] = parsed.astimezone(timezone.utc)
        elif _is_number(recorded_at):
            if not MIN_TIMESTAMP <= recorded_at <= MAX_TIMESTAMP:
                raise ValueError(f"recorded_at out of range: {recorded_at}")
            fields["recorded_at"] = datetime.fromtimestamp(int(recorded_at), tz=timezone.utc)

        duration = data.get("duration")
        if _is_number(duration):
            if not 0 <= duration <= MAX_DURATION:
                raise ValueError(f"duration out of range: {duration}")
            fields["duration"] = int(duration)


class FFProbeDurationEnricher(Enricher):
    """Reads media duration with ffprobe for video entries."""

    def __init__(self, ffprobe_path: str = "ffprobe", extensions: tuple[str, ...] = (".mp4",)):
        self.ffprobe_path = ffprobe_path
        self.extensions = extensions

    async def enrich(self, entry_name: str, dest_path: Path, fields: dict[str, Any]) -> None:
        if dest_path.suffix.lower() not in self.extensions:
            return

        proc = await asyncio.create_subprocess_exec(
            self.ffprobe_path, "-v", "quiet", "-print_format", "json", "-show_format", str(dest_path),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
        stdout, _ = await proc.communicate()
        if proc.returncode != 0:
            raise RuntimeError(f"ffprobe exited with {proc.returncode}")

        fmt = json.loads(stdout).get("format") or {}
        duration = fmt.get("duration")
        if duration is not None:
            seconds = float(duration)
            if not 0 <= seconds <= MAX_DURATION:
                raise ValueError(f"duration out of range: {duration}")
            fields["duration"] = int(seconds)
