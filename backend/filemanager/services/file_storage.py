"""File storage area on the local filesystem.

Files are addressed by their name (or archive-relative path) under a single
root directory. What happens when a target path already exists is governed
by the collision policy:

    overwrite  replace the existing file (default)
    rename     write to ``name_1.ext``, ``name_2.ext``, ... instead
    reject     refuse with ``Conflict``
"""
import logging
from pathlib import Path
from urllib.parse import quote

import aiofiles

from filemanager.errors import BadRequest, Conflict, InternalError

logger = logging.getLogger(__name__)

COLLISION_POLICIES = ("overwrite", "rename", "reject")


class FileStorageService:
    """Handles file writes under the storage root."""

    def __init__(self, base_path: str, collision_policy: str = "overwrite"):
        if collision_policy not in COLLISION_POLICIES:
            raise ValueError(f"Unknown collision policy: {collision_policy}")
        self.base_path = Path(base_path)
        self.collision_policy = collision_policy

    def ensure_root(self) -> None:
        """Create the storage root. Called from the app lifespan, not on construction."""
        self.base_path.mkdir(parents=True, exist_ok=True)

    def resolve(self, relative_name: str) -> Path:
        """Map a name to its destination under the root, applying the collision policy."""
        root = self.base_path.resolve()
        target = (root / relative_name).resolve()
        if target == root or root not in target.parents:
            raise BadRequest(f"Invalid file name: {relative_name}")

        if not target.exists() or self.collision_policy == "overwrite":
            return self._relative(target)
        if self.collision_policy == "reject":
            raise Conflict(f"File already exists: {relative_name}")

        counter = 1
        while True:
            candidate = target.with_name(f"{target.stem}_{counter}{target.suffix}")
            if not candidate.exists():
                return self._relative(candidate)
            counter += 1

    def prepare(self, relative_name: str) -> Path:
        """Resolve a destination and create its parent directories."""
        dest = self.resolve(relative_name)
        dest.parent.mkdir(parents=True, exist_ok=True)
        return dest

    async def save(self, file_bytes: bytes, relative_name: str) -> str:
        """Write bytes verbatim. Returns the storage path."""
        try:
            dest = self.prepare(relative_name)
            async with aiofiles.open(dest, "wb") as f:
                await f.write(file_bytes)
        except OSError as e:
            logger.error(f"Failed to write {relative_name}: {e}")
            raise InternalError(str(e)) from e
        return str(dest)

    def _relative(self, target: Path) -> Path:
        # Keep paths expressed relative to the configured root (e.g. uploads/a.mp4)
        return self.base_path / target.relative_to(self.base_path.resolve())

    def public_url(self, storage_path: str) -> str | None:
        """URL under /uploads for a stored path, or None if it lies outside the root."""
        try:
            relative = Path(storage_path).resolve().relative_to(self.base_path.resolve())
        except ValueError:
            return None
        return "/uploads/" + quote(relative.as_posix())
