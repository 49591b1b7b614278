"""
Artifact registration for finished archives.
"""

import shutil
from pathlib import Path
from typing import Protocol
from colored_logger import get_colored_logger

from .archive_errors import IOFailure

logger = get_colored_logger(__name__)


class ArtifactRegistrar(Protocol):
    """Records a finished archive as a build artifact."""

    def register(self, archive_path, workspace) -> str:
        """Register ``archive_path`` and return its artifact-relative path."""
        ...


class DirectoryArtifactRegistrar:
    """Copies archives into an artifacts directory, keeping workspace layout."""

    def __init__(self, artifacts_dir):
        self.artifacts_dir = Path(artifacts_dir)

    def relative_artifact_path(self, archive_path: Path, workspace: Path) -> Path:
        try:
            return archive_path.resolve().relative_to(Path(workspace).resolve())
        except ValueError:
            # Outside the workspace: keep only the file name
            return Path(archive_path.name)

    def register(self, archive_path, workspace) -> str:
        archive_path = Path(archive_path)
        relative = self.relative_artifact_path(archive_path, workspace)
        target = self.artifacts_dir / relative

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(archive_path, target)
        except OSError as e:
            raise IOFailure(f"Failed to archive {archive_path}: {e}") from e

        logger.debug("Registered artifact %s -> %s", archive_path, target)
        return relative.as_posix()
