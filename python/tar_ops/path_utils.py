"""
Path utilities for archive operations.

This module resolves destination paths to their canonical form and enforces
the overwrite policy for an archive that already exists.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from colored_logger import get_colored_logger

from .archive_errors import AlreadyExists, InvalidArgument, IOFailure

logger = get_colored_logger(__name__)


def resolve_against(path, workspace) -> Path:
    """Anchor a relative path at ``workspace``; absolute paths pass through."""
    path = Path(path)
    if path.is_absolute():
        return path
    return Path(workspace) / path


def canonical_path(path) -> Path:
    """Absolute, ``..``-normalized, symlink-resolved form of ``path``."""
    return Path(os.path.realpath(os.path.abspath(path)))


@dataclass(frozen=True)
class ResolvedDestination:
    """Canonical destination of one archive request."""

    canonical_path: Path
    existed_before: bool


class OverwriteArbiter:
    """Decides what happens to an archive file that is already present."""

    def _delete_existing(self, path: Path) -> None:
        try:
            path.unlink()
        except OSError as e:
            raise IOFailure(f"Failed to delete {path}: {e}") from e
        logger.info("Deleted existing archive: %s", path)

    def prepare_destination(self, dest_path, overwrite: bool) -> ResolvedDestination:
        """
        Validate the destination before anything is written to it.

        Args:
            dest_path: Destination archive path as the caller spelled it
            overwrite: Replace an existing file instead of failing

        Returns:
            ResolvedDestination, with the path guaranteed absent on return

        Raises:
            AlreadyExists: destination exists and overwrite is False
            InvalidArgument: destination is an existing directory
            IOFailure: existing destination could not be deleted
        """
        canonical = canonical_path(dest_path)
        existed = os.path.lexists(canonical)

        if existed:
            if canonical.is_dir():
                raise InvalidArgument(f"{dest_path} is a directory.")
            if not overwrite:
                raise AlreadyExists(f"{dest_path} exists.")
            self._delete_existing(canonical)

        return ResolvedDestination(canonical_path=canonical, existed_before=existed)


def prepare_destination(dest_path, overwrite: bool) -> ResolvedDestination:
    """Apply the overwrite policy to ``dest_path``."""
    return OverwriteArbiter().prepare_destination(dest_path, overwrite)
