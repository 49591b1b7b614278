"""
Self-reference protection for archive operations.

An archive written somewhere under its own base directory would otherwise be
picked up by the directory walk and read back into itself. The guard drops
the candidate whose canonical path is the destination's canonical path, no
matter how the destination was spelled.
"""

from pathlib import Path
from typing import List
from colored_logger import get_colored_logger

from .path_matcher import CandidateEntry
from .path_utils import canonical_path

logger = get_colored_logger(__name__)


class SelfReferenceGuard:
    """Removes the destination archive from the candidate list."""

    def is_destination(self, entry: CandidateEntry, destination: Path) -> bool:
        try:
            return canonical_path(entry.absolute_path) == destination
        except (OSError, ValueError) as e:
            logger.warning(
                "Cannot canonicalize %s, keeping it: %s", entry.absolute_path, e
            )
            return False

    def exclude_self(
        self, candidates: List[CandidateEntry], base_dir, dest_path
    ) -> List[CandidateEntry]:
        """
        Filter the destination out of ``candidates``.

        Only an entry that is the very same file as the destination is
        removed. Files that share the destination's name in other
        directories are kept.

        Args:
            candidates: Entries produced by the path matcher
            base_dir: Directory the candidates were selected from
            dest_path: Destination archive path (absolute or already anchored)

        Returns:
            Candidates without the destination, order preserved
        """
        destination = canonical_path(dest_path)
        kept = []

        for entry in candidates:
            if self.is_destination(entry, destination):
                logger.debug(
                    "Excluding archive from itself: %s (in %s)",
                    entry.relative_path,
                    base_dir,
                )
                continue
            kept.append(entry)

        return kept


def exclude_self(
    candidates: List[CandidateEntry], base_dir, dest_path
) -> List[CandidateEntry]:
    """Drop the destination archive from ``candidates``."""
    return SelfReferenceGuard().exclude_self(candidates, base_dir, dest_path)
