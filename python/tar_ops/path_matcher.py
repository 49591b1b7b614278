"""
File selection for tar archive operations.

This module walks a base directory and selects the files that match an
ant-style include pattern and none of the exclude patterns, optionally
layering the built-in default excludes on top.
"""

import os
import pathspec
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple
from colored_logger import get_colored_logger

from .archive_errors import IOFailure, NotFound, InvalidArgument

logger = get_colored_logger(__name__)

# VCS and OS metadata skipped when default excludes are enabled
DEFAULT_EXCLUDES: Tuple[str, ...] = (
    # Miscellaneous typical temporary files
    "**/*~",
    "**/#*#",
    "**/.#*",
    "**/%*%",
    "**/._*",
    # CVS
    "**/CVS",
    "**/CVS/**",
    "**/.cvsignore",
    # SCCS
    "**/SCCS",
    "**/SCCS/**",
    # Visual SourceSafe
    "**/vssver.scc",
    # Subversion
    "**/.svn",
    "**/.svn/**",
    # Git
    "**/.git",
    "**/.git/**",
    "**/.gitattributes",
    "**/.gitignore",
    "**/.gitmodules",
    # Mercurial
    "**/.hg",
    "**/.hg/**",
    "**/.hgignore",
    "**/.hgsub",
    "**/.hgsubstate",
    "**/.hgtags",
    # Bazaar
    "**/.bzr",
    "**/.bzr/**",
    "**/.bzrignore",
    # Mac
    "**/.DS_Store",
)


@dataclass(frozen=True)
class CandidateEntry:
    """A file selected for archiving."""

    relative_path: str
    absolute_path: Path
    is_directory: bool = False


class FileStats:
    """Container for directory walk statistics."""

    def __init__(self):
        self.scanned_files = 0
        self.selected_files = 0
        self.excluded_files = 0
        self.pruned_directories = 0
        self.total_size = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return {
            "scanned_files": self.scanned_files,
            "selected_files": self.selected_files,
            "excluded_files": self.excluded_files,
            "pruned_directories": self.pruned_directories,
            "total_size": self.total_size,
        }

    def select_file(self, file_size: int) -> None:
        self.scanned_files += 1
        self.selected_files += 1
        self.total_size += file_size

    def exclude_file(self) -> None:
        self.scanned_files += 1
        self.excluded_files += 1


def _to_gitwildmatch(tokens: List[str]) -> str:
    """
    Render ant path tokens as a root-anchored gitwildmatch line.

    ``[`` is escaped so brackets stay literal as they are in ant patterns.
    """
    return "/" + "/".join(token.replace("[", "\\[") for token in tokens)


class AntPattern:
    """
    A single ant-style path pattern.

    ``*`` matches within one path segment, ``?`` matches one character and
    ``**`` matches any number of segments. A pattern ending in ``/`` matches
    everything beneath that directory. Patterns are anchored at the base
    directory, so ``*.txt`` only matches files at the top level.
    """

    def __init__(self, pattern: str):
        self.pattern = pattern
        normalized = pattern.strip().replace("\\", "/")
        if normalized.endswith("/"):
            normalized += "**"
        while normalized.startswith("./"):
            normalized = normalized[2:]
        normalized = normalized.lstrip("/")

        self.tokens = [t for t in normalized.split("/") if t not in ("", ".")]
        self.line = _to_gitwildmatch(self.tokens) if self.tokens else None
        self.spec = pathspec.PathSpec.from_lines(
            "gitwildmatch", [self.line] if self.line else []
        )

    def matches(self, relative_path: str) -> bool:
        return self.spec.match_file(relative_path)

    def covers_directory(self, relative_dir: str) -> bool:
        """True if every path below ``relative_dir`` is matched by this pattern."""
        # gitwildmatch only treats a path as a directory when it ends in "/"
        return self.spec.match_file(relative_dir + "/")

    def __repr__(self) -> str:
        return f"AntPattern({self.pattern!r})"


class PatternSet:
    """A comma separated list of ant patterns matched as a union."""

    def __init__(self, patterns: List[AntPattern]):
        self.patterns = patterns
        self.spec = pathspec.PathSpec.from_lines(
            "gitwildmatch", [p.line for p in patterns if p.line]
        )

    @classmethod
    def parse(cls, spec: Optional[str]) -> "PatternSet":
        if not spec:
            return cls([])
        return cls([AntPattern(p) for p in spec.split(",") if p.strip()])

    @classmethod
    def from_patterns(cls, patterns) -> "PatternSet":
        return cls([AntPattern(p) for p in patterns])

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __add__(self, other: "PatternSet") -> "PatternSet":
        return PatternSet(self.patterns + other.patterns)

    def matches(self, relative_path: str) -> bool:
        return self.spec.match_file(relative_path)

    def covers_directory(self, relative_dir: str) -> bool:
        return self.spec.match_file(relative_dir + "/")


class PathMatcher:
    """Walks a base directory and selects files for archiving."""

    def __init__(self, follow_symlinked_dirs: bool = False):
        self.follow_symlinked_dirs = follow_symlinked_dirs
        self.last_stats = FileStats()

    @staticmethod
    def _validate_base_dir(base_dir: Path) -> None:
        if not base_dir.exists():
            raise NotFound(f"Base directory not found: {base_dir}")
        if not base_dir.is_dir():
            raise InvalidArgument(f"Base path is not a directory: {base_dir}")

    @staticmethod
    def _raise_walk_error(error: OSError) -> None:
        raise IOFailure(f"Failed to read {error.filename}: {error}") from error

    def _walk(self, base_dir: Path, excludes: PatternSet, stats: FileStats):
        """
        Yield (relative_path, absolute_path) for every file under base_dir.

        Unreadable directories raise IOFailure instead of being skipped.
        """
        for root, dirnames, filenames in os.walk(
            base_dir,
            onerror=self._raise_walk_error,
            followlinks=self.follow_symlinked_dirs,
        ):
            root_path = Path(root)
            rel_root = root_path.relative_to(base_dir).as_posix()
            rel_root = "" if rel_root == "." else rel_root

            kept_dirs = []
            for dirname in sorted(dirnames):
                rel_dir = f"{rel_root}/{dirname}" if rel_root else dirname
                if excludes.covers_directory(rel_dir):
                    stats.pruned_directories += 1
                    logger.debug("Pruned excluded directory: %s", rel_dir)
                    continue
                kept_dirs.append(dirname)
            dirnames[:] = kept_dirs

            for filename in filenames:
                rel_path = f"{rel_root}/{filename}" if rel_root else filename
                yield rel_path, root_path / filename

    def select(
        self,
        base_dir,
        include_glob: str = "",
        exclude_glob: str = "",
        default_excludes: bool = True,
    ) -> List[CandidateEntry]:
        """
        Select the files under ``base_dir`` to archive.

        Args:
            base_dir: Directory to walk
            include_glob: Ant pattern(s) to include; empty means ``**``
            exclude_glob: Ant pattern(s) to exclude; empty means none
            default_excludes: Also drop VCS/metadata files

        Returns:
            Candidates sorted by relative path

        Raises:
            NotFound: base_dir does not exist
            InvalidArgument: base_dir is not a directory
            IOFailure: a directory or file under base_dir could not be read
        """
        base_dir = Path(base_dir)
        self._validate_base_dir(base_dir)

        includes = PatternSet.parse(include_glob) or PatternSet.parse("**")
        excludes = PatternSet.parse(exclude_glob)
        if default_excludes:
            excludes = excludes + PatternSet.from_patterns(DEFAULT_EXCLUDES)

        stats = FileStats()
        candidates = []

        for rel_path, abs_path in self._walk(base_dir, excludes, stats):
            if not abs_path.is_file():
                # broken symlinks, sockets, symlinked directories
                stats.exclude_file()
                continue
            if not includes.matches(rel_path) or excludes.matches(rel_path):
                stats.exclude_file()
                continue

            try:
                file_size = abs_path.stat().st_size
            except OSError as e:
                raise IOFailure(f"Failed to read {abs_path}: {e}") from e

            stats.select_file(file_size)
            candidates.append(CandidateEntry(rel_path, abs_path, False))

        candidates.sort(key=lambda entry: entry.relative_path)
        self.last_stats = stats

        logger.info(
            "Scan complete: %d of %d files selected (%.2f MB), %d excluded",
            stats.selected_files,
            stats.scanned_files,
            stats.total_size / (1024 * 1024),
            stats.excluded_files,
        )
        return candidates


def select(
    base_dir,
    include_glob: str = "",
    exclude_glob: str = "",
    default_excludes: bool = True,
) -> List[CandidateEntry]:
    """Select the files under ``base_dir`` that should go into the archive."""
    return PathMatcher().select(base_dir, include_glob, exclude_glob, default_excludes)
