"""
Archive Manager - orchestrates one tar archive request.

The manager runs the request through the focused components in order:
- File selection: PathMatcher
- Self-inclusion protection: SelfReferenceGuard
- Overwrite policy: OverwriteArbiter
- Streaming: TarArchiveCreator (via ArchiveCreatorFactory)
- Reporting: report.summarize
"""

import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Optional
from colored_logger import get_colored_logger

from .archive_creators import (
    ArchiveCreatorFactory,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_COMPRESSION_LEVEL,
)
from .archive_errors import ArchiveError, ValidationFailure
from .archive_security import SelfReferenceGuard
from .artifacts import ArtifactRegistrar
from .path_matcher import PathMatcher
from .path_utils import OverwriteArbiter, resolve_against
from .report import ArchiveOutcome, archiving_line, failed, start_line, summarize

logger = get_colored_logger(__name__)


@dataclass(frozen=True)
class ArchiveRequest:
    """Everything needed to build one archive."""

    dest_path: str
    base_dir: str = ""
    include_glob: str = ""
    exclude_glob: str = ""
    default_excludes: bool = True
    compress: bool = True
    overwrite: bool = False
    archive: bool = False
    workspace: Optional[str] = None

    def validate(self) -> None:
        if self.dest_path is None or not str(self.dest_path).strip():
            raise ValidationFailure("Can not be empty")
        for value in (self.dest_path, self.base_dir):
            if value and "\x00" in str(value):
                raise ValidationFailure(f"Path contains a NUL character: {value!r}")

    def workspace_path(self) -> Path:
        return Path(self.workspace) if self.workspace else Path.cwd()

    def resolved_base_dir(self) -> Path:
        return resolve_against(self.base_dir or ".", self.workspace_path())

    def resolved_dest_path(self) -> Path:
        return resolve_against(str(self.dest_path).strip(), self.workspace_path())

    def describe(self) -> str:
        return start_line(
            self.base_dir or ".",
            self.include_glob,
            self.exclude_glob,
            str(self.dest_path).strip(),
        )


class ArchiveManager:
    """
    Builds tar archives from archive requests.

    Failures are raised as ArchiveError subclasses; use run_tar_step for the
    variant that turns them into a failed ArchiveOutcome.
    """

    def __init__(
        self,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.compression_level = compression_level
        self.chunk_size = chunk_size

        self.matcher = PathMatcher()
        self.guard = SelfReferenceGuard()
        self.arbiter = OverwriteArbiter()

    def create_archive(
        self,
        request: ArchiveRequest,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> ArchiveOutcome:
        """
        Create the archive described by ``request``.

        Args:
            request: Archive request
            progress_callback: Optional callable receiving (current, total)

        Returns:
            Successful ArchiveOutcome carrying the summary message

        Raises:
            ValidationFailure, NotFound, InvalidArgument, AlreadyExists, IOFailure
        """
        request.validate()

        base_dir = request.resolved_base_dir()
        dest_path = request.resolved_dest_path()

        header = request.describe()
        logger.info(header)

        candidates = self.matcher.select(
            base_dir,
            request.include_glob,
            request.exclude_glob,
            request.default_excludes,
        )
        candidates = self.guard.exclude_self(candidates, base_dir, dest_path)
        if not candidates:
            logger.warning("No files matched in: %s", base_dir)

        destination = self.arbiter.prepare_destination(dest_path, request.overwrite)

        creator = ArchiveCreatorFactory.create_archive_creator(
            request.compress, self.compression_level, self.chunk_size
        )

        start_time = time.time()
        outcome = creator.write(candidates, destination.canonical_path, progress_callback)
        elapsed_time = time.time() - start_time

        message = summarize(outcome)
        logger.success(
            "%s %s (%.2f MB, %.2f seconds)",
            message,
            outcome.archive_path,
            outcome.bytes_written / (1024 * 1024),
            elapsed_time,
        )
        return replace(outcome, message=message, report_lines=(header, message))


def run_tar_step(
    request: ArchiveRequest,
    registrar: Optional[ArtifactRegistrar] = None,
    manager: Optional[ArchiveManager] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> ArchiveOutcome:
    """
    Run one archive request end to end and never raise for expected failures.

    When ``request.archive`` is set and the archive was built, the result is
    handed to ``registrar``.

    Returns:
        ArchiveOutcome; ``succeeded`` is False and ``message`` holds the
        error text when anything failed
    """
    manager = manager or ArchiveManager()

    try:
        outcome = manager.create_archive(request, progress_callback)
    except ArchiveError as e:
        logger.failure("%s", e)
        return failed(str(e), compressed=request.compress)

    if not request.archive:
        return outcome

    if registrar is None:
        logger.warning("Archive registration requested but no registrar configured")
        return outcome

    line = archiving_line(str(request.dest_path).strip())
    logger.info(line)
    try:
        registrar.register(outcome.archive_path, request.workspace_path())
    except ArchiveError as e:
        logger.failure("%s", e)
        return failed(str(e), compressed=request.compress, lines=outcome.report_lines + (line,))

    return outcome.with_lines(line)


def create_tar_archive(
    dest_path: str,
    base_dir: str = "",
    include_glob: str = "",
    exclude_glob: str = "",
    default_excludes: bool = True,
    compress: bool = True,
    overwrite: bool = False,
    archive: bool = False,
    workspace: Optional[str] = None,
    registrar: Optional[ArtifactRegistrar] = None,
    compression_level: int = DEFAULT_COMPRESSION_LEVEL,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> ArchiveOutcome:
    """
    Convenience function to build an archive with progress logging.

    Returns:
        ArchiveOutcome of the request
    """

    def progress_callback(current: int, total: int):
        percentage = (current / total) * 100
        logger.progress(
            "Archiving progress: %d/%d files (%.1f%%)", current, total, percentage
        )

    request = ArchiveRequest(
        dest_path=dest_path,
        base_dir=base_dir,
        include_glob=include_glob,
        exclude_glob=exclude_glob,
        default_excludes=default_excludes,
        compress=compress,
        overwrite=overwrite,
        archive=archive,
        workspace=workspace,
    )
    manager = ArchiveManager(compression_level=compression_level, chunk_size=chunk_size)

    return run_tar_step(request, registrar, manager, progress_callback)
