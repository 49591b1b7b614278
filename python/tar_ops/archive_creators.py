"""
Tar archive writer.

This module streams selected files into a tar container, optionally wrapped
in gzip, without ever holding a whole file or the whole archive in memory.
"""

import contextlib
import gzip
import tarfile
from pathlib import Path
from typing import Callable, List, Optional, Protocol
from colored_logger import get_colored_logger

from .archive_errors import AlreadyExists, IOFailure
from .path_matcher import CandidateEntry
from .report import ArchiveOutcome

logger = get_colored_logger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
MIN_CHUNK_SIZE = 1024
DEFAULT_COMPRESSION_LEVEL = 6


class ProgressReporter:
    """Decides when per-entry progress is worth reporting."""

    def should_report_progress(self, current_index: int, total_files: int) -> bool:
        """Report roughly every 5% and always on the last entry."""
        return (
            current_index % max(1, total_files // 20) == 0
            or current_index == total_files - 1
        )

    def report_progress(
        self, progress_callback: Optional[Callable[[int, int], None]], current: int, total: int
    ) -> None:
        if progress_callback:
            progress_callback(current, total)


class ArchiveCreator(Protocol):
    """Interface shared by archive writers."""

    def write(
        self,
        candidates: List[CandidateEntry],
        dest_path,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> ArchiveOutcome:
        ...


class TarArchiveCreator:
    """Writes plain tar or tar+gzip archives in streaming mode."""

    def __init__(
        self,
        compress: bool = True,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.compress = compress
        self.compression_level = min(9, max(0, compression_level))
        self.chunk_size = max(MIN_CHUNK_SIZE, chunk_size)
        self.progress_reporter = ProgressReporter()

    def _open_compressor(self, raw_file):
        """Wrap the raw file in gzip when compressing, else pass it through."""
        if not self.compress:
            return contextlib.nullcontext(raw_file)
        return gzip.GzipFile(
            filename="",
            mode="wb",
            fileobj=raw_file,
            compresslevel=self.compression_level,
        )

    def _open_tar_stream(self, stream) -> tarfile.TarFile:
        return tarfile.open(
            fileobj=stream,
            mode="w|",
            format=tarfile.PAX_FORMAT,
            dereference=True,
            copybufsize=self.chunk_size,
        )

    def _add_entry(self, tar: tarfile.TarFile, entry: CandidateEntry) -> None:
        """Write one header plus the file's bytes, streamed in chunks."""
        with open(str(entry.absolute_path), "rb") as src_file:
            tarinfo = tar.gettarinfo(arcname=entry.relative_path, fileobj=src_file)
            # whole seconds keep the header plain ustar
            tarinfo.mtime = int(tarinfo.mtime)
            tar.addfile(tarinfo, src_file)

    @staticmethod
    def _ensure_parent(dest: Path) -> None:
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailure(f"Failed to create directory {dest.parent}: {e}") from e

    def write(
        self,
        candidates: List[CandidateEntry],
        dest_path,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> ArchiveOutcome:
        """
        Stream ``candidates`` into a new archive at ``dest_path``.

        The destination must not exist; it is opened for exclusive creation.
        A failure part-way leaves the partial file in place.

        Args:
            candidates: Files to archive, in the order they should appear
            dest_path: Archive file to create
            progress_callback: Optional callable receiving (current, total)

        Returns:
            ArchiveOutcome with the entry count and archive size

        Raises:
            AlreadyExists: destination appeared after it was prepared
            IOFailure: any read or write failure while streaming
        """
        dest = Path(dest_path)
        self._ensure_parent(dest)

        files = [entry for entry in candidates if not entry.is_directory]
        total = len(files)
        entry_count = 0

        try:
            with open(dest, "xb") as raw_file:
                with self._open_compressor(raw_file) as stream:
                    with self._open_tar_stream(stream) as tar:
                        for i, entry in enumerate(files):
                            self._add_entry(tar, entry)
                            entry_count += 1
                            logger.debug("Added %s", entry.relative_path)

                            if self.progress_reporter.should_report_progress(i, total):
                                self.progress_reporter.report_progress(
                                    progress_callback, i + 1, total
                                )
            bytes_written = dest.stat().st_size
        except FileExistsError as e:
            raise AlreadyExists(f"{dest_path} exists.") from e
        except (OSError, tarfile.TarError) as e:
            raise IOFailure(f"Failed to write {dest_path}: {e}") from e

        return ArchiveOutcome(
            entry_count=entry_count,
            succeeded=True,
            bytes_written=bytes_written,
            archive_path=str(dest),
            compressed=self.compress,
        )


class ArchiveCreatorFactory:
    """Factory for archive writers."""

    @staticmethod
    def create_archive_creator(
        compress: bool = True,
        compression_level: Optional[int] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> ArchiveCreator:
        level = compression_level if compression_level is not None else DEFAULT_COMPRESSION_LEVEL
        return TarArchiveCreator(compress, level, chunk_size)

    @staticmethod
    def get_supported_formats() -> List[str]:
        return ["tar", "tar.gz"]


def write(
    candidates: List[CandidateEntry], dest_path, compress: bool = True
) -> ArchiveOutcome:
    """Stream ``candidates`` into ``dest_path`` as tar, gzipped when ``compress``."""
    return TarArchiveCreator(compress=compress).write(candidates, dest_path)
