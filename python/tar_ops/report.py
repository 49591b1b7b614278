"""
Outcome and progress report for archive requests.
"""

from dataclasses import dataclass, field, replace
from typing import Tuple


@dataclass(frozen=True)
class ArchiveOutcome:
    """Result of one archive request; immutable once built."""

    entry_count: int
    succeeded: bool
    message: str = ""
    bytes_written: int = 0
    archive_path: str = ""
    compressed: bool = True
    report_lines: Tuple[str, ...] = field(default_factory=tuple)

    def with_lines(self, *lines: str) -> "ArchiveOutcome":
        return replace(self, report_lines=self.report_lines + tuple(lines))


def start_line(base_dir, include_glob: str, exclude_glob: str, dest_path) -> str:
    # same wording with or without gzip
    return f"Compress {base_dir} filtered by [{include_glob}] - [{exclude_glob}] to {dest_path}"


def summarize(outcome: ArchiveOutcome) -> str:
    """Human readable one-line summary of ``outcome``."""
    if not outcome.succeeded:
        return outcome.message
    verb = "Compressed" if outcome.compressed else "Tarred"
    return f"{verb} {outcome.entry_count} entries."


def archiving_line(archive_path) -> str:
    return f"Archiving {archive_path}"


def failed(message: str, compressed: bool = True, lines: Tuple[str, ...] = ()) -> ArchiveOutcome:
    """Build the outcome of a request that ended in an error."""
    return ArchiveOutcome(
        entry_count=0,
        succeeded=False,
        message=message,
        compressed=compressed,
        report_lines=tuple(lines) + (message,),
    )
