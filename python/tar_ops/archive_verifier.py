"""
Archive integrity verification.

Reads back tar and tar+gzip archives to check their structure and report
their contents.
"""

import tarfile
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, List, Tuple
from colored_logger import get_colored_logger

logger = get_colored_logger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


class ArchiveVerifier:
    """Verifies and describes tar archives, compressed or not."""

    def __init__(self, chunk_size: int = 64 * 1024):
        self.chunk_size = chunk_size

    @staticmethod
    def detect_format(archive_path: str) -> str:
        """Return ``"tar.gz"`` or ``"tar"`` from the file's leading bytes."""
        with open(archive_path, "rb") as f:
            header = f.read(2)
        return "tar.gz" if header == GZIP_MAGIC else "tar"

    def list_entries(self, archive_path: str) -> List[Tuple[str, int]]:
        """List ``(name, size)`` for every regular file entry, in archive order."""
        with tarfile.open(archive_path, mode="r:*") as tar:
            return [(member.name, member.size) for member in tar if member.isfile()]

    def verify_archive_integrity(self, archive_path: str) -> bool:
        """Read every entry through to the end of the archive."""
        try:
            with tarfile.open(archive_path, mode="r|*") as tar:
                for member in tar:
                    if not member.isfile():
                        continue
                    data = tar.extractfile(member)
                    if data is None:
                        return False
                    while data.read(self.chunk_size):
                        pass
            return True
        except (OSError, EOFError, tarfile.TarError) as e:
            logger.debug("Archive integrity verification failed: %s", e)
            return False

    def get_archive_info(self, archive_path: str) -> Dict[str, Any]:
        """Get comprehensive information about an archive."""
        path = Path(archive_path)

        if not path.exists():
            raise FileNotFoundError(f"Archive not found: {archive_path}")

        stat = path.stat()
        info = {
            "path": str(path),
            "size_bytes": stat.st_size,
            "modified_time": datetime.fromtimestamp(stat.st_mtime).isoformat(),
            "format": self.detect_format(archive_path),
            "valid": False,
            "file_count": 0,
            "uncompressed_size": 0,
        }

        try:
            entries = self.list_entries(archive_path)
        except (OSError, EOFError, tarfile.TarError) as e:
            logger.debug("Error reading archive %s: %s", archive_path, e)
            return info

        info["file_count"] = len(entries)
        info["uncompressed_size"] = sum(size for _, size in entries)
        info["valid"] = self.verify_archive_integrity(archive_path)
        return info
