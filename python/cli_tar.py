#!/usr/bin/env python3
"""
Tar Archive CLI Tool

A command-line interface for building tar and tar.gz archives from a
directory, filtered by ant-style include and exclude patterns.

Usage:
    python3 cli_tar.py create --file build/out.tgz
    python3 cli_tar.py create --file hello.tar --dir hello --no-compress
    python3 cli_tar.py create --file out.tgz --glob '**/*.txt' --exclude 'tmp/**'
    python3 cli_tar.py info out.tgz --detailed
    python3 cli_tar.py verify out.tgz
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from colored_logger import setup_colored_logging, get_colored_logger, resolve_level
from tar_config import load_config
from tar_ops.archive_manager import create_tar_archive
from tar_ops.archive_verifier import ArchiveVerifier
from tar_ops.artifacts import DirectoryArtifactRegistrar

logger = get_colored_logger(__name__)


class TarCLI:
    """Command-line interface for tar archive creation."""

    def __init__(self):
        self.parser = self._create_parser()
        self.verifier = ArchiveVerifier()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser with all commands and options."""
        parser = argparse.ArgumentParser(
            description="Build tar and tar.gz archives from a directory",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Archive the whole workspace into a gzipped tarball
  python3 cli_tar.py create --file build/out.tgz

  # Archive one directory as plain tar, replacing an older archive
  python3 cli_tar.py create --file hello.tar --dir hello --no-compress --overwrite

  # Only text files, skipping a scratch directory, and keep a copy as artifact
  python3 cli_tar.py create --file out.tgz --glob '**/*.txt' --exclude 'tmp/**' --archive

  # Show archive contents
  python3 cli_tar.py info out.tgz --detailed
            """,
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable debug logging"
        )

        subparsers = parser.add_subparsers(dest="command", help="Available commands")

        # Create command
        create_parser = subparsers.add_parser(
            "create", help="Create a tar archive from a directory"
        )
        create_parser.add_argument(
            "--file", "-f", default="", help="Archive file to create"
        )
        create_parser.add_argument(
            "--dir",
            "-d",
            default="",
            help="Base directory to archive, relative to the workspace",
        )
        create_parser.add_argument(
            "--glob", "-g", default=None, help="Ant-style include pattern(s)"
        )
        create_parser.add_argument(
            "--exclude", "-e", default=None, help="Ant-style exclude pattern(s)"
        )
        create_parser.add_argument(
            "--default-excludes",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Skip VCS and OS metadata files",
        )
        create_parser.add_argument(
            "--compress",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Gzip the tar stream",
        )
        create_parser.add_argument(
            "--overwrite",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Replace an existing archive file",
        )
        create_parser.add_argument(
            "--archive",
            action="store_true",
            help="Copy the result into the artifacts directory",
        )
        create_parser.add_argument(
            "--artifacts-dir", help="Artifacts directory (default from config)"
        )
        create_parser.add_argument(
            "--workspace", "-w", help="Workspace directory (default: current)"
        )
        create_parser.add_argument("--config", "-c", help="YAML configuration file")
        create_parser.add_argument(
            "--quiet", "-q", action="store_true", help="Suppress progress output"
        )

        # Info command
        info_parser = subparsers.add_parser(
            "info", help="Display information about an existing archive"
        )
        info_parser.add_argument("archive_path", help="Path to the archive file")
        info_parser.add_argument(
            "--detailed", action="store_true", help="Show detailed file listing"
        )

        # Verify command
        verify_parser = subparsers.add_parser("verify", help="Verify archive integrity")
        verify_parser.add_argument(
            "archive_path", help="Path to the archive file to verify"
        )

        return parser

    def run(self, args: Optional[list] = None) -> int:
        """Run the CLI with the given arguments."""
        parsed_args = self.parser.parse_args(args)

        if not parsed_args.command:
            self.parser.print_help()
            return 1

        if parsed_args.verbose:
            logging.getLogger().setLevel(logging.DEBUG)

        try:
            if parsed_args.command == "create":
                return self._handle_create(parsed_args)
            elif parsed_args.command == "info":
                return self._handle_info(parsed_args)
            elif parsed_args.command == "verify":
                return self._handle_verify(parsed_args)
            else:
                logger.error("Unknown command: %s", parsed_args.command)
                return 1

        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130
        except Exception as e:
            logger.error("Error: %s", e)
            logger.debug("Full error details:", exc_info=True)
            return 1

    @staticmethod
    def _pick(value, default):
        return default if value is None else value

    def _handle_create(self, args) -> int:
        """Handle the 'create' command."""
        workspace = Path(args.workspace) if args.workspace else Path.cwd()
        config = load_config(args.config, str(workspace))
        defaults = config["defaults"]
        writer = config["writer"]

        if not args.verbose:
            level = logging.WARNING if args.quiet else config["logging"]["level"]
            logging.getLogger().setLevel(resolve_level(level))

        registrar = None
        if args.archive:
            artifacts_dir = Path(args.artifacts_dir or config["artifacts"]["directory"])
            if not artifacts_dir.is_absolute():
                artifacts_dir = workspace / artifacts_dir
            registrar = DirectoryArtifactRegistrar(artifacts_dir)

        outcome = create_tar_archive(
            dest_path=args.file,
            base_dir=args.dir,
            include_glob=self._pick(args.glob, defaults["glob"]) or "",
            exclude_glob=self._pick(args.exclude, defaults["exclude"]) or "",
            default_excludes=bool(
                self._pick(args.default_excludes, defaults["default_excludes"])
            ),
            compress=bool(self._pick(args.compress, defaults["compress"])),
            overwrite=bool(self._pick(args.overwrite, defaults["overwrite"])),
            archive=args.archive,
            workspace=str(workspace),
            registrar=registrar,
            compression_level=int(writer["compression_level"]),
            chunk_size=int(writer["chunk_size"]),
        )

        if not outcome.succeeded:
            logger.error("Archive creation failed: %s", outcome.message)
            return 1

        logger.success(
            "Archive created successfully: %s (%d entries, %.2f MB)",
            outcome.archive_path,
            outcome.entry_count,
            outcome.bytes_written / (1024 * 1024),
        )
        return 0

    def _handle_info(self, args) -> int:
        """Handle the 'info' command."""
        archive_path = Path(args.archive_path)

        if not archive_path.exists():
            logger.error("Archive file does not exist: %s", archive_path)
            return 1

        try:
            self._display_archive_info(str(archive_path), args.detailed)
            return 0
        except OSError as e:
            logger.error("Failed to read archive info: %s", e)
            return 1

    def _handle_verify(self, args) -> int:
        """Handle the 'verify' command."""
        archive_path = Path(args.archive_path)

        if not archive_path.exists():
            logger.error("Archive file does not exist: %s", archive_path)
            return 1

        logger.info("Verifying archive integrity: %s", archive_path)
        if self.verifier.verify_archive_integrity(str(archive_path)):
            logger.success("Archive integrity check passed")
            return 0

        logger.error("Archive integrity check failed")
        return 1

    def _display_archive_info(self, archive_path: str, detailed: bool = False) -> None:
        """Display information about an archive file."""
        info = self.verifier.get_archive_info(archive_path)

        logger.info("Archive: %s", info["path"])
        logger.info("Format: %s", info["format"].upper())
        logger.info(
            "Size: %.2f MB (%d bytes)", info["size_bytes"] / (1024 * 1024), info["size_bytes"]
        )
        logger.info("Modified: %s", info["modified_time"])
        logger.info("Files: %d", info["file_count"])
        logger.info("Uncompressed size: %.2f MB", info["uncompressed_size"] / (1024 * 1024))
        logger.info("Valid: %s", "Yes" if info["valid"] else "No")

        if detailed and info["valid"]:
            logger.info("")
            logger.info("File listing:")
            for name, size in self.verifier.list_entries(archive_path):
                logger.info("  %s (%.1f KB)", name, size / 1024)


def main():
    """Main entry point for the CLI."""
    setup_colored_logging(level=logging.INFO)

    cli = TarCLI()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
