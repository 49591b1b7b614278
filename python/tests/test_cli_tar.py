"""
Integration tests for the tar CLI tool.
"""

import shutil
import tarfile
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from cli_tar import TarCLI
from tar_ops import ArchiveOutcome


class TestTarCLIBehavior(unittest.TestCase):
    """Test the tar CLI commands."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.workspace = Path(self.temp_dir)
        self.cli = TarCLI()

        test_files = {
            "docs/readme.md": "# Readme",
            "docs/notes.txt": "Notes",
            "src/main.py": "print('hi')",
            ".git/HEAD": "ref: refs/heads/main",
        }
        for file_path, content in test_files.items():
            full_path = self.workspace / file_path
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_text(content, encoding="utf-8")

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _names(self, archive_path):
        with tarfile.open(archive_path, mode="r:*") as tar:
            return tar.getnames()

    def test_no_command_prints_help(self):
        with patch("sys.stdout"):
            self.assertEqual(self.cli.run([]), 1)

    def test_create_command_basic(self):
        args = ["create", "--file", "out.tgz", "--workspace", self.temp_dir]

        result = self.cli.run(args)

        self.assertEqual(result, 0)
        self.assertEqual(
            self._names(self.workspace / "out.tgz"),
            ["docs/notes.txt", "docs/readme.md", "src/main.py"],
        )

    def test_create_command_with_filters(self):
        args = [
            "create",
            "--file",
            "out.tar",
            "--dir",
            "docs",
            "--glob",
            "*.md,*.txt",
            "--exclude",
            "notes.*",
            "--no-compress",
            "--workspace",
            self.temp_dir,
        ]

        self.assertEqual(self.cli.run(args), 0)
        self.assertEqual(self._names(self.workspace / "out.tar"), ["readme.md"])

    def test_create_command_without_default_excludes(self):
        args = [
            "create",
            "--file",
            "out.tgz",
            "--no-default-excludes",
            "--workspace",
            self.temp_dir,
        ]

        self.assertEqual(self.cli.run(args), 0)
        self.assertIn(".git/HEAD", self._names(self.workspace / "out.tgz"))

    def test_create_command_refuses_existing_file(self):
        existing = self.workspace / "out.tgz"
        existing.write_text("old", encoding="utf-8")

        result = self.cli.run(["create", "--file", "out.tgz", "--workspace", self.temp_dir])

        self.assertEqual(result, 1)
        self.assertEqual(existing.read_text(encoding="utf-8"), "old")

    def test_create_command_overwrite(self):
        existing = self.workspace / "out.tgz"
        existing.write_text("old", encoding="utf-8")

        result = self.cli.run(
            ["create", "--file", "out.tgz", "--overwrite", "--workspace", self.temp_dir]
        )

        self.assertEqual(result, 0)
        self.assertNotIn("out.tgz", self._names(existing))

    def test_create_command_empty_file(self):
        result = self.cli.run(["create", "--workspace", self.temp_dir])
        self.assertEqual(result, 1)

    def test_create_command_archive_to_artifacts(self):
        artifacts = Path(tempfile.mkdtemp())
        self.addCleanup(shutil.rmtree, artifacts, True)

        result = self.cli.run(
            [
                "create",
                "--file",
                "build/out.tgz",
                "--archive",
                "--artifacts-dir",
                str(artifacts),
                "--workspace",
                self.temp_dir,
            ]
        )

        self.assertEqual(result, 0)
        self.assertTrue((artifacts / "build" / "out.tgz").exists())

    def test_create_command_uses_config_defaults(self):
        config_file = self.workspace / "tar-config.yml"
        config_file.write_text(
            "defaults:\n  compress: false\n  glob: 'src/**'\n", encoding="utf-8"
        )

        result = self.cli.run(["create", "--file", "out.tar", "--workspace", self.temp_dir])

        self.assertEqual(result, 0)
        with open(self.workspace / "out.tar", "rb") as f:
            self.assertNotEqual(f.read(2), b"\x1f\x8b")
        self.assertEqual(self._names(self.workspace / "out.tar"), ["src/main.py"])

    def test_flags_override_config(self):
        (self.workspace / "tar-config.yml").write_text(
            "defaults:\n  compress: false\n", encoding="utf-8"
        )

        result = self.cli.run(
            ["create", "--file", "out.tgz", "--compress", "--workspace", self.temp_dir]
        )

        self.assertEqual(result, 0)
        with open(self.workspace / "out.tgz", "rb") as f:
            self.assertEqual(f.read(2), b"\x1f\x8b")

    def test_create_passes_options_to_engine(self):
        outcome = ArchiveOutcome(entry_count=3, succeeded=True, archive_path="x.tgz")

        with patch("cli_tar.create_tar_archive", return_value=outcome) as mock_create:
            result = self.cli.run(
                [
                    "create",
                    "--file",
                    "x.tgz",
                    "--glob",
                    "**/*.md",
                    "--overwrite",
                    "--workspace",
                    self.temp_dir,
                ]
            )

        self.assertEqual(result, 0)
        kwargs = mock_create.call_args[1]
        self.assertEqual(kwargs["include_glob"], "**/*.md")
        self.assertTrue(kwargs["overwrite"])
        self.assertTrue(kwargs["compress"])
        self.assertIsNone(kwargs["registrar"])

    def test_unexpected_error_returns_one(self):
        with patch("cli_tar.create_tar_archive", side_effect=RuntimeError("boom")):
            result = self.cli.run(["create", "--file", "x.tgz", "--workspace", self.temp_dir])

        self.assertEqual(result, 1)

    def test_keyboard_interrupt(self):
        with patch("cli_tar.create_tar_archive", side_effect=KeyboardInterrupt):
            result = self.cli.run(["create", "--file", "x.tgz", "--workspace", self.temp_dir])

        self.assertEqual(result, 130)

    def test_info_and_verify_commands(self):
        self.cli.run(["create", "--file", "out.tgz", "--workspace", self.temp_dir])
        archive = str(self.workspace / "out.tgz")

        self.assertEqual(self.cli.run(["info", archive, "--detailed"]), 0)
        self.assertEqual(self.cli.run(["verify", archive]), 0)

    def test_verify_rejects_corrupt_archive(self):
        corrupt = self.workspace / "corrupt.tar"
        corrupt.write_bytes(b"not a tar archive at all" * 3)

        self.assertEqual(self.cli.run(["verify", str(corrupt)]), 1)

    def test_info_missing_archive(self):
        self.assertEqual(self.cli.run(["info", str(self.workspace / "missing.tgz")]), 1)


if __name__ == "__main__":
    unittest.main()
