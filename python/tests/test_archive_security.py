"""
Tests for destination handling: self-reference guard and overwrite policy.
"""

import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from tar_ops import (
    SelfReferenceGuard,
    OverwriteArbiter,
    AlreadyExists,
    InvalidArgument,
    IOFailure,
    canonical_path,
    exclude_self,
    select,
)


class TestSelfReferenceGuard(unittest.TestCase):
    """Test that the destination is never archived into itself."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.base = Path(self.temp_dir)

        for file_path in ["src/hello.txt", "src/output.tgz", "out/output.tgz"]:
            full_path = self.base / file_path
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_text(file_path, encoding="utf-8")

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _names(self, entries):
        return [entry.relative_path for entry in entries]

    def test_removes_destination(self):
        candidates = select(self.base, "", "")
        kept = exclude_self(candidates, self.base, self.base / "src" / "output.tgz")

        self.assertEqual(self._names(kept), ["out/output.tgz", "src/hello.txt"])

    def test_non_canonical_destination_spelling(self):
        candidates = select(self.base, "", "")
        dest = Path(str(self.base) + "/src/../src//output.tgz")

        kept = exclude_self(candidates, self.base, dest)

        self.assertNotIn("src/output.tgz", self._names(kept))
        self.assertEqual(len(kept), 2)

    def test_same_name_in_other_directory_is_kept(self):
        candidates = select(self.base / "src", "", "")
        kept = exclude_self(candidates, self.base / "src", self.base / "out" / "output.tgz")

        self.assertEqual(self._names(kept), ["hello.txt", "output.tgz"])

    def test_destination_spelled_through_sibling_directory(self):
        candidates = select(self.base / "src", "", "")
        guard = SelfReferenceGuard()

        kept = guard.exclude_self(
            candidates, self.base / "src", self.base / "out" / ".." / "src" / "output.tgz"
        )

        self.assertEqual(self._names(kept), ["hello.txt"])

    @unittest.skipIf(os.name == "nt", "symlinks need privileges on Windows")
    def test_symlinked_destination_directory(self):
        os.symlink(self.base / "src", self.base / "alias")
        candidates = select(self.base / "src", "", "")

        kept = exclude_self(candidates, self.base / "src", self.base / "alias" / "output.tgz")

        self.assertEqual(self._names(kept), ["hello.txt"])

    def test_canonical_path_normalizes(self):
        self.assertEqual(
            canonical_path(self.base / "src" / ".." / "src" / "hello.txt"),
            canonical_path(self.base / "src" / "hello.txt"),
        )


class TestOverwriteArbiter(unittest.TestCase):
    """Test the overwrite policy for existing archives."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.arbiter = OverwriteArbiter()
        self.existing = Path(self.temp_dir) / "hello.tar.gz"
        self.existing.write_text("Hello Tar!", encoding="utf-8")

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_existing_without_overwrite_fails(self):
        with self.assertRaises(AlreadyExists) as ctx:
            self.arbiter.prepare_destination(self.existing, overwrite=False)

        self.assertTrue(str(ctx.exception).endswith("hello.tar.gz exists."))
        self.assertEqual(self.existing.read_text(encoding="utf-8"), "Hello Tar!")

    def test_existing_with_overwrite_is_deleted(self):
        resolved = self.arbiter.prepare_destination(self.existing, overwrite=True)

        self.assertTrue(resolved.existed_before)
        self.assertFalse(self.existing.exists())
        self.assertEqual(resolved.canonical_path, canonical_path(self.existing))

    def test_missing_destination_proceeds(self):
        missing = Path(self.temp_dir) / "new.tgz"

        for overwrite in (False, True):
            resolved = self.arbiter.prepare_destination(missing, overwrite=overwrite)
            self.assertFalse(resolved.existed_before)

    def test_directory_destination_rejected(self):
        with self.assertRaises(InvalidArgument):
            self.arbiter.prepare_destination(Path(self.temp_dir), overwrite=True)

    def test_delete_failure_reports_io_failure(self):
        with patch.object(Path, "unlink", side_effect=PermissionError("denied")):
            with self.assertRaises(IOFailure) as ctx:
                self.arbiter.prepare_destination(self.existing, overwrite=True)

        self.assertIn("Failed to delete", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
