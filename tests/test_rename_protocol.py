from __future__ import annotations

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from page_sequence.contracts import MissingInputFile
from rename_protocol.artifacts import journal_path_for, read_rename_journal_json
from rename_protocol.contracts import RenameApplyError, RenameCollision, RenameRevertError, UnsafeDirectoryName
from rename_protocol.module import apply, build_mapping, restore_name, revert, sanitize, sanitize_name

AWKWARD_NAMES = [
    "My_file.CH.1.pdf",
    "My file, part 2.pdf",
    "scan 3.v2.png",
    "a+b.pdf",
    "a b.pdf",
    "a+sb.pdf",
    "tabbed\tname.pdf",
    "no_extension",
    "plain.pdf",
]


class TestSanitize(unittest.TestCase):
    def test_special_characters_are_replaced(self) -> None:
        for name in AWKWARD_NAMES:
            with self.subTest(name=name):
                safe = sanitize_name(name)
                base, _, ext = safe.rpartition(".")
                stem = base if "." in safe else safe
                self.assertNotIn(",", safe)
                self.assertFalse(any(ch.isspace() for ch in safe))
                self.assertNotIn(".", stem)

    def test_final_extension_is_kept(self) -> None:
        self.assertEqual(sanitize_name("My_file.CH.1.pdf"), "My_file+dCH+d1.pdf")
        self.assertEqual(sanitize_name("My file, part 2.pdf"), "My+sfile+c+spart+s2.pdf")

    def test_unchanged_when_already_safe(self) -> None:
        self.assertEqual(sanitize_name("page_0001_small.jpg"), "page_0001_small.jpg")

    def test_injective(self) -> None:
        out = sanitize(AWKWARD_NAMES)
        self.assertEqual(len(set(out)), len(AWKWARD_NAMES))

    def test_order_preserving(self) -> None:
        self.assertEqual(sanitize(AWKWARD_NAMES), [sanitize_name(n) for n in AWKWARD_NAMES])

    def test_restore_inverts_sanitize(self) -> None:
        for name in AWKWARD_NAMES + ["x y.pdf", "dir/sub_dir/a b.c.pdf"]:
            with self.subTest(name=name):
                self.assertEqual(restore_name(sanitize_name(name)), name)

    def test_directory_part_untouched(self) -> None:
        self.assertEqual(sanitize_name("in.put/My.file.pdf"), "in.put/My+dfile.pdf")

    def test_whitespace_in_directory_part_rejected(self) -> None:
        with self.assertRaises(UnsafeDirectoryName) as ctx:
            sanitize_name("in put/My.file.pdf")
        self.assertEqual(ctx.exception.code, "UNSAFE_DIRECTORY_NAME")
        self.assertEqual(ctx.exception.detail["directory"], "in put/")


class TestApplyRevert(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _touch(self, *names: str) -> None:
        for name in names:
            (self.root / name).write_text(name, encoding="utf-8")

    def _listing(self) -> list[str]:
        return sorted(os.listdir(self.root))

    def test_round_trip_restores_listing(self) -> None:
        names = ["My_file.CH.1.pdf", "My file, part 2.pdf", "scan 3.v2.png", "plain.pdf"]
        self._touch(*names, "unrelated.txt")
        before = self._listing()

        mapping = build_mapping(names, directory=self.root)
        journal = apply(mapping)
        during = self._listing()
        self.assertIn("My_file+dCH+d1.pdf", during)
        self.assertNotIn("My_file.CH.1.pdf", during)
        # Unchanged pairs are never touched.
        self.assertEqual([p.original for p in journal.pairs].count("plain.pdf"), 0)

        revert(journal)
        self.assertEqual(self._listing(), before)
        for name in names:
            self.assertEqual((self.root / name).read_text(encoding="utf-8"), name)

    def test_chained_targets_do_not_clobber(self) -> None:
        # "a b.pdf" sanitizes to "a+sb.pdf", which is itself an input.
        names = ["a b.pdf", "a+sb.pdf"]
        self._touch(*names)
        before = self._listing()

        journal = apply(build_mapping(names, directory=self.root))
        self.assertEqual((self.root / "a+sb.pdf").read_text(encoding="utf-8"), "a b.pdf")
        self.assertEqual((self.root / "a++sb.pdf").read_text(encoding="utf-8"), "a+sb.pdf")

        revert(journal)
        self.assertEqual(self._listing(), before)
        self.assertEqual((self.root / "a b.pdf").read_text(encoding="utf-8"), "a b.pdf")

    def test_revert_of_mapping_works_like_journal(self) -> None:
        names = ["x.y.pdf", "z w.pdf"]
        self._touch(*names)
        before = self._listing()
        mapping = build_mapping(names, directory=self.root)
        apply(mapping)
        revert(mapping)
        self.assertEqual(self._listing(), before)

    def test_collision_with_outside_file_detected_before_mutation(self) -> None:
        self._touch("x.y.pdf", "x+dy.pdf")
        before = self._listing()
        with self.assertRaises(RenameCollision):
            build_mapping(["x.y.pdf"], directory=self.root)
        self.assertEqual(self._listing(), before)

    def test_missing_original_detected(self) -> None:
        with self.assertRaises(MissingInputFile):
            build_mapping(["ghost.a.pdf"], directory=self.root)

    def test_duplicate_names_rejected(self) -> None:
        self._touch("x.y.pdf")
        with self.assertRaises(RenameCollision):
            build_mapping(["x.y.pdf", "x.y.pdf"], directory=self.root)

    def test_partial_apply_failure_reports_completed_renames(self) -> None:
        names = ["a.1.pdf", "b.2.pdf", "c.3.pdf"]
        self._touch(*names)
        mapping = build_mapping(names, directory=self.root)

        real_rename = Path.rename
        calls = {"n": 0}

        def flaky_rename(self_path: Path, target):
            calls["n"] += 1
            if calls["n"] == 2:
                raise PermissionError("denied")
            return real_rename(self_path, target)

        with patch.object(Path, "rename", flaky_rename):
            with self.assertRaises(RenameApplyError) as ctx:
                apply(mapping)

        journal = ctx.exception.journal
        self.assertEqual(len(journal.pairs), 1)
        self.assertEqual(ctx.exception.code, "RENAME_APPLY_FAILED")

        revert(journal)
        self.assertEqual(self._listing(), sorted(names))

    def test_revert_reports_unrestorable_pairs(self) -> None:
        names = ["a.1.pdf", "b.2.pdf"]
        self._touch(*names)
        journal = apply(build_mapping(names, directory=self.root))
        (self.root / "a+d1.pdf").unlink()

        with self.assertRaises(RenameRevertError) as ctx:
            revert(journal)
        self.assertEqual([p.original for p in ctx.exception.unreverted], ["a.1.pdf"])
        self.assertTrue((self.root / "b.2.pdf").exists())

    def test_journal_file_tracks_live_renames(self) -> None:
        names = ["doc.CH.1.pdf", "doc.CH.2.pdf"]
        self._touch(*names)
        journal_file = journal_path_for(directory=self.root, stem="doc")

        journal = apply(build_mapping(names, directory=self.root), journal_file=journal_file)
        payload = json.loads(journal_file.read_text(encoding="utf-8"))
        self.assertEqual(len(payload["pairs"]), 2)

        reloaded = read_rename_journal_json(journal_file)
        self.assertEqual(reloaded.pairs, journal.pairs)

        revert(reloaded)
        self.assertFalse(journal_file.exists())
        self.assertEqual(self._listing(), sorted(names))


if __name__ == "__main__":
    unittest.main()
