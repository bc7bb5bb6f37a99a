from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import assemble.cli as cli
from assemble.contracts import AssembleError, AssembleResult, Orientation, PipelineName, Stage
from rename_protocol.artifacts import journal_path_for
from rename_protocol.module import apply, build_mapping


def _result(ok: bool, representative: str = "x") -> AssembleResult:
    return AssembleResult(
        ok=ok,
        pipeline=PipelineName.PDF_MERGE,
        representative=representative,
        stages=list(Stage),
        sequence=[representative],
        output="x-assembled.pdf" if ok else None,
        errors=[] if ok else [AssembleError(code="SEQUENCE_MISMATCH", message="boom")],
        meta={},
    )


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_version_exits_zero(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            cli.main(["--version"])
        self.assertEqual(ctx.exception.code, 0)

    def test_help_exits_zero(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            cli.main(["--help"])
        self.assertEqual(ctx.exception.code, 0)

    def test_no_files_is_usage_error(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            cli.main([])
        self.assertEqual(ctx.exception.code, 2)

    def test_mixed_inputs_rejected(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            cli.main(["a.pdf", "page_0001.png"])
        self.assertEqual(ctx.exception.code, 2)

    def test_landscape_flags_are_exclusive(self) -> None:
        with self.assertRaises(SystemExit):
            cli.main(["a.pdf", "--landscape", "--reverse-landscape"])

    def test_default_runs_all_stages_for_pdfs(self) -> None:
        with patch("assemble.cli.run_pdf_pipeline", return_value=_result(True)) as run:
            code = cli.main(["--work-dir", str(self.root), "My_file.CH.1.pdf"])

        self.assertEqual(code, 0)
        kwargs = run.call_args.kwargs
        self.assertEqual(kwargs["filenames"], ["My_file.CH.1.pdf"])
        self.assertEqual(kwargs["stages"], [Stage.RESCALE, Stage.DESCRIBE, Stage.COMPILE])
        self.assertEqual(kwargs["orientation"], Orientation.PORTRAIT)
        self.assertEqual(kwargs["config"].work_dir, self.root.resolve())

    def test_stage_and_orientation_flags(self) -> None:
        with patch("assemble.cli.run_pdf_pipeline", return_value=_result(True)) as run:
            cli.main(["--work-dir", str(self.root), "--describe", "--reverse-landscape", "a.pdf", "b.pdf"])

        kwargs = run.call_args.kwargs
        self.assertEqual(kwargs["filenames"], ["a.pdf", "b.pdf"])
        self.assertEqual(kwargs["stages"], [Stage.DESCRIBE])
        self.assertEqual(kwargs["orientation"], Orientation.REVERSE_LANDSCAPE)

    def test_each_image_is_its_own_sequence(self) -> None:
        with patch("assemble.cli.run_image_pipeline", return_value=_result(True)) as run:
            code = cli.main(["--work-dir", str(self.root), "--rescale", "a_01.png", "b_01.png"])

        self.assertEqual(code, 0)
        self.assertEqual([c.kwargs["representative"] for c in run.call_args_list], ["a_01.png", "b_01.png"])
        self.assertEqual(run.call_args.kwargs["stages"], [Stage.RESCALE])

    def test_failure_exits_nonzero_and_stops(self) -> None:
        with patch("assemble.cli.run_image_pipeline", return_value=_result(False)) as run:
            code = cli.main(["--work-dir", str(self.root), "a_01.png", "b_01.png"])

        self.assertEqual(code, 2)
        self.assertEqual(run.call_count, 1)

    def test_report_written(self) -> None:
        report = self.root / "out" / "report.json"
        with patch("assemble.cli.run_pdf_pipeline", return_value=_result(False, "a.pdf")):
            code = cli.main(["--work-dir", str(self.root), "--report", str(report), "a.pdf"])

        self.assertEqual(code, 2)
        payload = json.loads(report.read_text(encoding="utf-8"))
        self.assertFalse(payload["ok"])
        self.assertEqual(payload["runs"][0]["errors"][0]["code"], "SEQUENCE_MISMATCH")

    def test_invalid_geometry_is_usage_error(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            cli.main(["--work-dir", str(self.root), "--width-px", "0", "a.pdf"])
        self.assertEqual(ctx.exception.code, 2)

    def test_revert_journal_restores_names(self) -> None:
        for name in ("doc.CH.1.pdf", "doc.CH.2.pdf"):
            (self.root / name).write_bytes(b"")
        journal_file = journal_path_for(directory=self.root, stem="doc-assembled")
        apply(build_mapping(["doc.CH.1.pdf", "doc.CH.2.pdf"], directory=self.root), journal_file=journal_file)
        self.assertFalse((self.root / "doc.CH.1.pdf").exists())

        code = cli.main(["--revert-journal", str(journal_file)])

        self.assertEqual(code, 0)
        self.assertTrue((self.root / "doc.CH.1.pdf").exists())
        self.assertTrue((self.root / "doc.CH.2.pdf").exists())
        self.assertFalse(journal_file.exists())

    def test_revert_journal_unreadable(self) -> None:
        bad = self.root / "bad.json"
        bad.write_text("[]", encoding="utf-8")
        self.assertEqual(cli.main(["--revert-journal", str(bad)]), 2)


if __name__ == "__main__":
    unittest.main()
