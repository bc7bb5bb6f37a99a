from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rename_protocol import RenameRevertError, read_rename_journal_json, revert

from .artifacts import write_assemble_report_json
from .contracts import AssembleConfig, AssembleResult, Orientation, Stage
from .module import run_image_pipeline, run_pdf_pipeline
from .version import __version__

LOG = logging.getLogger("assemble")

_LOGGERS = ("assemble", "page_sequence", "rename_protocol")


def setup_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else (logging.INFO if verbose else logging.WARNING)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    for name in _LOGGERS:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.propagate = False
        logger.handlers[:] = [handler]


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="assemble-pages",
        description=(
            "Resolve a loosely named set of page scans or partial pdfs into one ordered "
            "sequence and merge it into a single pdf via pdflatex."
        ),
    )
    p.add_argument(
        "files",
        nargs="*",
        help=(
            "One image per sequence (the first page, e.g. page_0001.png), one pdf whose "
            "same-prefix siblings are merged, or several pdfs merged in the given order."
        ),
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    stages = p.add_argument_group("stages (default: all)")
    stages.add_argument("--rescale", action="store_true", help="Rescale raw scans to *_small.jpg.")
    stages.add_argument("--describe", action="store_true", help="Write the .tex document descriptions.")
    stages.add_argument("--compile", action="store_true", help="Run the compiler on the descriptions.")

    orientation = p.add_mutually_exclusive_group()
    orientation.add_argument("--landscape", action="store_true", help="Rotate merged pdf pages by 90 degrees.")
    orientation.add_argument(
        "--reverse-landscape",
        action="store_true",
        help="Rotate merged pdf pages by 270 degrees.",
    )

    p.add_argument("--work-dir", type=Path, default=Path("."), help="Directory the file arguments are relative to.")
    p.add_argument("--width-px", type=int, default=1390, help="Scaled page width in pixels (default: 1390).")
    p.add_argument("--height-px", type=int, default=1950, help="Scaled page height in pixels (default: 1950).")
    p.add_argument("--density-ppi", type=int, default=178, help="Scaled page density (default: 178).")
    p.add_argument("--quality", type=int, default=85, help="JPEG quality of scaled pages (default: 85).")
    p.add_argument("--compiler", default="pdflatex", help="Compiler binary (default: pdflatex).")
    p.add_argument(
        "--compile-timeout-s",
        type=float,
        default=None,
        help="Abort a compile after this many seconds (default: wait indefinitely).",
    )
    p.add_argument(
        "--keep-intermediates",
        action="store_true",
        help="Keep generated .tex files and the inner pdf after compiling.",
    )
    p.add_argument("--report", type=Path, default=None, help="Write a JSON run report to this file.")
    p.add_argument(
        "--revert-journal",
        type=Path,
        default=None,
        help="Restore original names from a rename journal left by a failed run, then exit.",
    )
    p.add_argument("--verbose", action="store_true", help="Verbose progress logs.")
    p.add_argument("--debug", action="store_true", help="Debug logs.")
    return p


def _selected_stages(args: argparse.Namespace) -> list[Stage]:
    selected = [
        stage
        for stage, flag in ((Stage.RESCALE, args.rescale), (Stage.DESCRIBE, args.describe), (Stage.COMPILE, args.compile))
        if flag
    ]
    return selected or list(Stage)


def _orientation(args: argparse.Namespace) -> Orientation:
    if args.landscape:
        return Orientation.LANDSCAPE
    if args.reverse_landscape:
        return Orientation.REVERSE_LANDSCAPE
    return Orientation.PORTRAIT


def _revert_journal(journal_file: Path) -> int:
    try:
        journal = read_rename_journal_json(journal_file)
    except (OSError, ValueError) as e:
        LOG.error("Cannot read rename journal %s: %s", journal_file, e)
        return 2
    try:
        revert(journal)
    except RenameRevertError as e:
        LOG.error("%s: %s", e.message, e.detail.get("unreverted"))
        return 2
    return 0


def _log_result(result: AssembleResult) -> None:
    if result.ok:
        if result.output:
            LOG.info("%s: %d page file(s) -> %s", result.representative, len(result.sequence), result.output)
        return
    for err in result.errors:
        LOG.error("%s [%s]: %s", result.representative, err.code, err.message)


def main(argv: list[str] | None = None) -> int:
    p = build_arg_parser()
    args = p.parse_args(argv)
    setup_logging(args.verbose, args.debug)

    if args.revert_journal is not None:
        return _revert_journal(args.revert_journal)

    if not args.files:
        p.error("at least one file is required")

    pdfs = [f for f in args.files if f.lower().endswith(".pdf")]
    if pdfs and len(pdfs) != len(args.files):
        p.error("pdf and image inputs cannot be mixed in one run")

    try:
        config = AssembleConfig(
            work_dir=args.work_dir.expanduser().resolve(),
            width_px=args.width_px,
            height_px=args.height_px,
            density_ppi=args.density_ppi,
            quality=args.quality,
            compiler=args.compiler,
            compile_timeout_s=args.compile_timeout_s,
            keep_intermediates=args.keep_intermediates,
        )
    except ValueError as e:
        p.error(str(e))

    stages = _selected_stages(args)
    results: list[AssembleResult] = []
    if pdfs:
        results.append(
            run_pdf_pipeline(config=config, filenames=pdfs, stages=stages, orientation=_orientation(args))
        )
    else:
        if args.landscape or args.reverse_landscape:
            LOG.warning("--landscape/--reverse-landscape only apply to pdf inputs; ignored")
        for representative in args.files:
            result = run_image_pipeline(config=config, representative=representative, stages=stages)
            results.append(result)
            if not result.ok:
                break

    for result in results:
        _log_result(result)

    if args.report is not None:
        write_assemble_report_json(results=results, out_report=args.report)

    return 0 if all(r.ok for r in results) else 2


if __name__ == "__main__":
    raise SystemExit(main())
