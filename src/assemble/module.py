from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from page_sequence import (
    AssembleFailure,
    MissingInputFile,
    ResolvedSequence,
    SequenceKind,
    resolve,
    scaled_name_for,
    split_name,
)
from rename_protocol import (
    RenameApplyError,
    RenameRevertError,
    apply,
    build_mapping,
    journal_path_for,
    revert,
    sanitize,
    sanitize_name,
)

from .contracts import (
    ALL_STAGES,
    AssembleConfig,
    AssembleError,
    AssembleResult,
    CompilerEngineName,
    ExternalToolError,
    Orientation,
    PipelineName,
    RescaleEngineName,
    Stage,
)
from .descriptions import build_inner_document, build_merge_document, build_outer_document, write_description
from .engines import PdflatexCliEngine, PillowRescaleEngine

LOG = logging.getLogger("assemble")

_STEM_SEPARATORS = "._-, \t"
_COMPILER_BYPRODUCTS = (".aux", ".log")


def _get_rescale_engine(engine: RescaleEngineName):
    if engine == RescaleEngineName.PILLOW:
        return PillowRescaleEngine()
    raise ValueError(f"Unsupported rescale engine: {engine}")


def _get_compiler_engine(engine: CompilerEngineName):
    if engine == CompilerEngineName.PDFLATEX_CLI:
        return PdflatexCliEngine()
    raise ValueError(f"Unsupported compiler engine: {engine}")


@dataclass(frozen=True, slots=True)
class _DocumentPlan:
    """
    File layout of one output document. Generated files use the escaped stem
    so the compiler never sees periods or spaces; only the final pdf carries
    the readable stem.
    """

    directory: Path
    stem: str

    @property
    def safe_stem(self) -> str:
        return sanitize_name(f"{self.stem}.tex")[: -len(".tex")]

    @property
    def tex_file(self) -> Path:
        return self.directory / f"{self.safe_stem}.tex"

    @property
    def compiled_pdf(self) -> Path:
        return self.directory / f"{self.safe_stem}.pdf"

    @property
    def inner_tex_file(self) -> Path:
        return self.directory / f"{self.safe_stem}-inner.tex"

    @property
    def inner_pdf(self) -> Path:
        return self.directory / f"{self.safe_stem}-inner.pdf"

    @property
    def output_pdf(self) -> Path:
        return self.directory / f"{self.stem}.pdf"

    @property
    def journal_file(self) -> Path:
        return journal_path_for(directory=self.directory, stem=self.safe_stem)


def image_document_stem(prefix: str) -> str:
    """page_ -> page"""
    return prefix.rstrip(_STEM_SEPARATORS) or "document"


def pdf_document_stem(prefix: str, *, marker: str) -> str:
    """My_file.CH. -> My_file-assembled"""
    head = prefix.split(".", 1)[0].rstrip(_STEM_SEPARATORS) or "document"
    return f"{head}{marker}"


def explicit_document_stem(first: str, *, marker: str) -> str:
    """01_file.pdf -> 01_file-assembled"""
    return f"{Path(first).stem}{marker}"


def _ordered_stages(stages: Iterable[Stage]) -> list[Stage]:
    requested = set(stages) or set(ALL_STAGES)
    return [s for s in ALL_STAGES if s in requested]


def _require_inputs(*, base: Path, filenames: list[str]) -> None:
    for name in filenames:
        if not (base / name).is_file():
            raise MissingInputFile(
                f"Input file not found: {name}",
                detail={"filename": name, "work_dir": str(base)},
            )


def _relpath(path: Path, *, base: Path) -> str:
    try:
        return path.resolve().relative_to(base.resolve()).as_posix()
    except ValueError:
        return str(path)


def _cleanup(*, plan: _DocumentPlan, keep_intermediates: bool) -> None:
    for stem in (plan.safe_stem, f"{plan.safe_stem}-inner"):
        for suffix in _COMPILER_BYPRODUCTS:
            (plan.directory / f"{stem}{suffix}").unlink(missing_ok=True)

    if keep_intermediates:
        return
    for path in (plan.tex_file, plan.inner_tex_file, plan.inner_pdf):
        path.unlink(missing_ok=True)
    if plan.compiled_pdf != plan.output_pdf:
        plan.compiled_pdf.unlink(missing_ok=True)


def _compile_with_renames(
    *,
    config: AssembleConfig,
    plan: _DocumentPlan,
    sequence: ResolvedSequence,
    tex_files: list[Path],
    meta: dict[str, Any],
) -> Path:
    """
    apply renames -> compile each description in order -> revert renames.

    A failed apply is undone for exactly the renames that succeeded. A failed
    compile leaves the renames in place (the compiler may have written next to
    them) and reports them, with the journal path, for manual recovery.
    """

    _require_inputs(base=plan.directory, filenames=[t.name for t in tex_files])

    mapping = build_mapping(sequence.names, directory=sequence.directory)
    try:
        journal = apply(mapping, journal_file=plan.journal_file)
    except RenameApplyError as e:
        LOG.error("%s; undoing %d completed rename(s)", e.message, len(e.journal.pairs))
        try:
            revert(e.journal)
        except RenameRevertError as revert_error:
            e.detail["unreverted"] = revert_error.detail.get("unreverted", [])
            e.detail["rename_journal"] = str(plan.journal_file)
        raise

    compiler = _get_compiler_engine(config.compiler_engine)
    try:
        for tex_file in tex_files:
            compiled = compiler.compile(config=config, tex_file=tex_file)
            meta.setdefault("compile_log_tail", {})[tex_file.name] = compiled.log_tail
    except ExternalToolError as e:
        pending = [{"original": p.original, "sanitized": p.sanitized} for p in journal.pairs]
        e.detail["pending_renames"] = pending
        e.detail["rename_journal"] = str(plan.journal_file)
        LOG.error(
            "%s. %d file(s) are still renamed in %s; restore them with: assemble-pages --revert-journal %s",
            e.message,
            len(pending),
            sequence.directory,
            plan.journal_file,
        )
        raise

    revert(journal)

    if plan.compiled_pdf != plan.output_pdf:
        plan.compiled_pdf.replace(plan.output_pdf)
    _cleanup(plan=plan, keep_intermediates=config.keep_intermediates)
    LOG.info("Wrote %s", plan.output_pdf)
    return plan.output_pdf


def _result(
    *,
    ok: bool,
    pipeline: PipelineName,
    representative: str,
    stages: list[Stage],
    sequence: list[str],
    output: str | None,
    errors: list[AssembleError],
    meta: dict[str, Any],
) -> AssembleResult:
    return AssembleResult(
        ok=ok,
        pipeline=pipeline,
        representative=representative,
        stages=stages,
        sequence=sequence,
        output=output,
        errors=errors,
        meta=meta,
    )


def _error_from(failure: AssembleFailure) -> AssembleError:
    return AssembleError(code=failure.code, message=failure.message, detail=failure.detail or None)


def run_image_pipeline(
    *,
    config: AssembleConfig,
    representative: str,
    stages: Iterable[Stage] = ALL_STAGES,
) -> AssembleResult:
    """
    Scanned images -> one pdf.

    rescale: raw pages -> `<prefix><N>_small.jpg`
    describe: inner document (blank first page + one page per scaled image)
              and outer document (inner pages 2 and onward)
    compile: inner then outer, with the scaled files renamed tool-safe
    """

    stage_list = _ordered_stages(stages)
    meta: dict[str, Any] = {"work_dir": str(config.work_dir)}
    sequence_names: list[str] = []
    output: str | None = None

    try:
        _require_inputs(base=config.work_dir, filenames=[representative])

        if Stage.RESCALE in stage_list:
            raw = resolve(
                representative,
                SequenceKind.RAW,
                directory=config.work_dir,
                scaled_marker=config.scaled_marker,
                scaled_extension=config.scaled_extension,
            )
            sequence_names = raw.names
            engine = _get_rescale_engine(config.rescale_engine)
            for page in raw.pages:
                out_name = scaled_name_for(
                    page, marker=config.scaled_marker, scaled_extension=config.scaled_extension
                )
                LOG.info("Rescaling %s -> %s", page.name, out_name)
                engine.rescale(config=config, src_file=raw.directory / page.name, out_file=raw.directory / out_name)
            meta["rescaled"] = len(raw.pages)
            meta["rescale_backend"] = engine.backend_id()

        if Stage.DESCRIBE in stage_list or Stage.COMPILE in stage_list:
            scaled = resolve(
                representative,
                SequenceKind.SCALED,
                directory=config.work_dir,
                scaled_marker=config.scaled_marker,
                scaled_extension=config.scaled_extension,
            )
            sequence_names = scaled.names
            plan = _DocumentPlan(directory=scaled.directory, stem=image_document_stem(scaled.prefix))

            if Stage.DESCRIBE in stage_list:
                write_description(
                    text=build_inner_document(image_names=sanitize(scaled.names), config=config),
                    out_file=plan.inner_tex_file,
                )
                write_description(
                    text=build_outer_document(inner_pdf_name=plan.inner_pdf.name),
                    out_file=plan.tex_file,
                )
                meta["descriptions"] = [plan.inner_tex_file.name, plan.tex_file.name]

            if Stage.COMPILE in stage_list:
                out_file = _compile_with_renames(
                    config=config,
                    plan=plan,
                    sequence=scaled,
                    tex_files=[plan.inner_tex_file, plan.tex_file],
                    meta=meta,
                )
                output = _relpath(out_file, base=config.work_dir)

    except AssembleFailure as e:
        return _result(
            ok=False,
            pipeline=PipelineName.IMAGES,
            representative=representative,
            stages=stage_list,
            sequence=sequence_names,
            output=None,
            errors=[_error_from(e)],
            meta=meta,
        )

    return _result(
        ok=True,
        pipeline=PipelineName.IMAGES,
        representative=representative,
        stages=stage_list,
        sequence=sequence_names,
        output=output,
        errors=[],
        meta=meta,
    )


def run_pdf_pipeline(
    *,
    config: AssembleConfig,
    filenames: list[str],
    stages: Iterable[Stage] = ALL_STAGES,
    orientation: Orientation = Orientation.PORTRAIT,
) -> AssembleResult:
    """
    Partial pdfs -> one merged pdf.

    One filename: its same-prefix siblings are merged in numeric token order.
    Several filenames: merged exactly in the order given.
    """

    if not filenames:
        raise ValueError("run_pdf_pipeline requires at least one filename")

    stage_list = _ordered_stages(stages)
    angle = config.rotation_for(orientation)
    meta: dict[str, Any] = {"work_dir": str(config.work_dir), "orientation": orientation.value, "angle": angle}
    sequence_names: list[str] = []
    output: str | None = None
    explicit = len(filenames) > 1

    try:
        _require_inputs(base=config.work_dir, filenames=list(filenames))

        exclude: list[str] = []
        if not explicit:
            # A previous run's output shares the prefix and must not join the merge.
            prefix = split_name(Path(filenames[0]).name).prefix
            previous = _DocumentPlan(
                directory=config.work_dir, stem=pdf_document_stem(prefix, marker=config.output_marker)
            )
            exclude = [previous.output_pdf.name, previous.compiled_pdf.name]

        sequence = resolve(
            filenames[0],
            SequenceKind.PDF,
            explicit=list(filenames) if explicit else None,
            directory=config.work_dir,
            exclude=exclude,
        )
        sequence_names = sequence.names
        meta["explicit_order"] = sequence.explicit

        if sequence.explicit:
            stem = explicit_document_stem(filenames[0], marker=config.output_marker)
        else:
            stem = pdf_document_stem(sequence.prefix, marker=config.output_marker)
        plan = _DocumentPlan(directory=sequence.directory, stem=stem)

        if Stage.RESCALE in stage_list:
            LOG.debug("rescale stage does not apply to pdf inputs; skipped")

        if Stage.DESCRIBE in stage_list:
            write_description(
                text=build_merge_document(pdf_names=sanitize(sequence.names), angle=angle),
                out_file=plan.tex_file,
            )
            meta["descriptions"] = [plan.tex_file.name]

        if Stage.COMPILE in stage_list:
            out_file = _compile_with_renames(
                config=config,
                plan=plan,
                sequence=sequence,
                tex_files=[plan.tex_file],
                meta=meta,
            )
            output = _relpath(out_file, base=config.work_dir)

    except AssembleFailure as e:
        return _result(
            ok=False,
            pipeline=PipelineName.PDF_MERGE,
            representative=filenames[0],
            stages=stage_list,
            sequence=sequence_names,
            output=None,
            errors=[_error_from(e)],
            meta=meta,
        )

    return _result(
        ok=True,
        pipeline=PipelineName.PDF_MERGE,
        representative=filenames[0],
        stages=stage_list,
        sequence=sequence_names,
        output=output,
        errors=[],
        meta=meta,
    )
