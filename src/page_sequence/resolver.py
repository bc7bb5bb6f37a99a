from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

from .contracts import (
    EmptySequence,
    NonMonotonicSequence,
    PageFile,
    ResolvedSequence,
    SequenceKind,
    SequenceMismatch,
    TokenNotFound,
    ZeroToken,
)
from .ranking import sort_by_rank
from .tokens import TOKEN_PATTERN, extract, split_name

LOG = logging.getLogger("page_sequence")

RAW_IMAGE_EXTENSIONS = ("png", "jpg", "jpeg", "tif", "tiff", "bmp", "gif", "webp")


def _member_pattern(*, prefix: str, mode: SequenceKind, marker: str, scaled_extension: str) -> re.Pattern[str]:
    p = re.escape(prefix)
    if mode == SequenceKind.RAW:
        exts = "|".join(RAW_IMAGE_EXTENSIONS)
        return re.compile(rf"^{p}{TOKEN_PATTERN}\.(?:{exts})$", re.IGNORECASE)
    if mode == SequenceKind.SCALED:
        return re.compile(rf"^{p}{TOKEN_PATTERN}{re.escape(marker)}{re.escape(scaled_extension)}$")
    return re.compile(rf"^{p}.*\.pdf$", re.IGNORECASE)


def _list_candidates(
    *, directory: Path, prefix: str, pattern: re.Pattern[str], exclude: frozenset[str] = frozenset()
) -> list[str]:
    # Plain prefix match: "[" or "*" in a filename must not act as a glob.
    if not directory.is_dir():
        return []
    return [
        entry.name
        for entry in directory.iterdir()
        if entry.is_file()
        and entry.name.startswith(prefix)
        and entry.name not in exclude
        and pattern.match(entry.name)
    ]


def _require_strictly_increasing(pages: list[PageFile], *, mode: SequenceKind) -> None:
    for prev, cur in zip(pages, pages[1:]):
        if prev.token is None or cur.token is None:
            continue
        if cur.token <= prev.token:
            hint = (
                "page numbers must be zero-padded so name order matches page order"
                if mode in (SequenceKind.RAW, SequenceKind.SCALED)
                else "two files carry the same page number"
            )
            raise NonMonotonicSequence(
                f"Page order is ambiguous between {prev.name!r} and {cur.name!r}: {hint}",
                detail={"previous": prev.name, "current": cur.name, "mode": mode.value},
            )


def _explicit_sequence(*, filenames: list[str], directory: Path) -> ResolvedSequence:
    seen: set[str] = set()
    pages: list[PageFile] = []
    for name in filenames:
        if name in seen:
            raise NonMonotonicSequence(
                f"File listed twice: {name!r}",
                detail={"filename": name},
            )
        seen.add(name)
        try:
            token = extract(name, "", anywhere=True)
        except (TokenNotFound, ZeroToken):
            token = None
        pages.append(PageFile(name=name, prefix="", token=token, kind=SequenceKind.PDF))

    return ResolvedSequence(
        representative=filenames[0],
        prefix="",
        kind=SequenceKind.PDF,
        directory=directory,
        pages=pages,
        explicit=True,
    )


def scaled_name_for(page: PageFile, *, marker: str = "_small", scaled_extension: str = ".jpg") -> str:
    """Processed filename for a raw page: page_0001.png -> page_0001_small.jpg"""
    parts = split_name(page.name, marker=marker)
    return f"{parts.prefix}{parts.token_text}{marker}{scaled_extension}"


def resolve(
    representative: str,
    mode: SequenceKind,
    *,
    explicit: list[str] | None = None,
    directory: Path | None = None,
    scaled_marker: str = "_small",
    scaled_extension: str = ".jpg",
    exclude: Iterable[str] = (),
) -> ResolvedSequence:
    """
    Resolve the ordered sequence that `representative` belongs to.

    - raw / scaled: same-prefix image files in the representative's
      directory, sorted by filename (the naming convention zero-pads page
      numbers); token order is verified, not re-derived.
    - pdf: an explicit multi-file list is returned untouched; otherwise
      same-prefix pdf files are sorted by their numeric (major, minor) token.

    Image mode relies on name order, so a comma sub-page cannot sit next to
    its whole page there: "page_0004,2.png" sorts before "page_0004.png"
    (',' < '.') and the token check rejects the sequence.

    `exclude` drops directory entries by name, e.g. a previous run's output
    that shares the prefix.

    The representative must come out first, else `SequenceMismatch`.
    """

    base = directory if directory is not None else Path.cwd()

    if mode == SequenceKind.PDF and explicit is not None and len(explicit) > 1:
        LOG.debug("Using caller-given pdf order: %s", explicit)
        return _explicit_sequence(filenames=list(explicit), directory=base)

    rep_path = Path(representative)
    search_dir = base / rep_path.parent
    rep_name = rep_path.name

    parts = split_name(rep_name, marker=scaled_marker)
    prefix = parts.prefix
    pattern = _member_pattern(
        prefix=prefix, mode=mode, marker=scaled_marker, scaled_extension=scaled_extension
    )
    names = _list_candidates(directory=search_dir, prefix=prefix, pattern=pattern, exclude=frozenset(exclude))

    if not names:
        if mode == SequenceKind.SCALED:
            message = (
                f"No scaled pages found for {representative!r} "
                f"(expected {prefix}<N>{scaled_marker}{scaled_extension}); run the rescale stage first"
            )
        else:
            message = f"No {mode.value} files found for prefix {prefix!r} in {search_dir}"
        raise EmptySequence(
            message,
            detail={"representative": representative, "prefix": prefix, "mode": mode.value},
        )

    if mode == SequenceKind.PDF:
        ordered = sort_by_rank(names, prefix)
        pages = [
            PageFile(name=n, prefix=prefix, token=extract(n, prefix, anywhere=True), kind=mode)
            for n in ordered
        ]
    else:
        pages = [PageFile(name=n, prefix=prefix, token=extract(n, prefix), kind=mode) for n in sorted(names)]

    _require_strictly_increasing(pages, mode=mode)

    first = pages[0]
    if mode == SequenceKind.SCALED:
        expected = f"{prefix}{parts.token_text}{scaled_marker}{scaled_extension}"
        ok = parts.marker == "" and first.name == expected
    else:
        expected = rep_name
        ok = first.name == rep_name

    if not ok:
        raise SequenceMismatch(
            f"{representative!r} is not the first page of its sequence: "
            f"expected first {expected!r}, resolved first {first.name!r}",
            detail={"representative": representative, "expected_first": expected, "actual_first": first.name},
        )

    LOG.info("Resolved %d %s page(s) for prefix %r", len(pages), mode.value, prefix)
    return ResolvedSequence(
        representative=representative,
        prefix=prefix,
        kind=mode,
        directory=search_dir,
        pages=pages,
        explicit=False,
    )
