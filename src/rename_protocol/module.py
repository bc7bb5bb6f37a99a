from __future__ import annotations

import logging
import re
from pathlib import Path

from page_sequence.contracts import MissingInputFile

from .artifacts import write_rename_journal_json
from .contracts import (
    RenameApplyError,
    RenameCollision,
    RenameJournal,
    RenameMapping,
    RenamePair,
    RenameRevertError,
    UnsafeDirectoryName,
)

LOG = logging.getLogger("rename_protocol")

_ESCAPES = {
    "+": "++",
    ".": "+d",
    ",": "+c",
    " ": "+s",
    "\t": "+t",
    "\n": "+n",
}
_UNESCAPES = {v[1:]: k for k, v in _ESCAPES.items()}
_UNESCAPE_RE = re.compile(r"\+(\+|d|c|s|t|n|u[0-9a-f]{4})")
_EXT_RE = re.compile(r"^(?P<base>.+?)(?P<ext>\.[A-Za-z0-9]+)$")


def _split_dir(name: str) -> tuple[str, str]:
    head, sep, tail = name.replace("\\", "/").rpartition("/")
    return (head + sep, tail)


def _split_ext(basename: str) -> tuple[str, str]:
    m = _EXT_RE.match(basename)
    if m is None:
        return basename, ""
    return m.group("base"), m.group("ext")


def _escape(text: str) -> str:
    out: list[str] = []
    for ch in text:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ch.isspace():
            out.append(f"+u{ord(ch):04x}")
        else:
            out.append(ch)
    return "".join(out)


def _unescape_one(m: re.Match[str]) -> str:
    code = m.group(1)
    if code.startswith("u"):
        return chr(int(code[1:], 16))
    return _UNESCAPES[code]


def sanitize_name(name: str) -> str:
    """
    Tool-safe form of one filename. Only the basename is rewritten; the final
    extension's period survives. Directories are never renamed, so a
    directory part containing whitespace raises `UnsafeDirectoryName`.

    >>> sanitize_name("My file.CH.1,5.pdf")
    'My+sfile+dCH+d1+c5.pdf'
    """

    head, basename = _split_dir(name)
    if any(ch.isspace() for ch in head):
        raise UnsafeDirectoryName(
            f"Directory part of {name!r} contains whitespace; move the file or run from inside its directory",
            detail={"filename": name, "directory": head},
        )
    base, ext = _split_ext(basename)
    return f"{head}{_escape(base)}{ext}"


def restore_name(sanitized: str) -> str:
    head, basename = _split_dir(sanitized)
    base, ext = _split_ext(basename)
    return f"{head}{_UNESCAPE_RE.sub(_unescape_one, base)}{ext}"


def sanitize(names: list[str]) -> list[str]:
    return [sanitize_name(n) for n in names]


def build_mapping(names: list[str], *, directory: Path) -> RenameMapping:
    """
    Pair every name with its sanitized form and check, before anything is
    touched on disk, that the originals exist and no target is taken by a
    file outside the mapping.
    """

    if len(set(names)) != len(names):
        dupes = sorted({n for n in names if names.count(n) > 1})
        raise RenameCollision(
            f"Duplicate names in rename request: {dupes}",
            detail={"duplicates": dupes},
        )

    pairs = [RenamePair(original=n, sanitized=sanitize_name(n)) for n in names]

    originals = set(names)
    for pair in pairs:
        if not (directory / pair.original).exists():
            raise MissingInputFile(
                f"Input file not found: {pair.original}",
                detail={"filename": pair.original, "directory": str(directory)},
            )
        if pair.changed and pair.sanitized not in originals and (directory / pair.sanitized).exists():
            raise RenameCollision(
                f"Cannot rename {pair.original!r}: {pair.sanitized!r} already exists",
                detail={"original": pair.original, "sanitized": pair.sanitized},
            )

    return RenameMapping(directory=directory, pairs=pairs)


def _apply_order(pairs: list[RenamePair]) -> list[RenamePair]:
    # A sanitized name may equal another pair's original ("a b" -> "a+sb",
    # "a+sb" -> "a++sb"). Escaping only lengthens names, so moving the longest
    # targets first always frees the next target before it is needed.
    return sorted((p for p in pairs if p.changed), key=lambda p: len(p.sanitized), reverse=True)


def apply(mapping: RenameMapping, *, journal_file: Path | None = None) -> RenameJournal:
    """
    Rename original -> sanitized on disk.

    Not transactional: if a rename fails, the ones already done stay done and
    `RenameApplyError.journal` lists exactly those, for the caller to revert.
    """

    journal = RenameJournal(directory=mapping.directory, journal_file=journal_file)
    if journal_file is not None:
        write_rename_journal_json(journal=journal, out_file=journal_file)

    for pair in _apply_order(mapping.pairs):
        src = mapping.directory / pair.original
        dst = mapping.directory / pair.sanitized
        try:
            src.rename(dst)
        except OSError as e:
            raise RenameApplyError(
                f"Rename failed after {len(journal.pairs)} file(s): {pair.original!r} -> {pair.sanitized!r}: {e}",
                journal=journal,
                detail={
                    "original": pair.original,
                    "sanitized": pair.sanitized,
                    "error": repr(e),
                    "applied": [p.original for p in journal.pairs],
                },
            ) from e

        journal.pairs.append(pair)
        LOG.debug("renamed %s -> %s", pair.original, pair.sanitized)
        if journal_file is not None:
            write_rename_journal_json(journal=journal, out_file=journal_file)

    LOG.info("Applied %d rename(s) in %s", len(journal.pairs), mapping.directory)
    return journal


def revert(renames: RenameMapping | RenameJournal) -> None:
    """
    Undo renames, newest first. Pairs already back in place are skipped so a
    journal can be replayed after a partial manual recovery. Every pair is
    attempted; the ones that could not be restored are raised together.
    """

    done = renames.pairs if isinstance(renames, RenameJournal) else _apply_order(renames.pairs)

    unreverted: list[RenamePair] = []
    for pair in reversed(done):
        if not pair.changed:
            continue
        src = renames.directory / pair.sanitized
        dst = renames.directory / pair.original
        if not src.exists() and dst.exists():
            LOG.debug("already restored: %s", pair.original)
            continue
        try:
            src.rename(dst)
        except OSError as e:
            LOG.error("could not restore %s -> %s: %s", pair.sanitized, pair.original, e)
            unreverted.append(pair)
            continue
        LOG.debug("restored %s -> %s", pair.sanitized, pair.original)

    if unreverted:
        raise RenameRevertError(
            f"{len(unreverted)} file(s) could not be restored to their original names",
            unreverted=unreverted,
            detail={
                "directory": str(renames.directory),
                "unreverted": [{"original": p.original, "sanitized": p.sanitized} for p in unreverted],
            },
        )

    journal_file = getattr(renames, "journal_file", None)
    if journal_file is not None and journal_file.exists():
        journal_file.unlink()
    LOG.info("Restored original names in %s", renames.directory)
