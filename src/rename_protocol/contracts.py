from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from page_sequence.contracts import AssembleFailure


@dataclass(frozen=True, slots=True)
class RenamePair:
    original: str  # relative to the mapping's directory
    sanitized: str

    @property
    def changed(self) -> bool:
        return self.original != self.sanitized


@dataclass(frozen=True, slots=True)
class RenameMapping:
    """
    Bijection original -> sanitized for one external-tool invocation.

    `pairs` keeps the caller's order; unchanged pairs are kept so that
    `sanitized_names` lines up index-for-index with the input names.
    """

    directory: Path
    pairs: list[RenamePair]

    @property
    def sanitized_names(self) -> list[str]:
        return [p.sanitized for p in self.pairs]


@dataclass(slots=True)
class RenameJournal:
    """
    Ordered undo-list: exactly the renames that succeeded, in the order they
    were performed. Reverting walks it backwards.
    """

    directory: Path
    pairs: list[RenamePair] = field(default_factory=list)
    journal_file: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "directory": str(self.directory),
            "pairs": [asdict(p) for p in self.pairs],
        }


class RenameCollision(AssembleFailure):
    code = "RENAME_COLLISION"


class RenameApplyError(AssembleFailure):
    code = "RENAME_APPLY_FAILED"

    def __init__(self, message: str, *, journal: RenameJournal, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message, detail=detail)
        self.journal = journal


class RenameRevertError(AssembleFailure):
    code = "RENAME_REVERT_FAILED"

    def __init__(self, message: str, *, unreverted: list[RenamePair], detail: dict[str, Any] | None = None) -> None:
        super().__init__(message, detail=detail)
        self.unreverted = unreverted


class UnsafeDirectoryName(AssembleFailure):
    code = "UNSAFE_DIRECTORY_NAME"
