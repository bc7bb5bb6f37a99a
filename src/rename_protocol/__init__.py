"""
Reversible bulk rename around an external-tool call.

pdflatex mishandles periods, commas and whitespace in file names, so inputs
are renamed to an escaped form for the duration of one compile and renamed
back afterwards. The undo-list is journaled to disk while renames are live.
"""

from .artifacts import journal_path_for, read_rename_journal_json, write_rename_journal_json
from .contracts import (
    RenameApplyError,
    RenameCollision,
    RenameJournal,
    RenameMapping,
    RenamePair,
    RenameRevertError,
    UnsafeDirectoryName,
)
from .module import apply, build_mapping, restore_name, revert, sanitize, sanitize_name

__all__ = [
    "RenameApplyError",
    "RenameCollision",
    "RenameJournal",
    "RenameMapping",
    "RenamePair",
    "RenameRevertError",
    "UnsafeDirectoryName",
    "apply",
    "build_mapping",
    "journal_path_for",
    "read_rename_journal_json",
    "restore_name",
    "revert",
    "sanitize",
    "sanitize_name",
    "write_rename_journal_json",
]
