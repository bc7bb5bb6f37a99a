"""
Page sequence resolution.

Turns one representative filename (or an explicit list of pdfs) into the
ordered list of files that make up one logical document:
- ordering tokens are numeric (major, minor) pairs, never strings
- raw scans and their scaled variants are kept apart by the processed marker
- the representative must be the first page of what it resolves to
"""

from .contracts import (
    AssembleFailure,
    EmptySequence,
    MissingInputFile,
    NameParts,
    NonMonotonicSequence,
    OrderingToken,
    PageFile,
    ResolvedSequence,
    SequenceKind,
    SequenceMismatch,
    TokenNotFound,
    ZeroToken,
)
from .ranking import compare, rank_key, sort_by_rank
from .resolver import resolve, scaled_name_for
from .tokens import extract, split_name

__all__ = [
    "AssembleFailure",
    "EmptySequence",
    "MissingInputFile",
    "NameParts",
    "NonMonotonicSequence",
    "OrderingToken",
    "PageFile",
    "ResolvedSequence",
    "SequenceKind",
    "SequenceMismatch",
    "TokenNotFound",
    "ZeroToken",
    "compare",
    "extract",
    "rank_key",
    "resolve",
    "scaled_name_for",
    "sort_by_rank",
    "split_name",
]
