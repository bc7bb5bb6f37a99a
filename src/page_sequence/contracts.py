from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class SequenceKind(str, Enum):
    RAW = "raw"
    SCALED = "scaled"
    PDF = "pdf"


class AssembleFailure(Exception):
    """
    Base class for every terminal failure raised by the assembly pipeline.

    `code` is a stable identifier copied into run reports; `detail` carries
    JSON-ready context (offending filenames, expected vs actual, ...).
    """

    code = "ASSEMBLE_FAILED"

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail: dict[str, Any] = detail or {}


class TokenNotFound(AssembleFailure):
    code = "TOKEN_NOT_FOUND"


class ZeroToken(AssembleFailure):
    code = "ZERO_TOKEN"


class SequenceMismatch(AssembleFailure):
    code = "SEQUENCE_MISMATCH"


class EmptySequence(AssembleFailure):
    code = "EMPTY_SEQUENCE"


class NonMonotonicSequence(AssembleFailure):
    code = "NON_MONOTONIC_SEQUENCE"


class MissingInputFile(AssembleFailure):
    code = "MISSING_INPUT_FILE"


@dataclass(frozen=True, slots=True, order=True)
class OrderingToken:
    major: int
    minor: int = 0


@dataclass(frozen=True, slots=True)
class NameParts:
    """
    A representative filename split into its positional parts:
    `<prefix><token_text><marker><extension>`.
    """

    prefix: str
    token_text: str
    token: OrderingToken
    marker: str  # processed marker (e.g. "_small") or ""
    extension: str  # includes the leading "."


@dataclass(frozen=True, slots=True)
class PageFile:
    name: str  # basename, the file's only identity
    prefix: str
    token: OrderingToken | None  # None only for caller-given pdf lists
    kind: SequenceKind


@dataclass(frozen=True, slots=True)
class ResolvedSequence:
    representative: str
    prefix: str
    kind: SequenceKind
    directory: Path
    pages: list[PageFile] = field(default_factory=list)
    explicit: bool = False  # caller-given pdf list, order not re-derived

    @property
    def names(self) -> list[str]:
        return [p.name for p in self.pages]
