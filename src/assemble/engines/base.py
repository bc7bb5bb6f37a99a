from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from ..contracts import AssembleConfig


@dataclass(frozen=True, slots=True)
class EngineCompiledDocument:
    tex_file: Path
    pdf_file: Path
    log_tail: str  # last part of the compiler transcript, for diagnostics


class RescaleEngine(ABC):
    """
    Rescaling collaborator.

    Engines must:
    - write exactly one processed image per call, at the configured geometry
    - raise ExternalToolError on any failure (hard stop, no partial output kept)
    """

    @abstractmethod
    def backend_id(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def rescale(self, *, config: AssembleConfig, src_file: Path, out_file: Path) -> Path:
        raise NotImplementedError


class CompilerEngine(ABC):
    """
    Typesetting collaborator: .tex in, .pdf with the same stem out.
    """

    @abstractmethod
    def backend_id(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def compile(self, *, config: AssembleConfig, tex_file: Path) -> EngineCompiledDocument:
        raise NotImplementedError
