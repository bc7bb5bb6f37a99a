from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from page_sequence.contracts import AssembleFailure


class Stage(str, Enum):
    RESCALE = "rescale"
    DESCRIBE = "describe"  # write the .tex document descriptions
    COMPILE = "compile"


ALL_STAGES: tuple[Stage, ...] = (Stage.RESCALE, Stage.DESCRIBE, Stage.COMPILE)


class PipelineName(str, Enum):
    IMAGES = "images"
    PDF_MERGE = "pdf_merge"


class Orientation(str, Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"
    REVERSE_LANDSCAPE = "reverse_landscape"


class RescaleEngineName(str, Enum):
    PILLOW = "pillow"


class CompilerEngineName(str, Enum):
    PDFLATEX_CLI = "pdflatex_cli"


class ExternalToolError(AssembleFailure):
    """
    Rescaler or compiler failure. Never retried; the code tells which
    collaborator failed and how.
    """

    code = "EXTERNAL_TOOL_FAILED"

    def __init__(self, message: str, *, code: str, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message, detail=detail)
        self.code = code


@dataclass(frozen=True, slots=True)
class AssembleError:
    code: str
    message: str
    detail: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class AssembleResult:
    ok: bool
    pipeline: PipelineName
    representative: str
    stages: list[Stage]
    sequence: list[str]  # resolved filenames, in document order
    output: str | None  # final compiled document, relative to work_dir
    errors: list[AssembleError]
    meta: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class AssembleConfig:
    """
    Explicit configuration for one assembly run.

    - `work_dir` must be passed explicitly; inputs are resolved under it
    - no environment variable reads
    - geometry defaults follow the scanning convention (1390x1950 px at 178 ppi)
    """

    work_dir: Path
    width_px: int = 1390
    height_px: int = 1950
    density_ppi: int = 178
    quality: int = 85
    crop_anchor: tuple[float, float] = (0.5, 0.0)  # (x, y) centering; y=0.0 keeps the top
    scaled_marker: str = "_small"
    scaled_extension: str = ".jpg"
    landscape_angle: int = 90
    reverse_landscape_angle: int = 270
    output_marker: str = "-assembled"
    compiler: str = "pdflatex"
    compile_timeout_s: float | None = None  # None => wait for the compiler indefinitely
    keep_intermediates: bool = False
    rescale_engine: RescaleEngineName = RescaleEngineName.PILLOW
    compiler_engine: CompilerEngineName = CompilerEngineName.PDFLATEX_CLI

    def __post_init__(self) -> None:
        if not isinstance(self.work_dir, Path):
            raise TypeError("work_dir must be a pathlib.Path")
        if self.width_px <= 0 or self.height_px <= 0:
            raise ValueError("width_px and height_px must be positive integers")
        if self.density_ppi <= 0:
            raise ValueError("density_ppi must be a positive integer")
        if not (1 <= self.quality <= 100):
            raise ValueError("quality must be within [1, 100]")
        if not all(0.0 <= c <= 1.0 for c in self.crop_anchor):
            raise ValueError("crop_anchor components must be within [0, 1]")
        if not self.scaled_marker:
            raise ValueError("scaled_marker must be non-empty")
        if not self.scaled_extension.startswith("."):
            raise ValueError("scaled_extension must start with '.'")
        if self.compile_timeout_s is not None and self.compile_timeout_s <= 0:
            raise ValueError("compile_timeout_s must be > 0 when set")

    @property
    def page_width_in(self) -> float:
        return self.width_px / self.density_ppi

    @property
    def page_height_in(self) -> float:
        return self.height_px / self.density_ppi

    def rotation_for(self, orientation: Orientation) -> int:
        if orientation == Orientation.LANDSCAPE:
            return self.landscape_angle
        if orientation == Orientation.REVERSE_LANDSCAPE:
            return self.reverse_landscape_angle
        return 0
