"""
Page assembly: scans or partial pdfs -> one compiled pdf.

Pipelines (each a linear chain, one blocking call at a time):
- images: resolve raw pages -> rescale -> inner/outer .tex -> compile -> trim
- pdf merge: resolve (or take the given order) -> merge .tex -> compile

Inputs are renamed tool-safe only for the duration of a compile. If the
compiler fails, they stay renamed and the journal path is reported.
"""

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
from .module import run_image_pipeline, run_pdf_pipeline
from .version import __version__

__all__ = [
    "ALL_STAGES",
    "AssembleConfig",
    "AssembleError",
    "AssembleResult",
    "CompilerEngineName",
    "ExternalToolError",
    "Orientation",
    "PipelineName",
    "RescaleEngineName",
    "Stage",
    "__version__",
    "run_image_pipeline",
    "run_pdf_pipeline",
]
