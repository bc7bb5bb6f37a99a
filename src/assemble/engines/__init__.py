from .base import CompilerEngine, EngineCompiledDocument, RescaleEngine
from .pdflatex_cli import PdflatexCliEngine
from .pillow_engine import PillowRescaleEngine

__all__ = [
    "CompilerEngine",
    "EngineCompiledDocument",
    "PdflatexCliEngine",
    "PillowRescaleEngine",
    "RescaleEngine",
]
