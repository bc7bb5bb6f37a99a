from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from ..contracts import AssembleConfig, ExternalToolError
from .base import CompilerEngine, EngineCompiledDocument

LOG = logging.getLogger("assemble")


class PdflatexCliEngine(CompilerEngine):
    """
    pdflatex via its CLI, run inside the directory holding the .tex file so
    relative input paths resolve the same way they were written.
    """

    def backend_id(self) -> str:
        return "pdflatex"

    def compile(self, *, config: AssembleConfig, tex_file: Path) -> EngineCompiledDocument:
        if not tex_file.exists():
            raise ExternalToolError(
                f"Document description not found: {tex_file}",
                code="COMPILE_FAILED",
                detail={"tex_file": str(tex_file)},
            )

        cmd = [
            config.compiler,
            "-interaction=nonstopmode",
            "-halt-on-error",
            tex_file.name,
        ]
        LOG.info("Compiling %s", tex_file.name)
        LOG.debug("command: %s (cwd=%s)", cmd, tex_file.parent)

        try:
            proc = subprocess.run(
                cmd,
                cwd=tex_file.parent,
                check=False,
                capture_output=True,
                text=True,
                timeout=config.compile_timeout_s,
            )
        except FileNotFoundError as e:
            raise ExternalToolError(
                f"{config.compiler} binary not found on PATH",
                code="COMPILER_NOT_INSTALLED",
                detail={"expected_command": config.compiler},
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ExternalToolError(
                f"{config.compiler} timed out on {tex_file.name}",
                code="COMPILE_FAILED",
                detail={"tex_file": tex_file.name, "timeout_s": config.compile_timeout_s},
            ) from e

        # pdflatex reports errors on stdout; truncate for report stability.
        log_tail = (proc.stdout or "")[-4000:]
        if proc.returncode != 0:
            raise ExternalToolError(
                f"{config.compiler} failed on {tex_file.name} (exit code {proc.returncode})",
                code="COMPILE_FAILED",
                detail={
                    "tex_file": tex_file.name,
                    "returncode": proc.returncode,
                    "stdout": log_tail,
                    "stderr": (proc.stderr or "")[-4000:],
                },
            )

        pdf_file = tex_file.with_suffix(".pdf")
        if not pdf_file.exists():
            raise ExternalToolError(
                f"{config.compiler} exited cleanly but produced no {pdf_file.name}",
                code="COMPILE_FAILED",
                detail={"tex_file": tex_file.name, "stdout": log_tail},
            )

        return EngineCompiledDocument(tex_file=tex_file, pdf_file=pdf_file, log_tail=log_tail)
