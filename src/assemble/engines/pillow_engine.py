from __future__ import annotations

from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from ..contracts import AssembleConfig, ExternalToolError
from .base import RescaleEngine


class PillowRescaleEngine(RescaleEngine):
    """
    Cover-resize then crop to the target geometry, keeping the top of the scan
    (centering y=0.0), and save as JPEG with the configured density and quality.
    """

    def backend_id(self) -> str:
        return "pillow"

    def rescale(self, *, config: AssembleConfig, src_file: Path, out_file: Path) -> Path:
        try:
            with Image.open(src_file) as opened:
                img = opened.convert("RGB")
        except FileNotFoundError as e:
            raise ExternalToolError(
                f"Source image not found: {src_file}",
                code="RESCALE_FAILED",
                detail={"src_file": str(src_file), "error": repr(e)},
            ) from e
        except (UnidentifiedImageError, OSError) as e:
            raise ExternalToolError(
                f"Cannot read image {src_file}: {e}",
                code="RESCALE_FAILED",
                detail={"src_file": str(src_file), "error": repr(e)},
            ) from e

        fitted = ImageOps.fit(
            img,
            (config.width_px, config.height_px),
            method=Image.Resampling.LANCZOS,
            centering=config.crop_anchor,
        )

        out_file.parent.mkdir(parents=True, exist_ok=True)
        try:
            fitted.save(
                out_file,
                format="JPEG",
                quality=config.quality,
                dpi=(config.density_ppi, config.density_ppi),
            )
        except OSError as e:
            out_file.unlink(missing_ok=True)
            raise ExternalToolError(
                f"Cannot write scaled image {out_file}: {e}",
                code="RESCALE_FAILED",
                detail={"out_file": str(out_file), "error": repr(e)},
            ) from e

        return out_file
