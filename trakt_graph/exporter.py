import logging
from pathlib import Path

import cairosvg


logger = logging.getLogger(__name__)


def svg_to_png(svg_text: str, output_path: str | Path, scale: float = 2.0) -> Path:
    """Rasterize an SVG document to a PNG file next to it."""

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    cairosvg.svg2png(bytestring=svg_text.encode("utf-8"), write_to=str(path), scale=scale)
    logger.info("Wrote %s", path)
    return path
