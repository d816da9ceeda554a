import base64
import logging
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

from PIL import ImageFont


logger = logging.getLogger(__name__)

FONT_FAMILY = "'Segoe UI', Inter, Arial, sans-serif"
METRICS_FONT_FILE = "Inter-SemiBold.ttf"
METRICS_BASE_SIZE = 100
AVERAGE_CHAR_WIDTH = 0.55
EMBEDDED_FONT_FILES = {
    400: "Inter-Regular.woff2",
    500: "Inter-Medium.woff2",
    600: "Inter-SemiBold.woff2",
    700: "Inter-Bold.woff2",
}


@dataclass(frozen=True)
class FontResources:
    """Font data a renderer measures and embeds text with.

    Built once by the caller and passed to every render call. Without a
    metrics font, widths are estimated from the character count.
    """

    metrics_font: ImageFont.FreeTypeFont | None = None
    embedded_fonts: dict[int, str] = field(default_factory=dict)

    @classmethod
    def load(cls, fonts_dir: str | Path | None) -> "FontResources":
        if fonts_dir is None:
            return cls()

        directory = Path(fonts_dir)
        metrics_font = None
        metrics_path = directory / METRICS_FONT_FILE
        if metrics_path.exists():
            try:
                metrics_font = ImageFont.truetype(str(metrics_path), METRICS_BASE_SIZE)
            except OSError:
                logger.warning("Could not load %s for text measurement", metrics_path)

        embedded_fonts: dict[int, str] = {}
        for weight, filename in EMBEDDED_FONT_FILES.items():
            font_path = directory / filename
            if font_path.exists():
                encoded = base64.b64encode(font_path.read_bytes()).decode("ascii")
                embedded_fonts[weight] = f"data:font/woff2;base64,{encoded}"

        return cls(metrics_font=metrics_font, embedded_fonts=embedded_fonts)

    @property
    def has_metrics(self) -> bool:
        return self.metrics_font is not None

    def text_width(self, text: str, font_size: float, letter_spacing: float = 0) -> float:
        if not text:
            return 0.0

        if self.metrics_font is None:
            return len(text) * font_size * AVERAGE_CHAR_WIDTH

        width = self.metrics_font.getlength(text) * font_size / METRICS_BASE_SIZE
        if letter_spacing > 0 and len(text) > 1:
            width += letter_spacing * (len(text) - 1)
        return width

    def font_face_css(self) -> str:
        return "".join(
            "@font-face { font-family: 'Inter'; font-style: normal; "
            f"font-weight: {weight}; src: url('{data_uri}') format('woff2'); }}\n"
            for weight, data_uri in sorted(self.embedded_fonts.items())
        )
