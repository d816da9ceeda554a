from dataclasses import dataclass
from enum import Enum

from trakt_graph.models import parse_choice


ACCENT = "#ed1c24"


@dataclass(frozen=True)
class Palette:
    background: str
    card_border: str
    text: str
    text_muted: str
    tooltip_background: str
    tooltip_border: str
    tooltip_text: str
    levels: tuple[str, str, str, str, str]

    def level_color(self, level: int) -> str:
        return self.levels[max(0, min(level, len(self.levels) - 1))]


class Theme(str, Enum):
    DARK = "dark"
    LIGHT = "light"

    @classmethod
    def resolve(cls, value: object) -> "Theme":
        return parse_choice(cls, value, cls.DARK)

    @property
    def palette(self) -> Palette:
        if self is Theme.LIGHT:
            return LIGHT_PALETTE
        return DARK_PALETTE


DARK_PALETTE = Palette(
    background="#0d1117",
    card_border="#21262d",
    text="#e6edf3",
    text_muted="#7d8590",
    tooltip_background="#161b22",
    tooltip_border="#30363d",
    tooltip_text="#f0f6fc",
    levels=("#161b22", "#5c1015", "#8b1a22", "#c41e2a", ACCENT),
)

LIGHT_PALETTE = Palette(
    background="#ffffff",
    card_border="#d1d9e0",
    text="#1f2328",
    text_muted="#656d76",
    tooltip_background="#ffffff",
    tooltip_border="#d1d9e0",
    tooltip_text="#1f2328",
    levels=("#ebedf0", "#ffc9cc", "#ff8a8f", "#ed4c55", ACCENT),
)
