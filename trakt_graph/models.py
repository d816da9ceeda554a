import logging
from datetime import date
from datetime import datetime
from enum import Enum
from typing import TypeVar

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


logger = logging.getLogger(__name__)

ChoiceT = TypeVar("ChoiceT", bound=Enum)


class EntryKind(str, Enum):
    MOVIE = "movie"
    EPISODE = "episode"


class WeekStart(str, Enum):
    SUNDAY = "sunday"
    MONDAY = "monday"


class ColorScheme(str, Enum):
    LINEAR = "linear"
    PERCENTILE = "percentile"


class ContentType(str, Enum):
    MOVIES = "movies"
    SHOWS = "shows"
    ALL = "all"

    @property
    def item_label(self) -> str:
        if self is ContentType.MOVIES:
            return "Movies"
        if self is ContentType.SHOWS:
            return "Episodes"
        return "Items"


def parse_choice(choice_type: type[ChoiceT], value: object, default: ChoiceT) -> ChoiceT:
    """Resolve a configuration value to an enum member, falling back to default."""

    if isinstance(value, choice_type):
        return value
    if isinstance(value, str):
        try:
            return choice_type(value.strip().lower())
        except ValueError:
            pass
    logger.warning(
        "Unknown %s %r, using %r", choice_type.__name__, value, default.value
    )
    return default


class WatchEntry(BaseModel):
    """Single watched movie or episode, with its timestamp in local time."""

    model_config = ConfigDict(frozen=True)

    watched_at: datetime
    title: str
    year: int | None = None
    kind: EntryKind
    episode_label: str | None = None
    episode_title: str | None = None
    rating: float | None = Field(default=None, ge=1, le=10)

    @property
    def day(self) -> date:
        return self.watched_at.date()

    @property
    def tooltip_line(self) -> str:
        release_year = self.year if self.year is not None else "?"
        if self.kind is EntryKind.EPISODE and self.episode_label:
            return f"• {self.title} {self.episode_label} ({release_year})"
        return f"• {self.title} ({release_year})"


class NormalizedHistory(BaseModel):
    """Entries of one selected year plus the counts gathered while normalizing."""

    model_config = ConfigDict(frozen=True)

    entries: tuple[WatchEntry, ...] = ()
    year: int
    total_count: int = 0
    movie_count: int = 0
    episode_count: int = 0
    skipped_count: int = 0
    year_counts: dict[int, int] = Field(default_factory=dict)


class StreakResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    length: int = Field(default=0, ge=0)
    start_date: date | None = None
    end_date: date | None = None

    def contains(self, day: date) -> bool:
        if self.length == 0 or self.start_date is None or self.end_date is None:
            return False
        return self.start_date <= day <= self.end_date


class DayCountStats(BaseModel):
    """Percentile thresholds over per-day entry counts."""

    model_config = ConfigDict(frozen=True)

    p25: int = 0
    p50: int = 0
    p75: int = 0
    p90: int = 0
