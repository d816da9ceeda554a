import math
from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from datetime import timedelta

from trakt_graph.models import WatchEntry
from trakt_graph.models import WeekStart


CELL_SIZE = 14
CELL_GAP = 3
CELL_STRIDE = CELL_SIZE + CELL_GAP

GRID_OFFSET_X = 51
DAY_LABEL_X = 26
HEADER_HEIGHT = 75
YEARS_TOP = HEADER_HEIGHT + 40
YEAR_HEIGHT = 180
MONTH_LABEL_OFFSET_Y = 42
GRID_OFFSET_Y = 50
MIN_DOCUMENT_WIDTH = 1000
DOCUMENT_SIDE_SPACE = 100

TOOLTIP_MIN_WIDTH = 280
TOOLTIP_PADDING_X = 10
TOOLTIP_BASE_HEIGHT = 38
TOOLTIP_LINE_HEIGHT = 18
TOOLTIP_GAP = 8
TOOLTIP_RIGHT_MARGIN = 10

MONTH_NAMES = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def sunday_index(day: date) -> int:
    """Day of week with Sunday as 0."""

    return (day.weekday() + 1) % 7


def week_start_shift(day: date, week_start: WeekStart) -> int:
    """Days to step back from `day` to reach the start of its week."""

    day_of_week = sunday_index(day)
    if week_start is WeekStart.MONDAY:
        return (day_of_week + 6) % 7
    return day_of_week


def weekday_order(week_start: WeekStart) -> list[int]:
    """Sunday-indexed weekdays in grid row order."""

    first = 1 if week_start is WeekStart.MONDAY else 0
    return [(first + offset) % 7 for offset in range(7)]


@dataclass(frozen=True)
class GridCell:
    day: date
    week_index: int
    day_index: int
    count: int
    visible: bool

    @property
    def x(self) -> int:
        return self.week_index * CELL_STRIDE

    @property
    def y(self) -> int:
        return self.day_index * CELL_STRIDE


@dataclass(frozen=True)
class MonthLabel:
    text: str
    week_index: int

    @property
    def x(self) -> int:
        return self.week_index * CELL_STRIDE


@dataclass(frozen=True)
class DayLabel:
    text: str
    day_index: int

    @property
    def y(self) -> int:
        return self.day_index * CELL_STRIDE + 11


@dataclass(frozen=True)
class YearLayout:
    """Week-aligned 7 x N count matrix for one calendar year."""

    year: int
    week_start: WeekStart
    start_date: date
    total_days: int
    total_weeks: int
    grid: tuple[tuple[int, ...], ...]
    month_labels: tuple[MonthLabel, ...]
    day_labels: tuple[DayLabel, ...]

    @property
    def first_day(self) -> date:
        return date(self.year, 1, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, 12, 31)

    @property
    def grid_width(self) -> int:
        return self.total_weeks * CELL_STRIDE

    @property
    def max_count(self) -> int:
        return max((max(row) for row in self.grid if row), default=0)

    @property
    def total_count(self) -> int:
        return sum(sum(row) for row in self.grid)

    def cell_date(self, day_index: int, week_index: int) -> date:
        return self.start_date + timedelta(days=week_index * 7 + day_index)

    def is_visible(self, day: date) -> bool:
        return self.first_day <= day <= self.last_day

    def cells(self) -> Iterable[GridCell]:
        """Every matrix cell, row by row, including the non-visible padding days."""

        for day_index, row in enumerate(self.grid):
            for week_index, count in enumerate(row):
                day = self.cell_date(day_index, week_index)
                yield GridCell(
                    day=day,
                    week_index=week_index,
                    day_index=day_index,
                    count=count,
                    visible=self.is_visible(day),
                )


def grid_position(
    day: date, start_date: date, week_start: WeekStart
) -> tuple[int, int]:
    """Return `(day_index, week_index)` of a local day in a grid starting at start_date."""

    days_since_start = (day - start_date).days
    week_index = days_since_start // 7
    day_index = (sunday_index(day) - weekday_order(week_start)[0]) % 7
    return day_index, week_index


def layout_year(
    entries: Iterable[WatchEntry], year: int, week_start: WeekStart
) -> YearLayout:
    """Bucket entries of `year` into a week-start aligned grid."""

    first_day = date(year, 1, 1)
    last_day = date(year, 12, 31)
    start_date = first_day - timedelta(days=week_start_shift(first_day, week_start))
    total_days = (last_day - start_date).days + 1
    total_weeks = math.ceil(total_days / 7)

    grid = [[0] * total_weeks for _ in range(7)]
    for entry in entries:
        day = entry.day
        if not first_day <= day <= last_day:
            continue
        day_index, week_index = grid_position(day, start_date, week_start)
        grid[day_index][week_index] += 1

    month_labels = []
    for month in range(1, 13):
        days_since_start = (date(year, month, 1) - start_date).days
        if days_since_start < 0:
            continue
        month_labels.append(MonthLabel(MONTH_NAMES[month - 1], days_since_start // 7))

    day_labels = tuple(
        DayLabel(WEEKDAY_NAMES[weekday][0], day_index)
        for day_index, weekday in enumerate(weekday_order(week_start))
    )

    return YearLayout(
        year=year,
        week_start=week_start,
        start_date=start_date,
        total_days=total_days,
        total_weeks=total_weeks,
        grid=tuple(tuple(row) for row in grid),
        month_labels=tuple(month_labels),
        day_labels=day_labels,
    )


@dataclass(frozen=True)
class PlacedYear:
    layout: YearLayout
    index: int
    offset_y: int

    @property
    def month_labels_y(self) -> int:
        return self.offset_y + MONTH_LABEL_OFFSET_Y

    @property
    def grid_y(self) -> int:
        return self.offset_y + GRID_OFFSET_Y


@dataclass(frozen=True)
class PageLayout:
    """Independent year layouts stacked vertically below a shared header."""

    width: int
    height: int
    years: tuple[PlacedYear, ...]


def layout_years(
    entries: Sequence[WatchEntry], years: Iterable[int], week_start: WeekStart
) -> PageLayout:
    """Lay out each distinct year on its own, newest year on top."""

    placed = tuple(
        PlacedYear(
            layout=layout_year(entries, year, week_start),
            index=index,
            offset_y=YEARS_TOP + index * YEAR_HEIGHT,
        )
        for index, year in enumerate(sorted(set(years), reverse=True))
    )
    widest_grid = max((item.layout.grid_width for item in placed), default=0)
    return PageLayout(
        width=max(MIN_DOCUMENT_WIDTH, widest_grid + DOCUMENT_SIDE_SPACE),
        height=YEARS_TOP + len(placed) * YEAR_HEIGHT,
        years=placed,
    )


@dataclass(frozen=True)
class TooltipBox:
    x: float
    y: float
    width: int
    height: int


def tooltip_box(
    lines: Sequence[str],
    cell_x: int,
    cell_y: int,
    document_width: int,
    measure: Callable[[str], float],
) -> TooltipBox:
    """Size a cell tooltip from its lines and keep it inside the right edge.

    `lines` holds the header line first, followed by one line per item.
    """

    widest = max((measure(line) for line in lines), default=0.0)
    width = max(TOOLTIP_MIN_WIDTH, math.ceil(widest + 2 * TOOLTIP_PADDING_X))
    height = TOOLTIP_BASE_HEIGHT + max(len(lines) - 1, 0) * TOOLTIP_LINE_HEIGHT
    max_x = document_width - GRID_OFFSET_X - width - TOOLTIP_RIGHT_MARGIN
    return TooltipBox(
        x=min(cell_x, max_x),
        y=cell_y - height - TOOLTIP_GAP,
        width=width,
        height=height,
    )
