from collections.abc import Sequence
from dataclasses import dataclass
from urllib.parse import quote

from trakt_graph.models import ColorScheme
from trakt_graph.models import ContentType
from trakt_graph.models import StreakResult
from trakt_graph.models import WatchEntry
from trakt_graph.models import WeekStart
from trakt_graph.services.fonts import FONT_FAMILY
from trakt_graph.services.fonts import FontResources
from trakt_graph.services.layout_service import CELL_SIZE
from trakt_graph.services.layout_service import DAY_LABEL_X
from trakt_graph.services.layout_service import GRID_OFFSET_X
from trakt_graph.services.layout_service import MONTH_NAMES
from trakt_graph.services.layout_service import TOOLTIP_LINE_HEIGHT
from trakt_graph.services.layout_service import TOOLTIP_PADDING_X
from trakt_graph.services.layout_service import WEEKDAY_NAMES
from trakt_graph.services.layout_service import GridCell
from trakt_graph.services.layout_service import PageLayout
from trakt_graph.services.layout_service import PlacedYear
from trakt_graph.services.layout_service import layout_years
from trakt_graph.services.layout_service import sunday_index
from trakt_graph.services.layout_service import tooltip_box
from trakt_graph.services.layout_service import weekday_order
from trakt_graph.services.stats_service import color_bucket
from trakt_graph.services.stats_service import compute_day_count_stats
from trakt_graph.services.stats_service import compute_days_active
from trakt_graph.services.stats_service import compute_streak
from trakt_graph.services.stats_service import compute_weekly_distribution
from trakt_graph.services.stats_service import group_by_date
from trakt_graph.services.stats_service import local_day_key
from trakt_graph.services.svg import SVG_NAMESPACE
from trakt_graph.services.svg import Anchor
from trakt_graph.services.svg import Circle
from trakt_graph.services.svg import ClipPath
from trakt_graph.services.svg import Defs
from trakt_graph.services.svg import DropShadow
from trakt_graph.services.svg import Filter
from trakt_graph.services.svg import Group
from trakt_graph.services.svg import Image
from trakt_graph.services.svg import LinearGradient
from trakt_graph.services.svg import Path
from trakt_graph.services.svg import Rect
from trakt_graph.services.svg import Stop
from trakt_graph.services.svg import Style
from trakt_graph.services.svg import Svg
from trakt_graph.services.svg import Text
from trakt_graph.services.svg import TSpan
from trakt_graph.services.svg import format_value
from trakt_graph.services.svg import to_svg
from trakt_graph.services.themes import ACCENT
from trakt_graph.services.themes import Palette
from trakt_graph.services.themes import Theme


TRAKT_URL = "https://trakt.tv/"
TOOLTIP_FONT_SIZE = 12
WEEKLY_BAR_MAX_HEIGHT = 45
FLAME_PATH = (
    "M8.5 14.5A2.5 2.5 0 0 0 11 12c0-1.38-.5-2-1-3-1.072-2.143-.224-4.054 2-6 "
    ".5 2.5 2 4.9 4 6.5 2 1.6 3 3.5 3 5.5a7 7 0 1 1-14 0c0-1.153.433-2.294 "
    "1-3a2.5 2.5 0 0 0 2.5 2.5z"
)

BASE_CSS = """
.tooltip-group { opacity: 0; transition: opacity 0.2s ease; pointer-events: none; }
.cell-group:hover .tooltip-group { opacity: 1; }
.cell-group:hover .cell { filter: brightness(1.3); }
.cell { transition: filter 0.2s ease; }
.streak-tooltip { opacity: 0; transition: opacity 0.2s ease; pointer-events: none; }
.streak-group:hover .streak-tooltip { opacity: 1; }
.streak-group:hover { cursor: pointer; }
.streak-cell { transition: filter 0.2s ease, stroke 0.2s ease, stroke-width 0.2s ease; }
.days-active-tooltip { opacity: 0; transition: opacity 0.2s ease; pointer-events: none; }
.days-active-group:hover .days-active-tooltip { opacity: 1; }
.days-active-group:hover { cursor: pointer; }
"""


@dataclass(frozen=True)
class RenderOptions:
    """Presentation settings and profile data for one rendered document."""

    theme: Theme = Theme.DARK
    week_start: WeekStart = WeekStart.SUNDAY
    content_type: ContentType = ContentType.ALL
    color_scheme: ColorScheme = ColorScheme.LINEAR
    username: str = ""
    display_name: str = ""
    username_gradient: bool = True
    profile_image: str | None = None
    logo_image: str | None = None
    movies_count: int = 0
    episodes_count: int = 0
    followers: int = 0

    @property
    def profile_url(self) -> str:
        return f"{TRAKT_URL}users/{quote(self.username)}"

    @property
    def history_url(self) -> str:
        return f"{self.profile_url}/history"


def _translate(x: float, y: float) -> str:
    return f"translate({format_value(x)}, {format_value(y)})"


def tooltip_title(day_label: str, count: int) -> str:
    return f"{day_label}: {count} item{'' if count == 1 else 's'} watched"


def cell_day_label(cell: GridCell) -> str:
    weekday = WEEKDAY_NAMES[sunday_index(cell.day)]
    month = MONTH_NAMES[cell.day.month - 1]
    return f"{weekday}, {cell.day.day}. {month} {cell.day.year}"


def _defs(page: PageLayout, fonts: FontResources) -> Defs:
    streak_rules = "".join(
        f"svg:has(.streak-group-{placed.layout.year}:hover) "
        f".streak-cell-{placed.layout.year} "
        f"{{ filter: brightness(1.4) saturate(1.2); stroke: {ACCENT}; stroke-width: 2; }}\n"
        for placed in page.years
    )
    return Defs(
        Filter(
            DropShadow(dx=0, dy=2, stdDeviation=4, flood_color="#000000", flood_opacity=0.1),
            id="shadow", x="-20%", y="-20%", width="140%", height="140%",
        ),
        ClipPath(Circle(cx=40, cy=40, r=40), id="profileClip"),
        LinearGradient(
            Stop(offset="0%", stop_color="#ED1C24"),
            Stop(offset="100%", stop_color="#FF6B6B"),
            id="usernameGradient", x1="0%", y1="0%", x2="100%", y2="0%",
        ),
        Style(fonts.font_face_css() + BASE_CSS + streak_rules),
    )


def _header(options: RenderOptions, palette: Palette, page: PageLayout) -> Group:
    header = Group(transform=_translate(25, 20))

    avatar = Anchor(Circle(cx=40, cy=40, r=42, fill=palette.card_border), href=options.profile_url, target="_blank")
    if options.profile_image:
        avatar.add(
            Image(
                href=options.profile_image, x=0, y=0, width=80, height=80,
                clip_path="url(#profileClip)", style="cursor: pointer;",
            )
        )
    else:
        avatar.add(Circle(cx=40, cy=40, r=40, fill=palette.level_color(2)))
    header.add(avatar)

    name_fill = "url(#usernameGradient)" if options.username_gradient else palette.text
    header.add(
        Anchor(
            Text(
                text=options.display_name or options.username,
                x=100, y=35, font_family=FONT_FAMILY, font_size=28, font_weight=600,
                fill=name_fill, style="cursor: pointer;",
            ),
            href=options.profile_url, target="_blank",
        )
    )

    info = Text(x=100, y=60, font_family=FONT_FAMILY, font_size=14, font_weight=500)
    info.add(
        Anchor(
            TSpan(text=f"@{options.username}", fill=palette.text_muted),
            href=options.profile_url, target="_blank", style="cursor: pointer;",
        )
    )
    for count, label in (
        (options.movies_count, "Movies"),
        (options.episodes_count, "Episodes"),
        (options.followers, "Followers"),
    ):
        if count > 0:
            info.extend([
                TSpan(text="•", dx=5, fill=palette.text_muted),
                TSpan(text=str(count), dx=5, fill=palette.text),
                TSpan(text=f" {label}", fill=palette.text_muted),
            ])
    header.add(info)

    if options.logo_image:
        header.add(
            Anchor(
                Group(
                    Image(href=options.logo_image, x=0, y=4, width=72, height=72, style="cursor: pointer;"),
                    transform=_translate(page.width - 117, 0),
                ),
                href=TRAKT_URL, target="_blank",
            )
        )
    return header


def _weekly_tooltip(weekly: list[int], week_start: WeekStart, palette: Palette) -> Group:
    tooltip = Group(
        Rect(x=0, y=0, width=200, height=105, rx=6, fill=palette.tooltip_background,
             stroke=palette.tooltip_border, stroke_width=1),
        Text(text="Weekly Distribution", x=100, y=18, font_size=11, font_weight=600,
             fill=palette.tooltip_text, text_anchor="middle"),
        class_="days-active-tooltip", transform=_translate(-20, -115),
    )
    max_weekly = max(weekly)
    for position, weekday in enumerate(weekday_order(week_start)):
        count = weekly[weekday]
        bar_height = round(count / max_weekly * WEEKLY_BAR_MAX_HEIGHT) if max_weekly else 0
        x = 20 + position * 24
        tooltip.extend([
            Text(text=str(count), x=x + 7, y=80 - bar_height - 3, font_size=9,
                 fill=palette.tooltip_text, text_anchor="middle"),
            Rect(x=x, y=80 - bar_height, width=14, height=bar_height, rx=2, fill=palette.level_color(3)),
            Text(text=WEEKDAY_NAMES[weekday][0], x=x + 7, y=100, font_size=9,
                 fill=palette.text, text_anchor="middle"),
        ])
    return tooltip


def _legend(palette: Palette, page: PageLayout) -> Group:
    legend = Group(
        Text(text="Less", x=0, y=20, font_size=12, fill=palette.text_muted),
        transform=_translate(page.width - 200, 0),
    )
    for level, color in enumerate(palette.levels):
        legend.add(Rect(x=35 + level * 18, y=7, width=13, height=13, rx=2, fill=color))
    legend.add(Text(text="More", x=35 + 5 * 18 + 5, y=20, font_size=12, fill=palette.text_muted))
    return legend


def _year_stats(
    placed: PlacedYear,
    entries: Sequence[WatchEntry],
    streak: StreakResult,
    options: RenderOptions,
    palette: Palette,
    page: PageLayout,
) -> Group:
    year = placed.layout.year
    stats = Group(
        Text(text=str(year), x=0, y=20, font_size=16, font_weight=600, fill=palette.text),
        Group(
            Text(text=f"{len(entries)} {options.content_type.item_label}", x=0, y=15,
                 font_size=14, font_weight=500, fill=palette.text_muted),
            transform=_translate(60, 5),
        ),
        Group(
            Text(text=f"{compute_days_active(entries)} Days Active", x=0, y=15,
                 font_size=14, font_weight=500, fill=palette.text_muted),
            _weekly_tooltip(compute_weekly_distribution(entries), options.week_start, palette),
            class_="days-active-group", transform=_translate(180, 5),
        ),
        transform=_translate(25, placed.offset_y), font_family=FONT_FAMILY,
    )

    flame_color = ACCENT if streak.length > 0 else palette.text_muted
    streak_group = stats.add(
        Group(
            Path(d=FLAME_PATH, stroke=flame_color, stroke_width=1.5, stroke_linecap="round",
                 stroke_linejoin="round", fill=ACCENT if streak.length > 0 else "none",
                 fill_opacity=0.2, transform="scale(0.75)"),
            Text(text=f"{streak.length} Day Streak", x=18, y=13, font_size=14,
                 font_weight=500, fill=palette.text_muted),
            class_=f"streak-group streak-group-{year}", transform=_translate(320, 5),
        )
    )
    if streak.length > 0:
        streak_group.add(
            Group(
                Rect(x=-10, y=0, width=180, height=36, rx=6, fill=palette.tooltip_background,
                     stroke=palette.tooltip_border, stroke_width=1),
                Text(text=f"{streak.start_date} → {streak.end_date}", x=5, y=23,
                     font_size=12, fill=palette.tooltip_text),
                class_="streak-tooltip", transform=_translate(0, -45),
            )
        )

    if placed.index == 0:
        stats.add(_legend(palette, page))
    return stats


def _labels(placed: PlacedYear, palette: Palette) -> list[Group]:
    layout = placed.layout
    months = Group(transform=_translate(GRID_OFFSET_X, placed.month_labels_y), font_family=FONT_FAMILY)
    for label in layout.month_labels:
        months.add(Text(text=label.text, x=label.x, y=0, font_size=11, fill=palette.text_muted, font_weight=500))

    days = Group(transform=_translate(DAY_LABEL_X, placed.grid_y), font_family=FONT_FAMILY)
    for label in layout.day_labels:
        days.add(Text(text=label.text, x=0, y=label.y, font_size=10, fill=palette.text_muted, text_anchor="end"))
    return [months, days]


def _cell(
    cell: GridCell,
    level: int,
    items: Sequence[WatchEntry],
    in_streak: bool,
    options: RenderOptions,
    palette: Palette,
    page: PageLayout,
    fonts: FontResources,
) -> Group:
    title = tooltip_title(cell_day_label(cell), cell.count)
    lines = [title, *(item.tooltip_line for item in items)]
    box = tooltip_box(
        lines,
        cell.x,
        cell.y,
        page.width,
        lambda line: fonts.text_width(line, TOOLTIP_FONT_SIZE),
    )

    cell_class = "cell"
    if in_streak:
        cell_class = f"cell streak-cell streak-cell-{cell.day.year}"

    content = Text(
        TSpan(text=title, x=TOOLTIP_PADDING_X, dy=22, font_weight=600),
        font_family=FONT_FAMILY, font_size=TOOLTIP_FONT_SIZE, fill=palette.tooltip_text,
    )
    content.extend([TSpan(text=line, x=TOOLTIP_PADDING_X, dy=TOOLTIP_LINE_HEIGHT) for line in lines[1:]])

    return Group(
        Anchor(
            Rect(
                class_=cell_class, x=cell.x, y=cell.y, width=CELL_SIZE, height=CELL_SIZE, rx=2,
                fill=palette.level_color(level), data_date=local_day_key(cell.day), data_level=level,
            ),
            Group(
                Rect(x=0, y=0, width=box.width, height=box.height, rx=6,
                     fill=palette.tooltip_background, stroke=palette.tooltip_border, stroke_width=1),
                content,
                class_="tooltip-group", transform=_translate(box.x, box.y),
            ),
            href=options.history_url, target="_blank",
        ),
        class_="cell-group",
    )


def _grid(
    placed: PlacedYear,
    entries: Sequence[WatchEntry],
    streak: StreakResult,
    options: RenderOptions,
    palette: Palette,
    page: PageLayout,
    fonts: FontResources,
) -> Group:
    layout = placed.layout
    items_per_day = group_by_date(entries)
    day_stats = compute_day_count_stats(len(items) for items in items_per_day.values())
    max_count = layout.max_count

    grid = Group(transform=_translate(GRID_OFFSET_X, placed.grid_y))
    for cell in layout.cells():
        if not cell.visible:
            continue
        level = color_bucket(cell.count, options.color_scheme, max_count=max_count, day_stats=day_stats)
        grid.add(
            _cell(
                cell,
                level,
                items_per_day.get(local_day_key(cell.day), []),
                streak.contains(cell.day),
                options,
                palette,
                page,
                fonts,
            )
        )
    return grid


def build_document(
    entries: Sequence[WatchEntry],
    years: Sequence[int],
    options: RenderOptions,
    fonts: FontResources | None = None,
) -> Svg:
    """Build the document tree for one or more stacked years."""

    fonts = fonts or FontResources()
    palette = options.theme.palette
    page = layout_years(entries, years, options.week_start)

    document = Svg(
        _defs(page, fonts),
        Rect(width="100%", height="100%", rx=12, fill=palette.background,
             stroke=palette.card_border, stroke_width=1, filter="url(#shadow)"),
        _header(options, palette, page),
        width=page.width, height=page.height, viewBox=f"0 0 {page.width} {page.height}",
        fill="none", xmlns=SVG_NAMESPACE,
    )

    for placed in page.years:
        year_entries = [entry for entry in entries if entry.day.year == placed.layout.year]
        streak = compute_streak(year_entries)
        document.add(_year_stats(placed, year_entries, streak, options, palette, page))
        document.extend(_labels(placed, palette))
        document.add(_grid(placed, year_entries, streak, options, palette, page, fonts))
    return document


def render_years(
    entries: Sequence[WatchEntry],
    years: Sequence[int],
    options: RenderOptions,
    fonts: FontResources | None = None,
) -> str:
    """Render the activity graph of `years` as an SVG document string."""

    return to_svg(build_document(entries, years, options, fonts))
