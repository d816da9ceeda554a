from datetime import date

import pytest

from trakt_graph.models import WeekStart
from trakt_graph.services.layout_service import GRID_OFFSET_X
from trakt_graph.services.layout_service import TOOLTIP_MIN_WIDTH
from trakt_graph.services.layout_service import grid_position
from trakt_graph.services.layout_service import layout_year
from trakt_graph.services.layout_service import layout_years
from trakt_graph.services.layout_service import tooltip_box
from trakt_graph.services.layout_service import weekday_order


def test_layout_year_monday_start_needs_no_shift_for_2024() -> None:
    layout = layout_year([], 2024, WeekStart.MONDAY)

    assert layout.start_date == date(2024, 1, 1)
    assert layout.total_days == 366
    assert layout.total_weeks == 53


def test_layout_year_sunday_start_shifts_back_to_sunday() -> None:
    layout = layout_year([], 2024, WeekStart.SUNDAY)

    assert layout.start_date == date(2023, 12, 31)
    assert layout.total_days == 367
    assert layout.total_weeks == 53


@pytest.mark.parametrize("week_start", list(WeekStart))
def test_total_weeks_covers_every_day_exactly(week_start: WeekStart) -> None:
    for year in range(1990, 2041):
        layout = layout_year([], year, week_start)

        assert layout.total_weeks * 7 >= layout.total_days
        assert (layout.total_weeks - 1) * 7 < layout.total_days
        assert layout.start_date <= date(year, 1, 1)
        assert (date(year, 1, 1) - layout.start_date).days < 7


def test_grid_sum_matches_entries_inside_the_year(make_entry, sample_entries) -> None:
    entries = [
        *sample_entries,
        make_entry("2023-12-31"),
        make_entry("2025-01-01"),
    ]

    layout = layout_year(entries, 2024, WeekStart.SUNDAY)

    assert layout.total_count == len(sample_entries)
    assert layout.max_count == 2


def test_layout_year_places_entries_by_week_start(make_entry) -> None:
    entries = [make_entry("2024-01-01"), make_entry("2024-12-31")]

    sunday = layout_year(entries, 2024, WeekStart.SUNDAY)
    monday = layout_year(entries, 2024, WeekStart.MONDAY)

    assert sunday.grid[1][0] == 1
    assert sunday.grid[2][52] == 1
    assert monday.grid[0][0] == 1
    assert monday.grid[1][52] == 1


def test_grid_position_handles_leap_day() -> None:
    start = date(2023, 12, 31)

    assert grid_position(date(2024, 2, 29), start, WeekStart.SUNDAY) == (4, 8)


def test_cells_outside_the_year_are_not_visible() -> None:
    layout = layout_year([], 2024, WeekStart.SUNDAY)
    cells = list(layout.cells())

    assert len(cells) == 7 * layout.total_weeks
    assert sum(1 for cell in cells if cell.visible) == 366
    first = next(cell for cell in cells if cell.day_index == 0 and cell.week_index == 0)
    assert first.day == date(2023, 12, 31)
    assert not first.visible


def test_month_labels_anchor_to_first_day_column() -> None:
    layout = layout_year([], 2024, WeekStart.SUNDAY)

    assert [label.text for label in layout.month_labels][:3] == ["Jan", "Feb", "Mar"]
    assert len(layout.month_labels) == 12
    assert layout.month_labels[0].week_index == 0
    assert layout.month_labels[2].week_index == 8
    assert layout.month_labels[2].x == 8 * 17


def test_day_labels_follow_week_start() -> None:
    monday = layout_year([], 2024, WeekStart.MONDAY)
    sunday = layout_year([], 2024, WeekStart.SUNDAY)

    assert [label.text for label in monday.day_labels] == ["M", "T", "W", "T", "F", "S", "S"]
    assert [label.text for label in sunday.day_labels] == ["S", "M", "T", "W", "T", "F", "S"]
    assert weekday_order(WeekStart.MONDAY) == [1, 2, 3, 4, 5, 6, 0]


def test_layout_years_computes_each_year_independently(make_entry) -> None:
    entries = [make_entry("2023-06-01"), make_entry("2024-06-01")]

    page = layout_years(entries, [2023, 2024], WeekStart.SUNDAY)

    assert [placed.layout.year for placed in page.years] == [2024, 2023]
    assert page.years[0].layout.start_date == date(2023, 12, 31)
    assert page.years[1].layout.start_date == date(2023, 1, 1)
    assert [placed.offset_y for placed in page.years] == [115, 295]
    assert page.height == 475
    assert page.width == 53 * 17 + 100
    assert all(placed.layout.total_count == 1 for placed in page.years)


def test_layout_years_widens_page_for_54_week_year() -> None:
    page = layout_years([], [2000], WeekStart.SUNDAY)

    assert page.years[0].layout.total_weeks == 54
    assert page.width == 54 * 17 + 100


def test_tooltip_box_is_clamped_to_right_edge() -> None:
    box = tooltip_box(["x" * 100], cell_x=900, cell_y=0, document_width=1000, measure=lambda line: len(line) * 7)

    assert box.width == 720
    assert box.x == 1000 - GRID_OFFSET_X - 720 - 10
    assert box.x + box.width + GRID_OFFSET_X <= 1000
    assert box.height == 38
    assert box.y == -46


def test_tooltip_box_grows_with_lines_and_keeps_minimum_width() -> None:
    box = tooltip_box(["title", "• a", "• b"], cell_x=17, cell_y=34, document_width=1000, measure=len)

    assert box.width == TOOLTIP_MIN_WIDTH
    assert box.x == 17
    assert box.height == 38 + 2 * 18
