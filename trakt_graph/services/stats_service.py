import math
from collections.abc import Iterable
from collections.abc import Sequence
from datetime import date
from datetime import timedelta

from trakt_graph.models import ColorScheme
from trakt_graph.models import DayCountStats
from trakt_graph.models import StreakResult
from trakt_graph.models import WatchEntry


MAX_LEVEL = 4
RATING_KEYS = tuple(str(rating) for rating in range(1, 11))


def local_day_key(day: date) -> str:
    """Return the `YYYY-MM-DD` grouping key of a local calendar day."""

    return day.isoformat()


def unique_days(entries: Iterable[WatchEntry]) -> list[date]:
    return sorted({entry.day for entry in entries})


def compute_streak(entries: Iterable[WatchEntry]) -> StreakResult:
    """Find the longest run of consecutive local days with at least one entry."""

    days = unique_days(entries)
    if not days:
        return StreakResult()

    best_length = current_length = 1
    best_start = best_end = current_start = days[0]
    for previous_day, day in zip(days, days[1:]):
        if day - previous_day == timedelta(days=1):
            current_length += 1
            if current_length > best_length:
                best_length = current_length
                best_start = current_start
                best_end = day
        else:
            current_length = 1
            current_start = day

    return StreakResult(length=best_length, start_date=best_start, end_date=best_end)


def compute_days_active(entries: Iterable[WatchEntry]) -> int:
    return len({entry.day for entry in entries})


def compute_weekly_distribution(entries: Iterable[WatchEntry]) -> list[int]:
    """Count entries per day of week, index 0 being Sunday."""

    distribution = [0] * 7
    for entry in entries:
        distribution[(entry.day.weekday() + 1) % 7] += 1
    return distribution


def group_by_date(entries: Iterable[WatchEntry]) -> dict[str, list[WatchEntry]]:
    """Group entries by local day key, keeping input order inside each day."""

    grouped: dict[str, list[WatchEntry]] = {}
    for entry in entries:
        grouped.setdefault(local_day_key(entry.day), []).append(entry)
    return grouped


def compute_day_count_stats(day_counts: Iterable[int]) -> DayCountStats:
    """Percentile thresholds over the counts of active days."""

    counts = sorted(count for count in day_counts if count > 0)
    if not counts:
        return DayCountStats()

    def pick(quantile: float) -> int:
        return counts[min(math.floor(len(counts) * quantile), len(counts) - 1)]

    return DayCountStats(p25=pick(0.25), p50=pick(0.5), p75=pick(0.75), p90=pick(0.9))


def color_bucket(
    count: int,
    scheme: ColorScheme,
    max_count: int = 0,
    day_stats: DayCountStats | None = None,
) -> int:
    """Map a per-day count to an intensity level in range 0..4."""

    if count <= 0:
        return 0

    if scheme is ColorScheme.PERCENTILE:
        stats = day_stats or DayCountStats()
        if count <= stats.p25:
            return 1
        if count <= stats.p50:
            return 2
        if count <= stats.p75:
            return 3
        return MAX_LEVEL

    if max_count <= 0:
        return 0
    return min(math.ceil(count / max_count * MAX_LEVEL), MAX_LEVEL)


def compute_average_rating(entries: Iterable[WatchEntry]) -> float | None:
    ratings = [entry.rating for entry in entries if entry.rating is not None]
    if not ratings:
        return None
    return round(sum(ratings) / len(ratings), 1)


def compute_rating_distribution(entries: Sequence[WatchEntry]) -> dict[str, int]:
    """Count entries per rounded rating 1..10, unrated entries under `unrated`."""

    distribution = {key: 0 for key in RATING_KEYS}
    distribution["unrated"] = 0
    for entry in entries:
        if entry.rating is None:
            distribution["unrated"] += 1
            continue
        key = str(int(entry.rating + 0.5))
        if key in distribution:
            distribution[key] += 1
    return distribution
