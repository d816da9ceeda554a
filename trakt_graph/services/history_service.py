import logging
from collections.abc import Iterable
from collections.abc import Mapping
from datetime import UTC
from datetime import date
from datetime import datetime
from datetime import tzinfo
from typing import Any

from trakt_graph.models import EntryKind
from trakt_graph.models import NormalizedHistory
from trakt_graph.models import WatchEntry


logger = logging.getLogger(__name__)


def parse_watched_at(raw_value: object, tz: tzinfo | None = None) -> datetime | None:
    """Parse a Trakt `watched_at` timestamp into the observer's local time.

    Naive timestamps are read as UTC. Returns None when the value is unusable.
    """

    if isinstance(raw_value, datetime):
        parsed = raw_value
    elif isinstance(raw_value, str) and raw_value.strip():
        try:
            parsed = datetime.fromisoformat(raw_value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    try:
        return parsed.astimezone(tz)
    except (OverflowError, ValueError):
        # Instants near datetime.min/max have no local representation.
        return None


def format_episode_label(season: int, number: int) -> str:
    return f"S{season:02d}E{number:02d}"


def _clean_rating(raw_value: object) -> float | None:
    if isinstance(raw_value, bool) or not isinstance(raw_value, int | float):
        return None
    if not 1 <= raw_value <= 10:
        return None
    return float(raw_value)


def _clean_year(raw_value: object) -> int | None:
    if isinstance(raw_value, bool) or not isinstance(raw_value, int):
        return None
    return raw_value


def build_entry(event: Mapping[str, Any], watched_at: datetime) -> WatchEntry | None:
    """Convert one raw history event into a WatchEntry, or None if malformed."""

    raw_kind = event.get("type")
    if raw_kind == EntryKind.EPISODE.value:
        episode = event.get("episode")
        show = event.get("show")
        if not isinstance(episode, Mapping) or not isinstance(show, Mapping):
            return None
        season = episode.get("season")
        number = episode.get("number")
        title = show.get("title")
        if not isinstance(title, str) or not title:
            return None
        if not isinstance(season, int) or not isinstance(number, int):
            return None
        episode_title = episode.get("title")
        return WatchEntry(
            watched_at=watched_at,
            title=title,
            year=_clean_year(show.get("year")),
            kind=EntryKind.EPISODE,
            episode_label=format_episode_label(season, number),
            episode_title=episode_title if isinstance(episode_title, str) else None,
            rating=_clean_rating(event.get("rating", episode.get("rating"))),
        )

    if raw_kind == EntryKind.MOVIE.value:
        movie = event.get("movie")
        if not isinstance(movie, Mapping):
            return None
        title = movie.get("title")
        if not isinstance(title, str) or not title:
            return None
        return WatchEntry(
            watched_at=watched_at,
            title=title,
            year=_clean_year(movie.get("year")),
            kind=EntryKind.MOVIE,
            rating=_clean_rating(event.get("rating", movie.get("rating"))),
        )

    return None


def select_year(year_counts: Mapping[int, int], current_year: int) -> int:
    """Pick the year with the most entries.

    Ties prefer `current_year` when it is among the tied years, otherwise the
    most recent tied year. With no entries at all, `current_year` is returned.
    """

    if not year_counts:
        return current_year

    best_count = max(year_counts.values())
    tied_years = [year for year, count in year_counts.items() if count == best_count]
    if current_year in tied_years:
        return current_year
    return max(tied_years)


def _parse_events(
    raw_events: Iterable[object], tz: tzinfo | None
) -> tuple[list[WatchEntry], int]:
    parsed: list[WatchEntry] = []
    skipped_count = 0
    for event in raw_events:
        if not isinstance(event, Mapping):
            skipped_count += 1
            continue
        watched_at = parse_watched_at(event.get("watched_at"), tz)
        if watched_at is None:
            skipped_count += 1
            continue
        entry = build_entry(event, watched_at)
        if entry is None:
            skipped_count += 1
            continue
        parsed.append(entry)

    if skipped_count:
        logger.warning("Skipped %d malformed history events", skipped_count)
    return parsed, skipped_count


def _count_years(entries: Iterable[WatchEntry]) -> dict[int, int]:
    year_counts: dict[int, int] = {}
    for entry in entries:
        year_counts[entry.day.year] = year_counts.get(entry.day.year, 0) + 1
    return year_counts


def _entries_of_year(entries: Iterable[WatchEntry], year: int) -> list[WatchEntry]:
    return sorted(
        (entry for entry in entries if entry.day.year == year),
        key=lambda entry: entry.watched_at,
    )


def normalize_history(
    raw_events: Iterable[object],
    target_year: int | None = None,
    tz: tzinfo | None = None,
    current_year: int | None = None,
) -> NormalizedHistory:
    """Normalize raw Trakt history events and keep only one calendar year.

    Events with an unparseable timestamp, an unknown `type` or missing
    kind-specific fields are skipped and counted in `skipped_count`.
    """

    parsed, skipped_count = _parse_events(raw_events, tz)
    year_counts = _count_years(parsed)

    if target_year is None:
        selected_year = select_year(
            year_counts,
            current_year if current_year is not None else date.today().year,
        )
    else:
        selected_year = target_year

    entries = _entries_of_year(parsed, selected_year)
    movie_count = sum(1 for entry in entries if entry.kind is EntryKind.MOVIE)
    episode_count = len(entries) - movie_count

    logger.info(
        "Processing year %s (year counts: %s)", selected_year, dict(sorted(year_counts.items()))
    )
    logger.info("Processed %d movies, %d episodes", movie_count, episode_count)

    return NormalizedHistory(
        entries=tuple(entries),
        year=selected_year,
        total_count=len(entries),
        movie_count=movie_count,
        episode_count=episode_count,
        skipped_count=skipped_count,
        year_counts=year_counts,
    )


def normalize_years(
    raw_events: Iterable[object],
    years: Iterable[int],
    tz: tzinfo | None = None,
) -> list[WatchEntry]:
    """Collect the normalized entries of several years, newest year first.

    The raw events are parsed once for all years.
    """

    parsed, _ = _parse_events(raw_events, tz)
    selected_years = sorted(set(years), reverse=True)
    logger.info(
        "Processing years %s (year counts: %s)",
        ", ".join(str(year) for year in selected_years),
        dict(sorted(_count_years(parsed).items())),
    )

    entries: list[WatchEntry] = []
    for year in selected_years:
        entries.extend(_entries_of_year(parsed, year))
    return entries
