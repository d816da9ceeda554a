import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import tzinfo
from typing import Any
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError

import httpx

from trakt_graph.models import ColorScheme
from trakt_graph.models import ContentType
from trakt_graph.models import EntryKind
from trakt_graph.models import WatchEntry
from trakt_graph.models import WeekStart
from trakt_graph.services.fonts import FontResources
from trakt_graph.services.history_service import normalize_history
from trakt_graph.services.history_service import normalize_years
from trakt_graph.services.layout_service import layout_year
from trakt_graph.services.render_service import RenderOptions
from trakt_graph.services.render_service import render_years
from trakt_graph.services.stats_service import color_bucket
from trakt_graph.services.stats_service import compute_average_rating
from trakt_graph.services.stats_service import compute_day_count_stats
from trakt_graph.services.stats_service import compute_days_active
from trakt_graph.services.stats_service import compute_rating_distribution
from trakt_graph.services.stats_service import compute_streak
from trakt_graph.services.stats_service import compute_weekly_distribution
from trakt_graph.services.themes import Theme
from trakt_graph.settings import Settings
from trakt_graph.trakt_api import fetch_image_data_uri
from trakt_graph.trakt_api import fetch_profile
from trakt_graph.trakt_api import fetch_user_stats
from trakt_graph.trakt_api import iter_history_pages


logger = logging.getLogger(__name__)


class TraktConfigurationError(Exception):
    """Raised when no Trakt API key is configured."""


class TraktUserNotFoundError(Exception):
    """Raised when Trakt does not know the requested user."""


class TraktAPIError(Exception):
    """Raised when Trakt requests fail and nothing usable was fetched."""


@dataclass(frozen=True)
class GraphData:
    """Everything fetched for one user, ready to render any number of times."""

    username: str
    display_name: str
    entries: tuple[WatchEntry, ...]
    years: tuple[int, ...]
    profile_image: str | None = None
    logo_image: str | None = None
    followers: int = 0

    @property
    def movies_count(self) -> int:
        return sum(1 for entry in self.entries if entry.kind is EntryKind.MOVIE)

    @property
    def episodes_count(self) -> int:
        return sum(1 for entry in self.entries if entry.kind is EntryKind.EPISODE)


def resolve_timezone(name: str | None) -> tzinfo | None:
    """Return the configured zone, or None for the process local zone."""

    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using local time", name)
        return None


def _is_not_found(exc: Exception) -> bool:
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 404


def _load_profile(
    username: str, settings: Settings, http_client: httpx.Client
) -> dict[str, str | None]:
    try:
        return fetch_profile(username, settings.trakt_api_key or "", settings.trakt_api_base_url, http_client)
    except (httpx.HTTPError, ValueError) as exc:
        if _is_not_found(exc):
            raise TraktUserNotFoundError(username) from exc
        logger.warning("Could not fetch profile for %s: %s", username, exc)
        return {"display_name": username, "profile_image": None, "username": username}


def _load_followers(username: str, settings: Settings, http_client: httpx.Client) -> int:
    try:
        stats = fetch_user_stats(username, settings.trakt_api_key or "", settings.trakt_api_base_url, http_client)
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Could not fetch stats for %s: %s. Using zeros.", username, exc)
        return 0
    return stats["followers"]


def _load_image(url: str | None, http_client: httpx.Client) -> str | None:
    if not url:
        return None
    try:
        return fetch_image_data_uri(url, http_client)
    except httpx.HTTPError as exc:
        logger.warning("Could not fetch image %s: %s", url, exc)
        return None


def _load_history(
    username: str,
    settings: Settings,
    http_client: httpx.Client,
    content_type: ContentType,
    min_year: int | None,
    tz: tzinfo | None,
) -> list[Any]:
    history: list[Any] = []
    try:
        for page in iter_history_pages(
            username,
            settings.trakt_api_key or "",
            settings.trakt_api_base_url,
            http_client,
            content_type=content_type,
            min_year=min_year,
            per_page=settings.history_page_size,
            page_delay_seconds=settings.history_page_delay_seconds,
            tz=tz,
        ):
            history.extend(page)
    except (httpx.HTTPError, ValueError) as exc:
        if _is_not_found(exc):
            raise TraktUserNotFoundError(username) from exc
        if not history:
            raise TraktAPIError("Trakt history request failed") from exc
        logger.warning("History fetch stopped early after %d items: %s", len(history), exc)

    logger.info("Total history items fetched: %d", len(history))
    return history


def load_graph_data(
    username: str,
    settings: Settings,
    years: Sequence[int] = (),
    content_type: ContentType = ContentType.ALL,
    http_client: httpx.Client | None = None,
) -> GraphData:
    """Fetch profile, images and history of a user and normalize the history.

    Without `years`, the user's most active year is selected. Profile, stats
    and image failures fall back to defaults; history failures raise
    TraktAPIError only when no page could be fetched.
    """

    if not settings.trakt_api_key:
        raise TraktConfigurationError("TRAKT_API_KEY is not set")

    tz = resolve_timezone(settings.timezone)
    client = http_client or httpx.Client(timeout=20.0, follow_redirects=True)
    try:
        profile = _load_profile(username, settings, client)
        followers = _load_followers(username, settings, client)
        profile_image = _load_image(profile["profile_image"], client)
        logo_image = _load_image(settings.trakt_logo_url, client)
        raw_history = _load_history(
            username, settings, client, content_type, min(years) if years else None, tz
        )
    finally:
        if http_client is None:
            client.close()

    if years:
        selected_years = tuple(sorted(set(years), reverse=True))
        entries = normalize_years(raw_history, selected_years, tz=tz)
    else:
        normalized = normalize_history(raw_history, tz=tz)
        selected_years = (normalized.year,)
        entries = list(normalized.entries)

    return GraphData(
        username=profile["username"] or username,
        display_name=profile["display_name"] or username,
        entries=tuple(entries),
        years=selected_years,
        profile_image=profile_image,
        logo_image=logo_image,
        followers=followers,
    )


def render_graph(
    data: GraphData,
    theme: Theme = Theme.DARK,
    week_start: WeekStart = WeekStart.SUNDAY,
    content_type: ContentType = ContentType.ALL,
    color_scheme: ColorScheme = ColorScheme.LINEAR,
    username_gradient: bool = True,
    fonts: FontResources | None = None,
) -> str:
    options = RenderOptions(
        theme=theme,
        week_start=week_start,
        content_type=content_type,
        color_scheme=color_scheme,
        username=data.username,
        display_name=data.display_name,
        username_gradient=username_gradient,
        profile_image=data.profile_image,
        logo_image=data.logo_image,
        movies_count=data.movies_count,
        episodes_count=data.episodes_count,
        followers=data.followers,
    )
    return render_years(data.entries, data.years, options, fonts)


def summarize_year(
    data: GraphData,
    year: int,
    week_start: WeekStart = WeekStart.SUNDAY,
    color_scheme: ColorScheme = ColorScheme.LINEAR,
) -> dict[str, object]:
    """Build the statistics payload of one year, with per-day count and level."""

    entries = [entry for entry in data.entries if entry.day.year == year]
    layout = layout_year(entries, year, week_start)
    visible_cells = sorted(
        (cell for cell in layout.cells() if cell.visible), key=lambda cell: cell.day
    )
    day_stats = compute_day_count_stats(cell.count for cell in visible_cells)
    max_count = layout.max_count
    streak = compute_streak(entries)

    return {
        "username": data.username,
        "year": year,
        "total": len(entries),
        "movies": sum(1 for entry in entries if entry.kind is EntryKind.MOVIE),
        "episodes": sum(1 for entry in entries if entry.kind is EntryKind.EPISODE),
        "days_active": compute_days_active(entries),
        "streak": {
            "length": streak.length,
            "start_date": streak.start_date,
            "end_date": streak.end_date,
        },
        "weekly_distribution": compute_weekly_distribution(entries),
        "average_rating": compute_average_rating(entries),
        "rating_distribution": compute_rating_distribution(entries),
        "days": [
            {
                "date": cell.day,
                "count": cell.count,
                "level": color_bucket(
                    cell.count, color_scheme, max_count=max_count, day_stats=day_stats
                ),
            }
            for cell in visible_cells
        ],
    }
