import base64
import logging
import time
from collections.abc import Callable
from collections.abc import Iterator
from collections.abc import Mapping
from datetime import tzinfo
from typing import Any

import httpx

from trakt_graph.models import ContentType
from trakt_graph.services.history_service import parse_watched_at


logger = logging.getLogger(__name__)

USER_AGENT = "trakt-graph"


def trakt_headers(api_key: str) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "trakt-api-version": "2",
        "trakt-api-key": api_key,
        "User-Agent": USER_AGENT,
    }


def _trakt_get(
    http_client: httpx.Client,
    api_base_url: str,
    endpoint: str,
    api_key: str,
    params: Mapping[str, str | int] | None = None,
) -> httpx.Response:
    response = http_client.get(
        f"{api_base_url.rstrip('/')}{endpoint}",
        params=params,
        headers=trakt_headers(api_key),
    )
    response.raise_for_status()
    return response


def fetch_profile(
    username: str, api_key: str, api_base_url: str, http_client: httpx.Client
) -> dict[str, str | None]:
    """Fetch display name and avatar URL of a Trakt user."""

    response = _trakt_get(
        http_client, api_base_url, f"/users/{username}", api_key, {"extended": "full"}
    )
    payload: Any = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("Trakt profile response is invalid")

    images = payload.get("images")
    avatar = images.get("avatar") if isinstance(images, Mapping) else None
    avatar_url = avatar.get("full") if isinstance(avatar, Mapping) else None
    raw_name = payload.get("name")
    raw_username = payload.get("username")

    return {
        "display_name": raw_name if isinstance(raw_name, str) and raw_name else username,
        "profile_image": avatar_url if isinstance(avatar_url, str) and avatar_url else None,
        "username": raw_username if isinstance(raw_username, str) and raw_username else username,
    }


def fetch_user_stats(
    username: str, api_key: str, api_base_url: str, http_client: httpx.Client
) -> dict[str, int]:
    """Fetch all-time watch and network counters of a Trakt user."""

    response = _trakt_get(http_client, api_base_url, f"/users/{username}/stats", api_key)
    payload: Any = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("Trakt stats response is invalid")

    def counter(section: str, key: str) -> int:
        values = payload.get(section)
        value = values.get(key) if isinstance(values, Mapping) else None
        return value if isinstance(value, int) else 0

    return {
        "movies_all_time": counter("movies", "watched"),
        "episodes_all_time": counter("episodes", "watched"),
        "followers": counter("network", "followers"),
    }


def history_endpoint(username: str, content_type: ContentType) -> str:
    if content_type is ContentType.MOVIES:
        return f"/users/{username}/history/movies"
    if content_type is ContentType.SHOWS:
        return f"/users/{username}/history/shows"
    return f"/users/{username}/history"


def _older_than(items: list[Any], min_year: int, tz: tzinfo | None = None) -> bool:
    for item in items:
        watched_at = parse_watched_at(item.get("watched_at"), tz) if isinstance(item, Mapping) else None
        if watched_at is None or watched_at.year >= min_year:
            return False
    return True


def iter_history_pages(
    username: str,
    api_key: str,
    api_base_url: str,
    http_client: httpx.Client,
    content_type: ContentType = ContentType.ALL,
    min_year: int | None = None,
    per_page: int = 100,
    page_delay_seconds: float = 0.5,
    tz: tzinfo | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[list[Any]]:
    """Yield history pages, newest first, waiting a fixed delay between pages.

    Stops after the last page reported by `x-pagination-page-count`, on an
    empty page, or once a whole page is older than `min_year`. Years are
    taken in `tz`, the zone the history is normalized in.
    """

    endpoint = history_endpoint(username, content_type)
    page = 1
    while True:
        response = _trakt_get(
            http_client, api_base_url, endpoint, api_key, {"page": page, "limit": per_page}
        )
        items = response.json()
        if not isinstance(items, list):
            raise ValueError("Trakt history response is invalid")

        logger.info("History page %d: %d items", page, len(items))
        if min_year is not None and items and _older_than(items, min_year, tz):
            return

        yield items

        try:
            page_count = int(response.headers.get("x-pagination-page-count", "1"))
        except ValueError:
            page_count = 1
        if page >= page_count or not items:
            return

        page += 1
        sleep(page_delay_seconds)


def fetch_image_data_uri(url: str, http_client: httpx.Client) -> str:
    """Download an image and encode it as a base64 data URI."""

    response = http_client.get(url)
    response.raise_for_status()
    mime_type = response.headers.get("content-type", "image/png").split(";")[0].strip()
    encoded = base64.b64encode(response.content).decode("ascii")
    return f"data:{mime_type or 'image/png'};base64,{encoded}"
