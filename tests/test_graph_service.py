from datetime import date

import httpx
import pytest

from trakt_graph.models import ContentType
from trakt_graph.services.graph_service import GraphData
from trakt_graph.services.graph_service import TraktAPIError
from trakt_graph.services.graph_service import TraktConfigurationError
from trakt_graph.services.graph_service import TraktUserNotFoundError
from trakt_graph.services.graph_service import load_graph_data
from trakt_graph.services.graph_service import render_graph
from trakt_graph.services.graph_service import resolve_timezone
from trakt_graph.services.graph_service import summarize_year
from trakt_graph.settings import Settings


MODULE = "trakt_graph.services.graph_service"


def status_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.trakt.test/users/octocat")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError("Trakt error", request=request, response=response)


def movie(watched_at: str, title: str = "Dune") -> dict[str, object]:
    return {"type": "movie", "watched_at": watched_at, "movie": {"title": title, "year": 2021}}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        trakt_api_key="key",
        trakt_logo_url="https://trakt.test/logo.svg",
        history_page_delay_seconds=0,
        timezone="UTC",
    )


@pytest.fixture
def fake_trakt(monkeypatch: pytest.MonkeyPatch) -> dict[str, object]:
    state: dict[str, object] = {
        "pages": [[movie("2024-01-01T10:00:00Z"), movie("2024-01-02T10:00:00Z")], [movie("2023-05-05T10:00:00Z")]],
        "history_kwargs": None,
    }

    def fake_fetch_profile(username, api_key, api_base_url, http_client):
        return {"display_name": "Octo Cat", "profile_image": "https://img.test/a.png", "username": username}

    def fake_fetch_user_stats(username, api_key, api_base_url, http_client):
        return {"movies_all_time": 10, "episodes_all_time": 20, "followers": 7}

    def fake_fetch_image_data_uri(url, http_client):
        return f"data:image/png;base64,{url[-5:]}"

    def fake_iter_history_pages(username, api_key, api_base_url, http_client, **kwargs):
        state["history_kwargs"] = kwargs
        yield from state["pages"]

    monkeypatch.setattr(f"{MODULE}.fetch_profile", fake_fetch_profile)
    monkeypatch.setattr(f"{MODULE}.fetch_user_stats", fake_fetch_user_stats)
    monkeypatch.setattr(f"{MODULE}.fetch_image_data_uri", fake_fetch_image_data_uri)
    monkeypatch.setattr(f"{MODULE}.iter_history_pages", fake_iter_history_pages)
    return state


def test_load_graph_data_requires_api_key() -> None:
    with pytest.raises(TraktConfigurationError):
        load_graph_data("octocat", Settings(trakt_api_key=None))


def test_load_graph_data_selects_most_active_year(settings: Settings, fake_trakt) -> None:
    data = load_graph_data("octocat", settings)

    assert data.years == (2024,)
    assert [entry.day for entry in data.entries] == [date(2024, 1, 1), date(2024, 1, 2)]
    assert data.display_name == "Octo Cat"
    assert data.followers == 7
    assert data.profile_image == "data:image/png;base64,a.png"
    assert data.logo_image == "data:image/png;base64,o.svg"
    assert fake_trakt["history_kwargs"]["min_year"] is None


def test_load_graph_data_keeps_requested_years(settings: Settings, fake_trakt) -> None:
    data = load_graph_data("octocat", settings, years=[2023, 2024], content_type=ContentType.MOVIES)

    assert data.years == (2024, 2023)
    assert len(data.entries) == 3
    assert data.movies_count == 3
    assert fake_trakt["history_kwargs"]["min_year"] == 2023
    assert fake_trakt["history_kwargs"]["content_type"] is ContentType.MOVIES
    assert str(fake_trakt["history_kwargs"]["tz"]) == "UTC"


def test_load_graph_data_falls_back_when_profile_and_images_fail(
    monkeypatch: pytest.MonkeyPatch, settings: Settings, fake_trakt
) -> None:
    def failing_profile(*args):
        raise status_error(500)

    def failing_stats(*args):
        raise httpx.ConnectError("offline")

    def failing_image(url, http_client):
        raise status_error(403)

    monkeypatch.setattr(f"{MODULE}.fetch_profile", failing_profile)
    monkeypatch.setattr(f"{MODULE}.fetch_user_stats", failing_stats)
    monkeypatch.setattr(f"{MODULE}.fetch_image_data_uri", failing_image)

    data = load_graph_data("octocat", settings)

    assert data.display_name == "octocat"
    assert data.profile_image is None
    assert data.logo_image is None
    assert data.followers == 0
    assert len(data.entries) == 2


def test_load_graph_data_raises_for_unknown_user(
    monkeypatch: pytest.MonkeyPatch, settings: Settings, fake_trakt
) -> None:
    def missing_profile(*args):
        raise status_error(404)

    monkeypatch.setattr(f"{MODULE}.fetch_profile", missing_profile)

    with pytest.raises(TraktUserNotFoundError):
        load_graph_data("ghost", settings)


def test_load_graph_data_raises_when_no_history_page_arrives(
    monkeypatch: pytest.MonkeyPatch, settings: Settings, fake_trakt
) -> None:
    def failing_pages(*args, **kwargs):
        raise status_error(503)
        yield []

    monkeypatch.setattr(f"{MODULE}.iter_history_pages", failing_pages)

    with pytest.raises(TraktAPIError):
        load_graph_data("octocat", settings)


def test_load_graph_data_keeps_pages_fetched_before_failure(
    monkeypatch: pytest.MonkeyPatch, settings: Settings, fake_trakt
) -> None:
    def partial_pages(*args, **kwargs):
        yield [movie("2024-02-02T10:00:00Z")]
        raise status_error(503)

    monkeypatch.setattr(f"{MODULE}.iter_history_pages", partial_pages)

    data = load_graph_data("octocat", settings)

    assert [entry.day for entry in data.entries] == [date(2024, 2, 2)]


def test_render_graph_uses_profile_data(settings: Settings, fake_trakt) -> None:
    data = load_graph_data("octocat", settings)

    svg = render_graph(data)

    assert "Octo Cat" in svg
    assert "@octocat" in svg
    assert " Followers" in svg
    assert 'href="data:image/png;base64,a.png"' in svg


def test_summarize_year_reports_days_and_streak() -> None:
    data = GraphData(username="octocat", display_name="Octo", entries=(), years=(2023,))

    summary = summarize_year(data, 2023)

    assert summary["total"] == 0
    assert summary["streak"] == {"length": 0, "start_date": None, "end_date": None}
    assert len(summary["days"]) == 365
    assert summary["days"][0] == {"date": date(2023, 1, 1), "count": 0, "level": 0}


def test_summarize_year_counts_levels(settings: Settings, fake_trakt) -> None:
    data = load_graph_data("octocat", settings)

    summary = summarize_year(data, 2024)

    assert summary["total"] == 2
    assert summary["days_active"] == 2
    assert summary["streak"]["length"] == 2
    assert summary["days"][0] == {"date": date(2024, 1, 1), "count": 1, "level": 4}


def test_resolve_timezone_falls_back_to_local() -> None:
    assert resolve_timezone(None) is None
    assert resolve_timezone("Not/AZone") is None
    assert resolve_timezone("UTC") is not None
