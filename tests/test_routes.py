from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from trakt_graph.api.routes.graph import get_settings
from trakt_graph.main import create_app
from trakt_graph.models import EntryKind
from trakt_graph.models import WatchEntry
from trakt_graph.services.graph_service import GraphData
from trakt_graph.services.graph_service import TraktAPIError
from trakt_graph.services.graph_service import TraktConfigurationError
from trakt_graph.services.graph_service import TraktUserNotFoundError
from trakt_graph.settings import Settings


LOADER = "trakt_graph.api.routes.graph.load_graph_data"


def graph_data(years: tuple[int, ...] = (2024,)) -> GraphData:
    return GraphData(
        username="octocat",
        display_name="Octo Cat",
        entries=(
            WatchEntry(watched_at=datetime(2024, 1, 1, 20), title="Dune", year=2021, kind=EntryKind.MOVIE, rating=8),
            WatchEntry(
                watched_at=datetime(2024, 1, 2, 21),
                title="Severance",
                year=2022,
                kind=EntryKind.EPISODE,
                episode_label="S01E02",
            ),
        ),
        years=years,
    )


@pytest.fixture
def client() -> TestClient:
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: Settings(trakt_api_key="key")
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_read_root_returns_hello_world(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": "Hello World"}


def test_health_live_returns_ok(client: TestClient) -> None:
    response = client.get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_get_graph_returns_svg(monkeypatch: pytest.MonkeyPatch, client: TestClient) -> None:
    calls: list[dict[str, object]] = []

    def fake_load_graph_data(username, settings, years, content_type):
        calls.append({"username": username, "years": years, "content_type": content_type.value})
        return graph_data(tuple(sorted(years, reverse=True)) or (2024,))

    monkeypatch.setattr(LOADER, fake_load_graph_data)

    response = client.get("/graph/OctoCat?year=2024&year=2023&type=movies&theme=light")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("image/svg+xml")
    assert response.text.startswith("<svg")
    assert "Octo Cat" in response.text
    assert calls == [{"username": "octocat", "years": [2024, 2023], "content_type": "movies"}]


def test_get_stats_returns_year_summary(monkeypatch: pytest.MonkeyPatch, client: TestClient) -> None:
    monkeypatch.setattr(LOADER, lambda *args, **kwargs: graph_data())

    response = client.get("/stats/octocat?year=2024")

    assert response.status_code == 200
    body = response.json()
    assert body["year"] == 2024
    assert body["total"] == 2
    assert body["movies"] == 1
    assert body["episodes"] == 1
    assert body["streak"] == {"length": 2, "start_date": "2024-01-01", "end_date": "2024-01-02"}
    assert body["average_rating"] == 8.0
    assert body["rating_distribution"]["8"] == 1
    assert body["rating_distribution"]["unrated"] == 1
    assert len(body["days"]) == 366
    assert body["days"][0] == {"date": "2024-01-01", "count": 1, "level": 4}


@pytest.mark.parametrize(
    ("error", "status_code", "detail"),
    [
        (TraktConfigurationError("missing"), 500, "TRAKT_API_KEY is not set"),
        (TraktUserNotFoundError("ghost"), 404, "Trakt user not found"),
        (TraktAPIError("down"), 502, "Trakt API request failed"),
    ],
)
def test_get_graph_maps_errors(
    monkeypatch: pytest.MonkeyPatch,
    client: TestClient,
    error: Exception,
    status_code: int,
    detail: str,
) -> None:
    def failing_load(*args, **kwargs):
        raise error

    monkeypatch.setattr(LOADER, failing_load)

    response = client.get("/graph/ghost")

    assert response.status_code == status_code
    assert response.json() == {"detail": detail}
