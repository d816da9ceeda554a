from datetime import datetime

import pytest

from trakt_graph.models import EntryKind
from trakt_graph.models import WatchEntry


@pytest.fixture
def make_entry():
    def factory(
        day: str,
        title: str = "Dune",
        year: int | None = 2021,
        kind: EntryKind = EntryKind.MOVIE,
        episode_label: str | None = None,
        rating: float | None = None,
        hour: int = 20,
    ) -> WatchEntry:
        return WatchEntry(
            watched_at=datetime.fromisoformat(day).replace(hour=hour),
            title=title,
            year=year,
            kind=kind,
            episode_label=episode_label,
            rating=rating,
        )

    return factory


@pytest.fixture
def sample_entries(make_entry) -> list[WatchEntry]:
    return [
        make_entry("2024-01-01"),
        make_entry("2024-01-01", title="Arrival", year=2016, hour=22),
        make_entry(
            "2024-01-02",
            title="Severance",
            year=2022,
            kind=EntryKind.EPISODE,
            episode_label="S01E02",
        ),
        make_entry("2024-01-03", title="Heat", year=1995),
        make_entry("2024-03-10", title="Alien", year=1979),
    ]
