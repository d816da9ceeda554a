from datetime import date

from pydantic import BaseModel


class StatsDay(BaseModel):
    """Single visible day of the year with its count and color level."""

    date: date
    count: int
    level: int


class StreakPayload(BaseModel):
    """Longest run of consecutive active days."""

    length: int
    start_date: date | None
    end_date: date | None


class YearStatsResponse(BaseModel):
    """Watch statistics of one user for one calendar year."""

    username: str
    year: int
    total: int
    movies: int
    episodes: int
    days_active: int
    streak: StreakPayload
    weekly_distribution: list[int]
    average_rating: float | None
    rating_distribution: dict[str, int]
    days: list[StatsDay]
