from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Query
from fastapi import Request
from fastapi.responses import Response

from trakt_graph.api.schemas.graph import YearStatsResponse
from trakt_graph.models import ColorScheme
from trakt_graph.models import ContentType
from trakt_graph.models import WeekStart
from trakt_graph.models import parse_choice
from trakt_graph.services.fonts import FontResources
from trakt_graph.services.graph_service import GraphData
from trakt_graph.services.graph_service import TraktAPIError
from trakt_graph.services.graph_service import TraktConfigurationError
from trakt_graph.services.graph_service import TraktUserNotFoundError
from trakt_graph.services.graph_service import load_graph_data
from trakt_graph.services.graph_service import render_graph
from trakt_graph.services.graph_service import summarize_year
from trakt_graph.services.themes import Theme
from trakt_graph.settings import Settings


router = APIRouter()


def get_settings() -> Settings:
    return Settings()


def get_fonts(request: Request) -> FontResources:
    return getattr(request.app.state, "fonts", None) or FontResources()


def _load_graph_data(
    username: str,
    settings: Settings,
    years: list[int],
    content_type: ContentType,
) -> GraphData:
    try:
        return load_graph_data(
            username.strip().lower(),
            settings,
            years=years,
            content_type=content_type,
        )
    except TraktConfigurationError as exc:
        raise HTTPException(status_code=500, detail="TRAKT_API_KEY is not set") from exc
    except TraktUserNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Trakt user not found") from exc
    except TraktAPIError as exc:
        raise HTTPException(status_code=502, detail="Trakt API request failed") from exc


@router.get("/")
async def root() -> dict[str, str]:
    """Return a basic service greeting."""

    return {"message": "Hello World"}


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return liveness probe response for health checks."""

    return {"status": "ok"}


@router.get("/graph/{username}")
def get_graph(
    username: str,
    year: list[int] | None = Query(default=None),
    theme: str | None = None,
    week_start: str | None = None,
    content_type: str | None = Query(default=None, alias="type"),
    gradient: bool | None = None,
    settings: Settings = Depends(get_settings),
    fonts: FontResources = Depends(get_fonts),
) -> Response:
    """Return the watch activity graph of a Trakt user as SVG."""

    resolved_type = parse_choice(ContentType, content_type or settings.content_type, ContentType.ALL)
    data = _load_graph_data(username, settings, year or [], resolved_type)
    svg = render_graph(
        data,
        theme=Theme.resolve(theme or settings.theme),
        week_start=parse_choice(WeekStart, week_start or settings.week_start, WeekStart.SUNDAY),
        content_type=resolved_type,
        color_scheme=parse_choice(ColorScheme, settings.color_scheme, ColorScheme.LINEAR),
        username_gradient=settings.username_gradient if gradient is None else gradient,
        fonts=fonts,
    )
    return Response(content=svg, media_type="image/svg+xml")


@router.get("/stats/{username}", response_model=YearStatsResponse)
def get_stats(
    username: str,
    year: int | None = None,
    week_start: str | None = None,
    content_type: str | None = Query(default=None, alias="type"),
    settings: Settings = Depends(get_settings),
) -> dict[str, object]:
    """Return watch statistics of a Trakt user for one year."""

    resolved_type = parse_choice(ContentType, content_type or settings.content_type, ContentType.ALL)
    data = _load_graph_data(username, settings, [year] if year else [], resolved_type)
    return summarize_year(
        data,
        data.years[0],
        week_start=parse_choice(WeekStart, week_start or settings.week_start, WeekStart.SUNDAY),
        color_scheme=parse_choice(ColorScheme, settings.color_scheme, ColorScheme.LINEAR),
    )
