import logging
from pathlib import Path

import typer

from trakt_graph.core.observability import configure_logging
from trakt_graph.models import ColorScheme
from trakt_graph.models import ContentType
from trakt_graph.models import WeekStart
from trakt_graph.models import parse_choice
from trakt_graph.services.fonts import FontResources
from trakt_graph.services.graph_service import TraktAPIError
from trakt_graph.services.graph_service import TraktUserNotFoundError
from trakt_graph.services.graph_service import load_graph_data
from trakt_graph.services.graph_service import render_graph
from trakt_graph.services.themes import Theme
from trakt_graph.settings import Settings


logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False)


def parse_years(raw: str | None) -> list[int]:
    """Parse `2024,2023` into distinct years, newest first."""

    if not raw:
        return []
    years = set()
    for part in raw.split(","):
        part = part.strip()
        if part.isdigit():
            years.add(int(part))
    return sorted(years, reverse=True)


@app.command()
def main(
    username: str = typer.Argument(..., help="Trakt username"),
    years: str | None = typer.Option(
        None, "--years", "-y", help="Year(s), comma-separated (e.g. 2024,2023). Default: most active year."
    ),
    week_start: str = typer.Option("sunday", "--week-start", "-w", help="Week start: sunday or monday"),
    output: Path = typer.Option(Path("images/github-trakt"), "--output", "-o", help="Output path prefix"),
    gradient: bool = typer.Option(True, "--gradient/--no-gradient", help="Gradient display name"),
    png: bool = typer.Option(False, "--png", "-p", help="Also export PNG files"),
    content_type: str = typer.Option("all", "--type", "-t", help="Content type: movies, shows or all"),
) -> None:
    """Generate dark and light watch activity graphs for a Trakt user."""

    settings = Settings()
    configure_logging(settings)

    if not settings.trakt_api_key:
        typer.echo("Error: TRAKT_API_KEY environment variable is not set.", err=True)
        typer.echo("Get your API key from https://trakt.tv/oauth/applications", err=True)
        raise typer.Exit(code=1)

    selected_years = parse_years(years)
    resolved_week_start = parse_choice(WeekStart, week_start, WeekStart.SUNDAY)
    resolved_type = parse_choice(ContentType, content_type, ContentType.ALL)

    try:
        data = load_graph_data(username, settings, years=selected_years, content_type=resolved_type)
    except TraktUserNotFoundError:
        typer.echo(f"Error: Trakt user {username!r} not found.", err=True)
        raise typer.Exit(code=1)
    except TraktAPIError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)

    logger.info(
        "Rendering %s for years %s (%d entries)",
        data.username,
        ", ".join(str(year) for year in data.years),
        len(data.entries),
    )

    fonts = FontResources.load(settings.fonts_dir)
    output.parent.mkdir(parents=True, exist_ok=True)
    for theme in Theme:
        svg = render_graph(
            data,
            theme=theme,
            week_start=resolved_week_start,
            content_type=resolved_type,
            color_scheme=parse_choice(ColorScheme, settings.color_scheme, ColorScheme.LINEAR),
            username_gradient=gradient,
            fonts=fonts,
        )
        svg_path = output.with_name(f"{output.name}-{theme.value}.svg")
        svg_path.write_text(svg, encoding="utf-8")
        typer.echo(f"Wrote {svg_path}")

        if png:
            # cairosvg needs the native cairo library, only load it when asked to.
            from trakt_graph.exporter import svg_to_png

            png_path = svg_to_png(svg, svg_path.with_suffix(".png"))
            typer.echo(f"Wrote {png_path}")


if __name__ == "__main__":
    app()
