from fastapi import FastAPI

from trakt_graph.api.routes.graph import router
from trakt_graph.core.middleware import GraphRateLimitMiddleware
from trakt_graph.core.observability import configure_logging
from trakt_graph.core.observability import init_sentry
from trakt_graph.services.fonts import FontResources
from trakt_graph.settings import Settings


def create_app() -> FastAPI:
    settings = Settings()
    configure_logging(settings)
    init_sentry(settings)

    app = FastAPI(title="Trakt Graph")
    app.state.fonts = FontResources.load(settings.fonts_dir)
    app.add_middleware(
        GraphRateLimitMiddleware,
        requests_per_window=settings.rate_limit_per_minute,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.include_router(router)
    return app


app = create_app()
