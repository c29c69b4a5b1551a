import logging
import random
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request

from routes.generate_route import router as generate_router
from routes.reference_route import router as reference_router
from routes.round_route import router as round_router
from services.game.controller import RoundController
from services.game.reference_catalog import ReferenceCatalog
from services.game.round_store import RoundStore
from services.generation.generation_client import DirectGenerationClient, GenerationClient, ProxyGenerationClient
from services.generation.upstream_provider import UpstreamImageProvider
from services.scoring.scoring_engine import ScoringEngine
from utils.settings import Settings

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


def _build_generation_client(settings: Settings, provider: UpstreamImageProvider) -> GenerationClient:
    if settings.generation_endpoint:
        LOGGER.info("Rounds generate images through %s", settings.generation_endpoint)
        return ProxyGenerationClient(settings.generation_endpoint, timeout=settings.upstream_timeout_seconds)
    return DirectGenerationClient(provider)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the reference catalog, scoring engine and upstream image provider
      - the generation client used by rounds (direct, or proxy when GENERATION_ENDPOINT is set)
      - the in-memory round store
    and attach them to `app.state`. Round timers are cancelled on shutdown.
    """
    settings: Settings = app.state.settings
    rng = getattr(app.state, "rng", None) or random.Random()

    if getattr(app.state, "catalog", None) is None:
        if not settings.reference_image_dir.is_dir():
            LOGGER.warning(
                "Reference image directory %s does not exist; set REFERENCE_IMAGE_DIR to the artwork folder",
                settings.reference_image_dir,
            )
        app.state.catalog = ReferenceCatalog.default(settings.reference_image_dir)
    if getattr(app.state, "scoring_engine", None) is None:
        app.state.scoring_engine = ScoringEngine(size=settings.score_canvas_size, threshold=settings.score_threshold)
    if getattr(app.state, "image_provider", None) is None:
        app.state.image_provider = UpstreamImageProvider(
            base_url=settings.upstream_base_url,
            width=settings.generation_width,
            height=settings.generation_height,
            timeout=settings.upstream_timeout_seconds,
            rng=rng,
        )
    if getattr(app.state, "generation_client", None) is None:
        app.state.generation_client = _build_generation_client(settings, app.state.image_provider)

    def new_round() -> RoundController:
        return RoundController(
            app.state.catalog,
            app.state.generation_client,
            app.state.scoring_engine,
            rng=rng,
            duration_seconds=settings.round_duration_seconds,
            tick_interval=settings.tick_interval_seconds,
            min_prompt_length=settings.min_prompt_length,
        )

    app.state.round_store = RoundStore(new_round, retention_seconds=settings.round_retention_seconds)

    try:
        yield
    finally:
        await app.state.round_store.close_all()
        LOGGER.info("Round store closed")


def create_app(
    settings: Optional[Settings] = None,
    *,
    catalog: Optional[ReferenceCatalog] = None,
    image_provider: Optional[UpstreamImageProvider] = None,
    generation_client: Optional[GenerationClient] = None,
    scoring_engine: Optional[ScoringEngine] = None,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Collaborators left as None are built from `settings` during startup.
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)-8s %(name)s: %(message)s")

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.catalog = catalog
    app.state.image_provider = image_provider
    app.state.generation_client = generation_client
    app.state.scoring_engine = scoring_engine
    app.state.rng = rng

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check reporting catalog size and live rounds.
        """
        catalog = getattr(request.app.state, "catalog", None)
        store = getattr(request.app.state, "round_store", None)
        return {
            "ok": True,
            "references": len(catalog) if catalog is not None else 0,
            "live_rounds": len(store) if store is not None else 0,
        }

    # Register application routers
    app.include_router(generate_router)
    app.include_router(round_router)
    app.include_router(reference_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)
