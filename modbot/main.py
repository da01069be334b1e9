from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from modbot.core import config, database, exception_handlers, middleware
from modbot.core.redis import RedisManager
from modbot.core.services import BotServices, build_services
from modbot.domains.interactions.api import router as interactions_router
from modbot.shared.utils.logger import get_logger

logger = get_logger(__name__)

SERVICE_NAME = "preset-moderation-bot"


@asynccontextmanager
async def lifespan(app: FastAPI):
    await database.init_db()
    logger.info(f"{SERVICE_NAME} started ({config.settings.ENVIRONMENT.value})")
    yield
    await app.state.services.close()
    await RedisManager.close()
    await database.dispose_engine()


def create_app(services: Optional[BotServices] = None) -> FastAPI:
    app = FastAPI(title="Preset Moderation Bot", version="1.0.0", lifespan=lifespan)
    app.state.services = services or build_services()

    # Registered innermost first; the request id wraps everything else.
    app.middleware("http")(middleware.security_headers_middleware)
    app.middleware("http")(middleware.logging_middleware)
    app.middleware("http")(middleware.request_id_middleware)
    exception_handlers.setup_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app.state.services.settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(interactions_router, tags=["Interactions"])

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()
