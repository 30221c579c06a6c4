# backend/lesson_booking/main.py
import logging
from typing import Optional

from fastapi import APIRouter, FastAPI

from .core.config import Settings, get_settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_V1_PREFIX, API_VERSION
from .errors import register_error_handlers
from .routes.v1 import calendar as calendar_v1, health as health_v1

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    # Dependencies and error handlers read these; see api/dependencies/services.py
    app.state.settings = settings
    app.state.engine_config = settings.to_engine_config()

    # Register unified error envelope handlers
    register_error_handlers(app)

    api_v1 = APIRouter(prefix=API_V1_PREFIX)
    api_v1.include_router(calendar_v1.router, prefix="/calendar")
    app.include_router(api_v1)
    app.include_router(health_v1.router)

    logger.info(
        "%s started (instructor timezone %s, calendar backend %s)",
        API_TITLE,
        settings.instructor_timezone,
        settings.calendar_backend,
    )
    return app


app = create_app()
