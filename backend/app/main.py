"""FastAPI application entry point."""
import logging

from fastapi import FastAPI

from . import models
from .config import get_settings
from .database import AsyncSessionLocal, engine
from .errors import setup_exception_handlers
from .routers.employees import router as employees_router
from .routers.employment import router as employment_router
from .services.reference_data import seed_reference_data

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="HR Portal Backend", version="0.1.0")
setup_exception_handlers(app)
app.include_router(employees_router)
app.include_router(employment_router)


@app.on_event("startup")
async def on_startup() -> None:
    """Ensure database tables exist and reference data is present."""

    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)

    if settings.seed_reference_data:
        async with AsyncSessionLocal() as session:
            await seed_reference_data(session)
    logger.info("HR Portal backend ready on %s", engine.url.render_as_string(hide_password=True))


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    """Simple readiness check for uptime monitors."""

    return {"status": "ok"}
