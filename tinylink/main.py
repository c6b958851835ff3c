import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError

from .api.v1 import links
from .api.v1.links import get_link_service
from .config import Settings
from .crud import LinkStore
from .database import Database
from .errors import NotFound, TransientStoreError
from .logging_config import setup_logging
from .middleware import SecurityHeadersMiddleware
from .observability import PrometheusMiddleware, metrics_endpoint
from .schemas import Health
from .services.links import LinkService
from .validators import is_valid_code

VERSION = "1.0.0"

logger = logging.getLogger(__name__)

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup logic
        setup_logging(settings.LOG_LEVEL)
        db = Database(settings.DATABASE_URL, echo=settings.ENVIRONMENT == "development")
        await db.connect(create_tables=settings.AUTO_CREATE_TABLES)
        store = LinkStore(
            db.sessionmaker,
            timeout=settings.STORE_TIMEOUT_SECONDS,
            click_timezone=settings.CLICK_TIMEZONE,
        )
        app.state.db = db
        app.state.service = LinkService(
            store,
            base_url=settings.BASE_URL,
            max_generation_attempts=settings.MAX_GENERATION_ATTEMPTS,
            reserved_codes=fixed_route_codes(app),
        )
        app.state.started_at = time.monotonic()
        logger.info(f"TinyLink ready, base_url={settings.BASE_URL}")
        yield
        # Shutdown logic
        await db.close()

    app = FastAPI(
        title="TinyLink",
        description="Short codes that redirect to destination URLs",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TransientStoreError, store_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)

    app.add_route("/metrics", metrics_endpoint)

    app.include_router(links.router, prefix="/api")

    @app.get("/healthz", response_model=Health)
    async def healthz(request: Request):
        return Health(ok=True, version=VERSION, uptime=time.monotonic() - request.app.state.started_at)

    @app.get("/{code}")
    async def redirect_to_url(
        code: str,
        service: LinkService = Depends(get_link_service)
    ):
        try:
            target_url = await service.resolve(code)
        except NotFound:
            raise HTTPException(status_code=404, detail="Not found")
        return RedirectResponse(url=target_url, status_code=302)

    return app

def fixed_route_codes(app: FastAPI) -> set:
    """Single-segment routes such as /healthz that also look like short codes."""
    segments = (getattr(route, "path", "").strip("/") for route in app.routes)
    return {segment for segment in segments if is_valid_code(segment)}

async def store_error_handler(request: Request, exc: Exception):
    logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Server error"})

def run():
    import uvicorn

    settings = Settings()
    uvicorn.run("tinylink.main:create_app", factory=True, host="0.0.0.0", port=settings.PORT)
