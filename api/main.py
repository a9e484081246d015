import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from auth import router as auth_router
from catalog import router as catalog_router
from core import db, schema, settings
from site_config import router as site_config_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Missing secrets or an unreachable database abort startup.
    settings.require_settings()
    await db.init_pool()
    try:
        await schema.migrate()
        yield
    finally:
        await db.close_pool()


app = FastAPI(title="ALRA Planes API", lifespan=lifespan)

# The landing page and admin console may be served from another origin.
_origins = settings.cors_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials="*" not in _origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(db.DatabaseError)
async def database_error_handler(request: Request, exc: db.DatabaseError) -> JSONResponse:
    logger.error("database_error method=%s path=%s error=%s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc)},
    )


app.include_router(auth_router.router, prefix="/api", tags=["auth"])
app.include_router(catalog_router.router, prefix="/api", tags=["catalog"])
app.include_router(site_config_router.router, prefix="/api", tags=["config"])


@app.get("/api/health")
def health() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


def run() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host=settings.host(), port=settings.port())


if __name__ == "__main__":
    run()
