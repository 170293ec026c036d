import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from conduit.cache import cache
from conduit.config import settings
from conduit.errors import ConduitError
from conduit.middleware import RequestLogMiddleware
from conduit.routers import articles, profiles, tags, users

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup; the API works without Redis
    await cache.connect()
    logger.info("Conduit API started (env=%s)", settings.APP_ENV)
    yield
    # Shutdown
    await cache.disconnect()


app = FastAPI(
    title="Conduit API",
    description="Social blogging backend: accounts, profiles, articles, comments",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ConduitError)
async def conduit_error_handler(request: Request, exc: ConduitError) -> JSONResponse:
    logger.debug("%s %s rejected: %s", request.method, request.url.path, exc.errors)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Routers
app.include_router(users.router)
app.include_router(profiles.router)
app.include_router(articles.router)
app.include_router(tags.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION, "cache": cache.enabled}
