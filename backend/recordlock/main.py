import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .shared.config import settings
from .shared.db import init_db
from .shared.logging import setup_logging
from .locks.router import router as locks_router
from .locks.store import LockStoreError

logger = logging.getLogger(__name__)


def _describe(err: dict) -> str:
    field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
    return f"{field}: {err.get('msg')}" if field else str(err.get("msg"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.AUTO_CREATE_TABLES:
        init_db()
    logger.info("lock service started (env=%s)", settings.APP_ENV)
    yield


def create_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(
        title="RecordLock API",
        version="0.1.0",
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        errors = [_describe(e) for e in exc.errors()]
        logger.info("rejected %s %s: %s", request.method, request.url.path, "; ".join(errors))
        return JSONResponse(
            status_code=400,
            content={"message": "Invalid lock request: " + "; ".join(errors), "errors": errors},
        )

    @app.exception_handler(LockStoreError)
    async def store_error(request: Request, exc: LockStoreError):
        return JSONResponse(status_code=500, content={"message": "Internal server error"})

    @app.get(f"{settings.API_PREFIX}/healthz")
    def healthz():
        return {"status": "ok", "app": "RecordLock"}

    app.include_router(locks_router)
    return app


app = create_app()


def serve() -> None:
    import uvicorn

    uvicorn.run("recordlock.main:app", host=settings.HOST, port=settings.PORT)
