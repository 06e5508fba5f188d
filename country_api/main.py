from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
import logging

import uvicorn

from country_api.config import settings
from country_api.database import engine, init_db
from country_api.exceptions import NotFound, SourceUnavailable, StorageError
from country_api.limiter import close_rate_limiting, init_rate_limiting
from country_api.logging import init_logging, RequestLoggingMiddleware, setup_query_logging
from country_api.routes import countries, status

logger = logging.getLogger("country_api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    app.state.rate_limiting_enabled = await init_rate_limiting()
    try:
        yield
    finally:
        if app.state.rate_limiting_enabled:
            await close_rate_limiting()


app = FastAPI(
    title="Country Currency & Exchange API",
    version="1.0.0",
    description=(
        "REST API exposing countries, their currencies, USD exchange rates and a simple "
        "estimated GDP.\n\n"
        "Features:\n"
        "- Refresh from restcountries.com and open.er-api.com\n"
        "- Filter by region and currency, sort by estimated GDP\n"
        "- Status endpoint and a generated summary image\n\n"
        "Rate limiting can be enabled via Redis (set REDIS_URL)."
    ),
    lifespan=lifespan,
)

init_logging()
app.add_middleware(RequestLoggingMiddleware)
setup_query_logging(engine)

app.include_router(countries.router, prefix="/countries", tags=["Countries"])
app.include_router(status.router, prefix="/status", tags=["Status"])


@app.get("/")
def root():
    return {"message": "Country Currency & Exchange API running. Visit /docs for API documentation."}


# -------------------------------
# Unified error response handlers
# -------------------------------
@app.exception_handler(SourceUnavailable)
async def source_unavailable_handler(request: Request, exc: SourceUnavailable):
    logger.error("Refresh aborted, %s unavailable: %s", exc.source, exc.reason)
    return JSONResponse(
        status_code=500,
        content={"error": "External data source unavailable", "details": str(exc)},
    )


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error("Storage error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Database error", "details": str(exc)})


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    body = {"error": exc.message}
    if exc.searched_for is not None:
        body["details"] = {"searched_for": exc.searched_for}
    return JSONResponse(status_code=404, content=body)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(
        "HTTPException: %s %s -> %s | detail=%s",
        request.method,
        request.url.path,
        exc.status_code,
        exc.detail,
    )
    body = {"error": exc.detail if isinstance(exc.detail, str) else "Error"}
    if isinstance(exc.detail, dict):
        body = {
            "error": exc.detail.get("error") or "Error",
            "details": exc.detail.get("details"),
        }
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


def jsonable_errors(exc: RequestValidationError) -> list:
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")} for err in exc.errors()]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(
        "ValidationError: %s %s | errors=%s",
        request.method,
        request.url.path,
        exc.errors(),
    )
    return JSONResponse(
        status_code=400,
        content={
            "error": "Validation failed",
            "details": jsonable_errors(exc),
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled exception: %s %s",
        request.method,
        request.url.path,
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def run() -> None:
    """Serve the API on ``HOST:PORT`` (PORT defaults to 8080)."""
    uvicorn.run("country_api.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
