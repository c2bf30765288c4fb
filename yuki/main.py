import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from yuki import models  # noqa: F401  registers tables on Base.metadata
from yuki.api.pages import router as pages_router
from yuki.api.router import api_router
from yuki.core.config import settings
from yuki.core.errors import YukiError
from yuki.core.logging import configure_logging
from yuki.db.base import Base
from yuki.db.session import engine
from yuki.middleware import RouteAdmissionMiddleware

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Yuki")
app.add_middleware(RouteAdmissionMiddleware)
app.include_router(api_router, prefix="/api")
app.include_router(pages_router)


@app.exception_handler(YukiError)
async def yuki_error_handler(request: Request, exc: YukiError):
    if exc.http_status >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err["loc"] if p != "body"), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "code": "VALIDATION_ERROR", "details": errors},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "code": "INTERNAL_ERROR"})


@app.on_event("startup")
def startup_create_tables():
    if settings.db_auto_create:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")
