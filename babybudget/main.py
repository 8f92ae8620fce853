"""
FastAPI application factory
"""
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from babybudget.config import Settings, get_settings
from babybudget.domain.errors import (
    BudgetValidationError, NotFoundError, LimitExceededError, ConcurrentUpdateError,
)
from babybudget.infrastructure.cache.ceiling import build_cache_client
from babybudget.infrastructure.db.session import build_engine, build_session_factory, check_db_connection
from babybudget.api.v1 import budget

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Catches ALL unhandled exceptions, logs the traceback, answers 500"""

    async def dispatch(self, request, call_next):
        try:
            response = await call_next(request)
            return response
        except Exception as exc:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return Response(content=f"Internal Server Error: {exc}", status_code=500)


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    """Map budget errors to HTTP status codes"""

    @app.exception_handler(BudgetValidationError)
    async def handle_validation(request: Request, exc: BudgetValidationError):
        return _error_response(400, exc)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, exc)

    @app.exception_handler(LimitExceededError)
    async def handle_limit_exceeded(request: Request, exc: LimitExceededError):
        return _error_response(403, exc)

    @app.exception_handler(ConcurrentUpdateError)
    async def handle_conflict(request: Request, exc: ConcurrentUpdateError):
        logger.warning("Concurrent budget update on %s %s", request.method, request.url.path)
        return _error_response(409, exc)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Application factory - builds and configures the FastAPI app

    Store clients (engine, session factory, cache client) are created here
    and kept on app.state; routes get them through dependencies.

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Baby Budget",
        debug=settings.DEBUG,
    )

    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.cache = build_cache_client(settings)

    app.add_middleware(ErrorLoggingMiddleware)
    register_exception_handlers(app)

    # Routers
    app.include_router(budget.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (checks the database)"""
        check_db_connection(settings)
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "babybudget.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
