"""FastAPI application exposing the expense endpoints."""
from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import Engine
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from . import __version__, crud, database, schemas
from .config import Settings
from .logging import ROOT_LOGGER, setup_logger
from .validation import ExpenseInput, validate_expense

LOG = logging.getLogger(__name__)

INVALID_DATA_MESSAGE = "The given data was invalid."
# Starlette renamed the 422 constant to ``HTTP_422_UNPROCESSABLE_CONTENT``.
HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", None) or status.HTTP_422_UNPROCESSABLE_ENTITY


class PayloadValidationError(Exception):
    """Raised by handlers when a request body fails validation."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        super().__init__(INVALID_DATA_MESSAGE)
        self.errors = errors


def _validated(payload: Any) -> ExpenseInput:
    result = validate_expense(payload)
    if result.value is None:
        raise PayloadValidationError(result.errors)
    return result.value


def list_expenses(connection: Connection = Depends(database.get_connection)) -> List[schemas.ExpenseRead]:
    return crud.list_expenses(connection)


def create_expense(
    payload: Any = Body(default=None),
    connection: Connection = Depends(database.get_connection),
) -> schemas.ExpenseRead:
    return crud.create_expense(connection, _validated(payload))


def get_expense(expense_id: str, connection: Connection = Depends(database.get_connection)) -> schemas.ExpenseRead:
    return crud.get_expense(connection, expense_id)


def update_expense(
    expense_id: str,
    payload: Any = Body(default=None),
    connection: Connection = Depends(database.get_connection),
) -> schemas.ExpenseRead:
    # Unknown ids answer 404 even when the body is invalid.
    crud.get_expense(connection, expense_id)
    return crud.update_expense(connection, expense_id, _validated(payload))


def delete_expense(expense_id: str, connection: Connection = Depends(database.get_connection)) -> Response:
    crud.delete_expense(connection, expense_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@dataclass(frozen=True, slots=True)
class Route:
    """One entry of the route table: HTTP methods and path mapped to a handler."""

    methods: tuple[str, ...]
    path: str
    endpoint: Callable[..., Any]
    status_code: int = status.HTTP_200_OK
    response_model: Optional[Any] = None


ROUTES: tuple[Route, ...] = (
    Route(("GET",), "/expenses", list_expenses, response_model=List[schemas.ExpenseRead]),
    Route(
        ("POST",),
        "/expenses",
        create_expense,
        status_code=status.HTTP_201_CREATED,
        response_model=schemas.ExpenseRead,
    ),
    Route(("GET",), "/expenses/{expense_id}", get_expense, response_model=schemas.ExpenseRead),
    Route(("PUT", "PATCH"), "/expenses/{expense_id}", update_expense, response_model=schemas.ExpenseRead),
    Route(
        ("DELETE",),
        "/expenses/{expense_id}",
        delete_expense,
        status_code=status.HTTP_204_NO_CONTENT,
    ),
)


def build_router(prefix: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=["expenses"])
    for route in ROUTES:
        router.add_api_route(
            route.path,
            route.endpoint,
            methods=list(route.methods),
            status_code=route.status_code,
            response_model=route.response_model,
        )
    return router


async def _payload_validation_handler(_: Request, exc: PayloadValidationError) -> JSONResponse:
    body = schemas.ValidationErrorRead(message=INVALID_DATA_MESSAGE, errors=exc.errors)
    return JSONResponse(status_code=HTTP_422_UNPROCESSABLE, content=body.model_dump())


async def _request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies (e.g. invalid JSON) with the same shape."""

    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = error.get("loc", ())
        key = loc[1] if len(loc) > 1 and isinstance(loc[1], str) else str(loc[0] if loc else "body")
        errors.setdefault(key, []).append(str(error.get("msg", "Invalid value")))
    body = schemas.ValidationErrorRead(message=INVALID_DATA_MESSAGE, errors=errors)
    return JSONResponse(status_code=HTTP_422_UNPROCESSABLE, content=body.model_dump())


async def _not_found_handler(_: Request, exc: crud.EntityNotFoundError) -> JSONResponse:
    body = schemas.MessageRead(message=str(exc))
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=body.model_dump())


async def _database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    LOG.error(
        "Database error while handling %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
        extra={"method": request.method, "path": request.url.path, "status_code": 500},
    )
    body = schemas.MessageRead(message="Server Error")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump())


async def _log_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - started) * 1000.0
    LOG.info(
        "%s %s -> %d (%.1f ms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response


def create_app(settings: Settings | None = None, engine: Engine | None = None) -> FastAPI:
    """Build the application.

    The engine is the only shared resource; handlers receive a connection
    from it through :func:`database.get_connection`.
    """

    settings = settings or Settings.from_env()
    setup_logger(
        ROOT_LOGGER,
        json_format=settings.json_logs,
        level=settings.log_level,
        log_dir=settings.log_dir,
    )
    owns_engine = engine is None
    engine = engine or database.build_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        database.init_db(engine)
        LOG.info("Expense API ready (prefix=%r, database=%s)", settings.api_prefix, engine.url.render_as_string())
        yield
        if owns_engine:
            engine.dispose()

    app = FastAPI(title="Expense Record Service", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(_log_requests)
    app.add_exception_handler(PayloadValidationError, _payload_validation_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(crud.EntityNotFoundError, _not_found_handler)
    app.add_exception_handler(SQLAlchemyError, _database_error_handler)
    app.include_router(build_router(settings.api_prefix))

    @app.get("/health", tags=["system"])
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app
