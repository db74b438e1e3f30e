import os
import socket
import sys
from contextlib import asynccontextmanager
from typing import Any

import httpx
import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from workload_service import __version__
from workload_service.config import ServiceConfig
from workload_service.errors import BindError, InvalidInputError, NetworkError
from workload_service.eventlog import EventLog
from workload_service.workload import fetch_json, fibonacci


class FibonacciResult(BaseModel):
    operation: str
    input: int
    result: int


class ExternalDataResponse(BaseModel):
    message: str
    data: Any


class ErrorResponse(BaseModel):
    error: str


def get_config(request: Request) -> ServiceConfig:
    return request.app.state.config


def get_event_log(request: Request) -> EventLog:
    return request.app.state.event_log


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def index():
    return "Welcome to the workload simulation service!\n"


@router.get("/about", response_class=PlainTextResponse)
async def about():
    return "This is the about page!\n"


@router.get("/compute", response_model=FibonacciResult, responses={400: {"model": ErrorResponse}})
async def compute(
    n: int | None = Query(default=None),
    config: ServiceConfig = Depends(get_config),
    event_log: EventLog = Depends(get_event_log),
):
    """Compute a Fibonacci number by naive recursion.

    This coroutine never awaits while computing, so it blocks the event loop
    and stalls every other in-flight request until it returns. That is the
    point of the route: it is a CPU load generator.
    """
    num = config.fibonacci_input if n is None else n
    if not 0 <= num <= config.fibonacci_max_input:
        raise InvalidInputError(
            f"n must be between 0 and {config.fibonacci_max_input}, got {num}"
        )

    event_log.info("intensive calculation started", input=num)
    result = fibonacci(num)
    event_log.info("calculation completed", result=result)
    return FibonacciResult(operation="fibonacci", input=num, result=result)


@router.get("/external", response_model=ExternalDataResponse, responses={500: {"model": ErrorResponse}})
async def external(
    config: ServiceConfig = Depends(get_config),
    event_log: EventLog = Depends(get_event_log),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    event_log.info("outbound call started", url=config.external_api_url)
    try:
        data = await fetch_json(client, config.external_api_url, config.external_timeout)
    except NetworkError as exc:
        event_log.error("outbound call failed", error=str(exc))
        return JSONResponse(status_code=500, content={"error": "internal network error"})

    event_log.info("outbound call completed")
    return ExternalDataResponse(message="data retrieved", data=data)


def create_app(
    config: ServiceConfig,
    event_log: EventLog,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build the application around an already opened event log.

    When ``http_client`` is omitted, one is created on startup and closed on
    shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if http_client is not None:
            yield
            return
        async with httpx.AsyncClient() as client:
            app.state.http_client = client
            yield

    app = FastAPI(
        title="Workload Simulation Service",
        description="Trivial, CPU-bound and I/O-bound routes for load testing",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.event_log = event_log
    app.state.http_client = http_client

    @app.middleware("http")
    async def log_receipt(request: Request, call_next):
        url = request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"
        request.app.state.event_log.info("request received", method=request.method, url=url)
        return await call_next(request)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        # Routes match on (method, path); a known path with another method is
        # just as unmatched as an unknown path.
        if exc.status_code in (404, 405):
            return PlainTextResponse("Not Found", status_code=404)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    @app.exception_handler(InvalidInputError)
    @app.exception_handler(RequestValidationError)
    async def invalid_input(request: Request, exc: Exception):
        request.app.state.event_log.error("invalid input", url=request.url.path, error=str(exc))
        return JSONResponse(status_code=400, content={"error": str(exc)})

    app.include_router(router)
    return app


def bind_socket(host: str, port: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError as exc:
        sock.close()
        raise BindError(f"cannot bind {host}:{port}: {exc}") from exc
    return sock


def main() -> None:
    config = ServiceConfig.from_env()
    event_log = EventLog(config.log_file, level=config.log_level)
    try:
        try:
            sock = bind_socket(config.host, config.port)
        except BindError as exc:
            event_log.error("server failed to start", port=config.port, error=str(exc))
            sys.exit(1)

        port = sock.getsockname()[1]
        pid = os.getpid()
        event_log.info("server started", port=port, pid=pid)
        print(f"Server listening on http://{config.host}:{port} (PID: {pid})")

        server = uvicorn.Server(
            uvicorn.Config(
                create_app(config, event_log),
                loop="uvloop",
                access_log=False,
                log_level=config.log_level.lower(),
            )
        )
        server.run(sockets=[sock])
    finally:
        event_log.close()


if __name__ == "__main__":
    main()
