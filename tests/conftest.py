"""Shared test fixtures."""

import io
import json
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from workload_service.config import ServiceConfig
from workload_service.eventlog import EventLog
from workload_service.service import create_app

PRODUCT = {"id": 1, "title": "Essence Mascara Lash Princess", "price": 9.99}


def products_handler(request: httpx.Request) -> httpx.Response:
    """Simulated third-party API that always answers with one product."""
    return httpx.Response(200, json=PRODUCT)


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    return tmp_path / "serverLogs.log"


@pytest.fixture
def live_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def config(log_path: Path) -> ServiceConfig:
    return ServiceConfig(
        log_file=str(log_path),
        external_api_url="http://collaborator.test/products/1",
        external_timeout=1.0,
    )


@pytest.fixture
def event_log(config, live_stream):
    log = EventLog(config.log_file, stream=live_stream)
    yield log
    log.close()


@pytest.fixture
def read_events(log_path: Path):
    """Return a callable that parses every line of the log file as JSON."""

    def _read() -> list[dict]:
        lines = log_path.read_text(encoding="utf-8").splitlines()
        return [json.loads(line) for line in lines]

    return _read


@pytest_asyncio.fixture
async def app_client(config, event_log):
    """Factory for an httpx.AsyncClient bound to the app in-process.

    Usage:
        async with app_client() as client:
            response = await client.get("/")

    ``handler`` replaces the simulated outbound API; keyword arguments
    override fields of the service config.
    """
    outbound_clients = []

    def _get_client(handler=products_handler, **overrides):
        outbound = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        outbound_clients.append(outbound)
        app_config = config.model_copy(update=overrides) if overrides else config
        app = create_app(app_config, event_log, http_client=outbound)
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    yield _get_client

    for outbound in outbound_clients:
        await outbound.aclose()
