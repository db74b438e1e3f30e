"""Workload profiles used to generate load.

Neither function knows about HTTP routing; the router decides how to expose
them and how to report their failures.
"""

import asyncio

import httpx

from workload_service.errors import InvalidInputError, NetworkError


def fibonacci(n: int) -> int:
    """Return the n-th Fibonacci number by naive recursion.

    Runs in exponential time on purpose, to keep a CPU busy. Do not memoize.
    """
    if isinstance(n, bool) or not isinstance(n, int) or n < 0:
        raise InvalidInputError(f"n must be a non-negative integer, got {n!r}")
    if n <= 1:
        return n
    return fibonacci(n - 1) + fibonacci(n - 2)


async def fetch_json(client: httpx.AsyncClient, url: str, timeout: float):
    """GET ``url`` once and return the decoded JSON body.

    ``timeout`` is a deadline for the whole exchange, body included, not
    just for each read. Any transport error, timeout, non-2xx status or
    undecodable body is raised as :class:`NetworkError`. There is no retry.
    """
    try:
        async with asyncio.timeout(timeout):
            response = await client.get(url, timeout=timeout)
        response.raise_for_status()
        return response.json()
    except TimeoutError as exc:
        raise NetworkError(f"GET {url} timed out after {timeout}s") from exc
    except httpx.HTTPError as exc:
        raise NetworkError(f"GET {url} failed: {type(exc).__name__}: {exc}") from exc
    except ValueError as exc:
        raise NetworkError(f"GET {url} returned invalid JSON: {exc}") from exc
