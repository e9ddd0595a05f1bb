"""Ready-made operations for the engine.

The engine itself is protocol-agnostic; these helpers only wrap common
units of work into the zero-argument callable it expects.
"""

from typing import Any

import httpx

from loadengine.engine.actor import Operation


def build_http_client(timeout_seconds: float = 30.0, max_connections: int = 200) -> httpx.Client:
    """Pooled client without transport retries, so every failure is counted."""
    transport = httpx.HTTPTransport(
        retries=0,
        limits=httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max(1, max_connections // 2),
        ),
    )
    return httpx.Client(
        transport=transport,
        timeout=httpx.Timeout(timeout_seconds),
        follow_redirects=True,
    )


def http_operation(
    client: httpx.Client,
    method: str,
    url: str,
    **request_kwargs: Any,
) -> Operation:
    """Operation issuing one HTTP request per call.

    Transport errors propagate and non-2xx statuses raise
    ``httpx.HTTPStatusError``; both count as failures.
    """
    method = method.upper()

    def operation() -> None:
        response = client.request(method, url, **request_kwargs)
        response.raise_for_status()

    operation.__name__ = f"http_{method.lower()}"
    return operation
