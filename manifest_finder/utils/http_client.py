"""A helper to create asynchronous HTTP client (via `httpx.AsyncClient`)
with common configurations.
"""

from httpx import AsyncClient, AsyncBaseTransport, Limits, Timeout


def create_http_client(
    base_url: str = "",
    max_connections: int = 1024,
    connect_timeout: float = 1.0,
    request_timeout: float = 5.0,
    pool_timeout: float = 1.0,
    max_redirects: int = 5,
    verify: bool = True,
    http2: bool = False,
    headers: dict[str, str] | None = None,
    transport: AsyncBaseTransport | None = None,
) -> AsyncClient:
    """Create a new `httpx.AsyncClient` with common configurations.

    Args:
      - `base_url` {str}: The base URL for this client. An empty string sets no base URL.
      - `max_connections` {int}: Max connections of the connection pool.
      - `connect_timeout` {float}: The timeout for establishing a connection to the host.
      - `request_timeout` {float}: The timeout for handling a request to the host.
      - `pool_timeout` {float}: The timeout for acquiring a connection from the pool.
      - `max_redirects` {int}: Upper bound of redirects followed when a request opts in.
      - `verify` {bool}: Whether TLS certificates of the host are validated.
      - `http2` {bool}: Negotiate HTTP/2 with the host when it offers it.
      - `headers` {dict[str, str] | None}: Default headers sent with every request.
      - `transport` {AsyncBaseTransport | None}: A custom transport, used by tests to fake hosts.
    Returns:
      - {AsyncClient}: An async HTTP client.
    """
    return AsyncClient(
        base_url=base_url,
        limits=Limits(max_connections=max_connections),
        timeout=Timeout(request_timeout, connect=connect_timeout, pool=pool_timeout),
        max_redirects=max_redirects,
        verify=verify,
        http2=http2,
        headers=headers,
        transport=transport,
    )
