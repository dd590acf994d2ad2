"""HTTP transport used by the multipart client.

The client speaks to the transport through a single ``send`` call taking a
resource path (``/bucket/quoted-key``). ``HTTPTransport`` maps that path to a
virtual-hosted or path-style URL and performs the exchange with httpx.
Request signing is delegated to an optional ``httpx.Auth``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, Mapping
from dataclasses import dataclass, field
from typing import Protocol, Union

import httpx

from ossmultipart.config import ClientConfig
from ossmultipart.errors import TransportError

logger = logging.getLogger(__name__)

Body = Union[bytes, AsyncIterable[bytes], None]


@dataclass
class TransportResponse:
    """The status, headers and fully read body of a response."""

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""


class Transport(Protocol):
    """Protocol for the request/response collaborator of ``MultipartClient``."""

    async def send(
        self,
        method: str,
        path: str,
        query: Mapping[str, str],
        headers: Mapping[str, str],
        body: Body = None,
    ) -> TransportResponse:
        """Perform one request and return the complete response.

        Args:
            method: HTTP method.
            path: Resource path, ``/bucket/`` or ``/bucket/quoted-key``.
            query: Query parameters; empty values are sent as ``name=``.
            headers: Request headers.
            body: Request content, either bytes or an async byte stream.

        Raises:
            TransportError: If no response could be obtained.
        """
        ...


class HTTPTransport:
    """``Transport`` implementation backed by ``httpx.AsyncClient``.

    Attributes:
        config: The client configuration providing endpoint and timeouts.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        client: httpx.AsyncClient | None = None,
        auth: httpx.Auth | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            config: Endpoint and timeout settings; defaults apply when None.
            client: An existing httpx client to use instead of creating one.
            auth: Signing hook applied to every request.
        """
        self.config = config or ClientConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.config.transport.timeout)
        self._auth = auth

    async def __aenter__(self) -> HTTPTransport:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying httpx client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    def build_url(self, path: str) -> str:
        """Map a resource path to an absolute URL.

        Virtual-hosted style moves the bucket into the host name:
        ``/bucket/key`` becomes ``scheme://bucket.host/key``.
        """
        endpoint = self.config.endpoint
        if endpoint.path_style:
            return f"{endpoint.scheme}://{endpoint.host}{path}"
        bucket, _, rest = path.lstrip("/").partition("/")
        if not bucket:
            return f"{endpoint.scheme}://{endpoint.host}/"
        return f"{endpoint.scheme}://{bucket}.{endpoint.host}/{rest}"

    async def send(
        self,
        method: str,
        path: str,
        query: Mapping[str, str],
        headers: Mapping[str, str],
        body: Body = None,
    ) -> TransportResponse:
        url = self.build_url(path)
        request = self._client.build_request(
            method,
            url,
            params=dict(query),
            headers=dict(headers),
            content=body,
        )
        logger.debug("Sending %s %s", method, request.url)
        try:
            if self._auth is not None:
                response = await self._client.send(request, auth=self._auth)
            else:
                response = await self._client.send(request)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e
        return TransportResponse(
            status=response.status_code,
            headers=response.headers,
            body=response.content,
        )
