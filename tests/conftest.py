"""Shared pytest fixtures for ossmultipart tests.

HTTP exchanges are stubbed with ``httpx.MockTransport``: each test queues
the responses it wants returned and inspects the recorded requests.
"""

import httpx
import pytest

from ossmultipart.client import MultipartClient
from ossmultipart.config import ClientConfig, EndpointConfig
from ossmultipart.transport import HTTPTransport


class StubService:
    """Records requests and replays queued responses in order.

    When the queue is empty every request gets an empty 200 response.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[httpx.Response] = []

    def queue(self, status: int = 200, body: bytes | str = b"", headers=None) -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.responses.append(httpx.Response(status, content=body, headers=headers or {}))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responses:
            return self.responses.pop(0)
        return httpx.Response(200)

    @property
    def last(self) -> httpx.Request:
        assert self.requests, "no request was sent"
        return self.requests[-1]


@pytest.fixture
def config() -> ClientConfig:
    """Virtual-hosted endpoint over plain HTTP."""
    return ClientConfig(endpoint=EndpointConfig(host="oss.aliyuncs.com", scheme="http"))


@pytest.fixture
def stub() -> StubService:
    return StubService()


@pytest.fixture
async def transport(config, stub):
    """An HTTPTransport whose httpx client is wired to the stub service."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(stub.handler))
    yield HTTPTransport(config, client=http_client)
    await http_client.aclose()


@pytest.fixture
def client(transport, config) -> MultipartClient:
    return MultipartClient(transport, config)
