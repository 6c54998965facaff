# tests/conftest.py

import asyncio
from typing import Callable, Dict, List, Optional, Union

import pytest

from testlab.domain.ports.http_executor import HttpExecutorInterface
from testlab.schemas.collection import (
    Collection,
    CollectionInfo,
    CollectionItem,
    CollectionRequest,
    HeaderRow,
)
from testlab.schemas.environment import Environment, EnvironmentVariable
from testlab.schemas.tools.rest_api_caller import (
    PreparedRequest,
    ResponseRecord,
    RestApiCallerOutput,
)

Reply = Union[ResponseRecord, str]


def make_response(
    status: int = 200,
    body: str = "",
    headers: Optional[Dict[str, str]] = None,
    elapsed_time: float = 10.0,
) -> ResponseRecord:
    return ResponseRecord(
        status=status,
        status_text="OK" if status < 400 else "Error",
        headers=headers or {"content-type": "application/json"},
        body=body,
        elapsed_time=elapsed_time,
        size=len(body),
    )


class FakeHttpExecutor(HttpExecutorInterface):
    """Answers by URL; a string reply is returned as a transport error."""

    def __init__(
        self,
        replies: Optional[Dict[str, Reply]] = None,
        default: Optional[Reply] = None,
        latency: float = 0.0,
    ):
        self.replies = replies or {}
        self.default = default if default is not None else make_response(200, "{}")
        self.latency = latency
        self.sent: List[PreparedRequest] = []
        self.on_send: Optional[Callable[[PreparedRequest], None]] = None

    async def send(self, request: PreparedRequest) -> RestApiCallerOutput:
        self.sent.append(request)
        if self.on_send is not None:
            self.on_send(request)
        if self.latency:
            await asyncio.sleep(self.latency)
        reply = self.replies.get(request.url, self.default)
        if isinstance(reply, str):
            return RestApiCallerOutput(success=False, error_message=reply)
        return RestApiCallerOutput(response=reply)


def request_item(request: CollectionRequest) -> CollectionItem:
    return CollectionItem(id=request.id, name=request.name, request=request)


@pytest.fixture
def fake_http() -> FakeHttpExecutor:
    return FakeHttpExecutor()


@pytest.fixture
def collection() -> Collection:
    return Collection(
        info=CollectionInfo(id="col-1", name="Shop API"),
        filename="shop.json",
        item=[
            request_item(
                CollectionRequest(
                    id="req-ok", name="Health", url="{{baseUrl}}/health"
                )
            ),
            request_item(
                CollectionRequest(
                    id="req-fail", name="Broken", url="{{baseUrl}}/broken"
                )
            ),
            CollectionItem(
                id="folder-users",
                name="Users",
                item=[
                    request_item(
                        CollectionRequest(
                            id="req-users",
                            name="List users",
                            url="{{baseUrl}}/users",
                            header=[
                                HeaderRow(key="Authorization", value="Bearer {{TOKEN}}")
                            ],
                        )
                    )
                ],
            ),
        ],
    )


@pytest.fixture
def environments() -> List[Environment]:
    return [
        Environment(
            id="env-global",
            name="Global",
            values=[
                EnvironmentVariable(key="baseUrl", value="https://api.example.com"),
                EnvironmentVariable(key="TOKEN", value="global-token"),
            ],
        ),
        Environment(
            id="env-staging",
            name="Staging",
            values=[
                EnvironmentVariable(key="baseUrl", value="https://staging.example.com"),
                EnvironmentVariable(key="TOKEN", value="old", enabled=False),
            ],
        ),
    ]
