import asyncio

import httpx
import pytest

from vuln_lab.app import app
from webinject.core.dispatcher import BaseDispatcher, HttpDispatcher
from webinject.core.models import RequestSnapshot, Response


def lab_handler(request: httpx.Request) -> httpx.Response:
    """Routes an httpx request into the Flask lab through its test client."""
    headers = {k: v for k, v in request.headers.items()
               if k.lower() not in ("host", "content-length")}
    resp = app.test_client().open(
        request.url.path,
        method=request.method,
        query_string=request.url.query.decode(),
        headers=headers,
        data=request.content,
    )
    return httpx.Response(resp.status_code, headers=list(resp.headers.items()),
                          content=resp.get_data())


class StubDispatcher(BaseDispatcher):
    """Answers from a function of the sent template, records every send."""

    def __init__(self, respond, delay=None, on_send=None):
        self.respond = respond
        self.delay = delay or (lambda request: 0)
        self.on_send = on_send
        self.sent = []
        self.opened = False
        self.closed = False

    async def __aenter__(self):
        self.opened = True
        return self

    async def aclose(self):
        self.closed = True

    async def send(self, request, deadline):
        self.sent.append(request)
        if self.on_send:
            self.on_send(len(self.sent))
        pause = self.delay(request)
        if pause:
            await asyncio.sleep(pause)
        status, body = self.respond(request)
        return Response(status_code=status, body=body,
                        request=RequestSnapshot(request.method, request.full_url()))


@pytest.fixture
def lab_transport():
    return httpx.MockTransport(lab_handler)


@pytest.fixture
def lab_dispatcher(lab_transport):
    return HttpDispatcher(transport=lab_transport)


@pytest.fixture
def stub():
    return StubDispatcher
