import asyncio
import time
from typing import Optional

import httpx

from webinject.core.errors import DispatchError
from webinject.core.models import Response
from webinject.parsers.request import RequestTemplate

_STOP_HDRS = {"host", "content-length",
              "transfer-encoding", "content-encoding"}


class BaseDispatcher:
    """send(request, deadline) → Response, raising DispatchError on failure."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self):
        pass

    async def send(self, request: RequestTemplate, deadline: float) -> Response:
        raise NotImplementedError


class HttpDispatcher(BaseDispatcher):
    """
    httpx-backed dispatcher.  The client lives for one `async with` block,
    i.e. one scan run, so it always belongs to the running event loop.
    """

    def __init__(self, proxy: Optional[str] = None, verify: bool = False,
                 follow_redirects: bool = True,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.proxy = proxy
        self.verify = verify
        self.follow_redirects = follow_redirects
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self.client = httpx.AsyncClient(
            verify=self.verify, proxy=self.proxy, transport=self.transport,
            follow_redirects=self.follow_redirects, timeout=None)
        return self

    async def aclose(self):
        if self.client is not None:
            await self.client.aclose()
            self.client = None

    @staticmethod
    def _kwargs(request: RequestTemplate) -> dict:
        headers = [(k, v) for k, v in request.headers
                   if k.lower() not in _STOP_HDRS]
        kw = {"headers": headers, "params": request.params() or None}
        if request.body_type == "json":
            kw["json"] = request.body
        elif isinstance(request.body, dict):
            kw["data"] = request.body
        elif request.body:
            kw["content"] = request.body
        return kw

    async def send(self, request: RequestTemplate, deadline: float) -> Response:
        if self.client is None:
            raise DispatchError("dispatcher is not open")
        url = request.full_url()
        start = time.perf_counter()
        try:
            resp = await asyncio.wait_for(
                self.client.request(request.method, url, timeout=deadline,
                                    **self._kwargs(request)),
                timeout=deadline)
        except asyncio.TimeoutError:
            raise DispatchError(f"{request.method} {url}: deadline of {deadline}s exceeded",
                                timeout=True) from None
        except httpx.TimeoutException as e:
            raise DispatchError(f"{request.method} {url}: {type(e).__name__}", timeout=True) from e
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as e:
            raise DispatchError(f"{request.method} {url}: {type(e).__name__}: {e}") from e
        return Response.from_httpx(resp, time.perf_counter() - start)
