import os

os.environ.setdefault('REMOTE_WRITE_URL', 'http://127.0.0.1:9090/api/v1/write')

import asyncio  # noqa: E402
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping  # noqa: E402
from dataclasses import dataclass  # noqa: E402

from aiohttp import web  # noqa: E402
import pytest  # noqa: E402

from remote_writer.snapshot.schemas import (  # noqa: E402
    Counter,
    Gauge,
    Histogram,
    LabelPair,
    Metric,
    MetricFamily,
    MetricType,
    Summary,
)

WRITE_PATH = '/api/v1/write'


@dataclass
class ReceivedRequest:
    headers: Mapping[str, str]
    body: bytes


class RemoteWriteReceiver:
    """Local remote write endpoint that records every request it receives."""

    def __init__(self, status: int = 200, delay: float = 0.0) -> None:
        self.status = status
        self.delay = delay
        self.requests: list[ReceivedRequest] = []
        self._runner: web.AppRunner | None = None

    @property
    def url(self) -> str:
        if self._runner is None:
            raise RuntimeError('Receiver not started')
        host, port = self._runner.addresses[0][:2]
        return f'http://{host}:{port}{WRITE_PATH}'

    async def start(self) -> None:
        if self._runner is not None:
            return
        app = web.Application()
        app.router.add_post(WRITE_PATH, self._write_handler)
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, '127.0.0.1', 0)
        await site.start()

    async def stop(self) -> None:
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None

    async def _write_handler(self, request: web.Request) -> web.Response:
        body = await request.read()
        self.requests.append(ReceivedRequest(headers=request.headers.copy(), body=body))
        if self.delay:
            await asyncio.sleep(self.delay)
        text = 'ok' if self.status == 200 else 'storage unavailable'
        return web.Response(status=self.status, text=text)


ReceiverFactory = Callable[..., Awaitable[RemoteWriteReceiver]]


@pytest.fixture
async def receiver_factory() -> AsyncIterator[ReceiverFactory]:
    started: list[RemoteWriteReceiver] = []

    async def factory(status: int = 200, delay: float = 0.0) -> RemoteWriteReceiver:
        server = RemoteWriteReceiver(status=status, delay=delay)
        await server.start()
        started.append(server)
        return server

    try:
        yield factory
    finally:
        for server in started:
            await server.stop()


@pytest.fixture
async def receiver(receiver_factory: ReceiverFactory) -> RemoteWriteReceiver:
    return await receiver_factory()


@pytest.fixture
def families() -> list[MetricFamily]:
    return [
        MetricFamily(
            name='http_requests_total',
            type=MetricType.COUNTER,
            metrics=[
                Metric(
                    labels=[
                        LabelPair(name='handler', value='foo'),
                        LabelPair(name='code', value='200'),
                    ],
                    counter=Counter(value=12),
                ),
                Metric(
                    labels=[
                        LabelPair(name='handler', value='bar'),
                        LabelPair(name='code', value='500'),
                    ],
                    counter=Counter(value=3),
                ),
            ],
        ),
        MetricFamily(
            name='queue_depth',
            type=MetricType.GAUGE,
            metrics=[Metric(gauge=Gauge(value=7.5))],
        ),
        MetricFamily(
            name='rpc_duration_seconds',
            type=MetricType.SUMMARY,
            metrics=[Metric(summary=Summary(sample_count=4, sample_sum=1.25))],
        ),
        MetricFamily(
            name='request_size_bytes',
            type=MetricType.HISTOGRAM,
            metrics=[
                Metric(
                    labels=[LabelPair(name='handler', value='foo')],
                    histogram=Histogram(sample_count=2, sample_sum=2048.0),
                )
            ],
        ),
    ]
