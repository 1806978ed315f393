import asyncio
from enum import Enum
import logging
from typing import Any

from remote_writer.client import RemoteWriteClient
from remote_writer.codec import encode
from remote_writer.converters import (
    convert_families_to_write_request,
    current_timestamp_ms,
)
from remote_writer.exceptions import (
    DeliveryRejectedError,
    GatherError,
    RemoteWriteError,
)
from remote_writer.snapshot.gatherer import Gatherer

logger = logging.getLogger(__name__)


class FailurePolicy(str, Enum):
    EXIT = 'exit'
    SKIP = 'skip'


class RemoteWriteWorker:
    """Runs gather -> convert -> encode -> send once per interval.

    Iterations never overlap. With ``FailurePolicy.EXIT`` the first failing
    iteration ends the loop by re-raising its error; ``FailurePolicy.SKIP``
    logs it and waits for the next tick. Nothing is retried.
    """

    def __init__(
        self,
        gatherer: Gatherer,
        client: RemoteWriteClient,
        interval: float,
        failure_policy: FailurePolicy = FailurePolicy.EXIT,
    ) -> None:
        if interval <= 0:
            raise ValueError(f'interval must be positive, got {interval}')
        self.gatherer = gatherer
        self.client = client
        self.interval = interval
        self.failure_policy = failure_policy
        self._running = True
        self._stop_event = asyncio.Event()

    async def run_once(self) -> int:
        try:
            families = self.gatherer.gather()
        except Exception as e:
            raise GatherError(f'Failed to gather metrics: {e}') from e

        timestamp_ms = current_timestamp_ms()
        write_request = convert_families_to_write_request(families, timestamp_ms)
        payload = encode(write_request)
        await self.client.send(payload)

        series_count = len(write_request.timeseries)
        logger.info(
            'Data written successfully to remote storage',
            extra={'series_count': series_count, 'payload_size': len(payload)},
        )
        return series_count

    async def start(self) -> None:
        loop = asyncio.get_running_loop()
        logger.info(
            'Remote write worker started',
            extra={
                'interval': self.interval,
                'failure_policy': self.failure_policy.value,
            },
        )

        next_tick = loop.time() + self.interval
        while self._running:
            if not await self._wait_for_tick(next_tick - loop.time()):
                break
            try:
                await self.run_once()
            except RemoteWriteError as e:
                self._log_failure(e)
                if self.failure_policy is FailurePolicy.EXIT:
                    raise

            next_tick += self.interval
            # Ticks missed while an iteration was running are dropped
            next_tick = max(next_tick, loop.time())

        logger.info('Remote write worker stopped')

    async def _wait_for_tick(self, delay: float) -> bool:
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=max(delay, 0.0))
        except TimeoutError:
            return self._running
        return False

    def _log_failure(self, error: RemoteWriteError) -> None:
        extra: dict[str, Any] = {
            'error_kind': error.kind,
            'error': str(error),
            'failure_policy': self.failure_policy.value,
        }
        if error.__cause__ is not None:
            extra['cause'] = repr(error.__cause__)
        if isinstance(error, DeliveryRejectedError):
            extra['status'] = error.status
            extra['response_body'] = error.body
        logger.error('Remote write iteration failed', extra=extra)

    def stop(self) -> None:
        self._running = False
        self._stop_event.set()
