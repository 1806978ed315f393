import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
import logging
import signal

from prometheus_client import REGISTRY

from remote_writer.client import RemoteWriteClient
from remote_writer.config import settings
from remote_writer.exceptions import RemoteWriteError
from remote_writer.log_config_loader import setup_logging
from remote_writer.snapshot.gatherer import RegistryGatherer
from remote_writer.worker import RemoteWriteWorker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan() -> AsyncGenerator[RemoteWriteWorker, None]:
    client = RemoteWriteClient(
        url=settings.REMOTE_WRITE_URL,
        timeout=settings.REMOTE_WRITE_TIMEOUT,
        user_agent=f'{settings.SERVICE_NAME}/{settings.SERVICE_VERSION}',
    )
    await client.start()
    worker = RemoteWriteWorker(
        gatherer=RegistryGatherer(REGISTRY),
        client=client,
        interval=settings.REMOTE_WRITE_INTERVAL,
        failure_policy=settings.REMOTE_WRITE_FAILURE_POLICY,
    )
    try:
        yield worker
    finally:
        logger.info('Shutting down...')
        worker.stop()
        await client.stop()
        logger.info('Shutdown complete')


async def main() -> None:
    async with lifespan() as worker:
        for sig in [signal.SIGTERM, signal.SIGINT]:
            asyncio.get_running_loop().add_signal_handler(sig, worker.stop)
        await worker.start()


def run() -> None:
    setup_logging(
        service_name=settings.SERVICE_NAME,
        level=settings.LOG_LEVEL,
        log_format=settings.LOG_FORMAT,
        version=settings.SERVICE_VERSION,
    )
    try:
        asyncio.run(main())
    except RemoteWriteError:
        # The worker has already logged the failure itself
        logger.critical('Remote write exporter terminated', extra={'exit_code': 1})
        raise SystemExit(1) from None


if __name__ == '__main__':
    run()
