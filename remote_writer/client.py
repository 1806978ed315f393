from http import HTTPStatus
import logging

import aiohttp

from remote_writer.codec import CONTENT_ENCODING, CONTENT_TYPE, REMOTE_WRITE_VERSION
from remote_writer.exceptions import DeliveryRejectedError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = 'remote-writer'
MAX_ERROR_BODY_LENGTH = 512


class RemoteWriteClient:
    def __init__(
        self,
        url: str,
        timeout: float | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.user_agent = user_agent

        self._session: aiohttp.ClientSession | None = None

    @property
    def headers(self) -> dict[str, str]:
        return {
            'Content-Encoding': CONTENT_ENCODING,
            'Content-Type': CONTENT_TYPE,
            'X-Prometheus-Remote-Write-Version': REMOTE_WRITE_VERSION,
            'User-Agent': self.user_agent,
        }

    def _create_session(self) -> aiohttp.ClientSession:
        if self.timeout is None:
            return aiohttp.ClientSession()
        return aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))

    async def start(self) -> None:
        if self._session is not None:
            logger.debug('Remote write session already initialized')
            return
        logger.info(
            'Initializing remote write client',
            extra={'url': self.url, 'timeout': self.timeout},
        )
        self._session = self._create_session()

    async def stop(self) -> None:
        if self._session:
            logger.info('Stopping remote write client')
            await self._session.close()
            self._session = None
        logger.info('Remote write client stopped')

    async def send(self, payload: bytes) -> None:
        if self._session is None:
            async with self._create_session() as session:
                await self._post(session, payload)
            return
        await self._post(self._session, payload)

    async def _post(self, session: aiohttp.ClientSession, payload: bytes) -> None:
        try:
            async with session.post(
                self.url, data=payload, headers=self.headers
            ) as response:
                body = await response.read()
                status = response.status
                reason = response.reason
        except (aiohttp.ClientError, TimeoutError) as e:
            raise TransportError(
                f'Failed to send data to remote write endpoint: {e!r}'
            ) from e

        if status != HTTPStatus.OK:
            raise DeliveryRejectedError(
                status,
                reason,
                body[:MAX_ERROR_BODY_LENGTH].decode('utf-8', errors='replace'),
            )
        logger.debug(
            'Payload delivered',
            extra={'url': self.url, 'status': status, 'size': len(payload)},
        )
